"""
Kargo - Replica Set Lifecycle Client

A control-plane client that deploys a fetched binary as a replica set on a
Kubernetes cluster and tails the logs of its pods.

Architecture:
- Each module is self-contained with clear interfaces
- Configuration is passed to constructors, never read from globals
- All communication with the cluster goes through the cluster module

Modules:
- api: Data models for requests and orchestrator documents
- builder: Deployment request -> replica set document
- cluster: Single request/response exchange with outcome classification
- controller: Create, inspect, scale and drain-then-delete workloads
- logs: Self-healing pod log tailing
"""

__version__ = "1.0.0"
