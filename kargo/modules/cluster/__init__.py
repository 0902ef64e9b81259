"""
Cluster Module - Black Box Interface

Purpose: Exchange one request/response with the cluster API
Interface: ClusterAPIClient.execute(), ClusterAPIClient.stream()
Hidden: HTTP transport, TLS and header handling

Every call returns an Outcome (Success, NotFound, Failure, TransportError);
nothing here retries.
"""

from .client import ClusterAPIClient
from .outcomes import Failure, NotFound, Outcome, Success, TransportError, classify

__all__ = [
    "ClusterAPIClient",
    "Failure",
    "NotFound",
    "Outcome",
    "Success",
    "TransportError",
    "classify",
]
