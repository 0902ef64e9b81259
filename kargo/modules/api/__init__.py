"""
API Module - Black Box Interface

Purpose: Data models shared by every other module
Interface: pydantic models for caller requests and orchestrator documents
Hidden: Field aliasing and wire rendering details

Documents are rendered for the cluster with to_wire().
"""

from .models import (
    INIT_CONTAINERS_ANNOTATION,
    Container,
    DeploymentRequest,
    EnvVar,
    ErrorResponse,
    HealthResponse,
    LabelSelector,
    ObjectMeta,
    PodSpec,
    PodTemplate,
    ReplicaSetSpec,
    ResourceRequirements,
    ScaleDocument,
    ScaleRequest,
    ScaleSpec,
    Volume,
    VolumeMount,
    WorkloadDocument,
    to_wire,
)

__all__ = [
    "INIT_CONTAINERS_ANNOTATION",
    "Container",
    "DeploymentRequest",
    "EnvVar",
    "ErrorResponse",
    "HealthResponse",
    "LabelSelector",
    "ObjectMeta",
    "PodSpec",
    "PodTemplate",
    "ReplicaSetSpec",
    "ResourceRequirements",
    "ScaleDocument",
    "ScaleRequest",
    "ScaleSpec",
    "Volume",
    "VolumeMount",
    "WorkloadDocument",
    "to_wire",
]
