"""
Kargo shared data models.

These models define the caller's deployment intent and the orchestrator
documents exchanged with the cluster. Orchestrator documents use the
cluster's camelCase field names as aliases; ``to_wire`` renders them the
way the cluster expects to receive them.
"""

import json
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

INIT_CONTAINERS_ANNOTATION = "pod.alpha.kubernetes.io/init-containers"

NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


class KubeModel(BaseModel):
    """
    Base for orchestrator documents: accepts both field names and aliases.

    Fields the cluster populates but Kargo does not model (container ports,
    restartPolicy, env valueFrom and so on) are kept as read, so a fetched
    document renders back unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")


# Pod template building blocks


class VolumeMount(KubeModel):
    name: str
    mount_path: str = Field(..., alias="mountPath")


class EnvVar(KubeModel):
    name: str
    # Unset for variables sourced through valueFrom
    value: Optional[str] = None


class ResourceRequirements(KubeModel):
    """Container resource hints; a missing block means no limits were requested."""

    limits: Optional[Dict[str, str]] = None
    requests: Optional[Dict[str, str]] = None


class Container(KubeModel):
    name: str
    image: str
    command: Optional[List[str]] = None
    args: Optional[List[str]] = None
    env: Optional[List[EnvVar]] = None
    volume_mounts: Optional[List[VolumeMount]] = Field(None, alias="volumeMounts")
    resources: Optional[ResourceRequirements] = None


class Volume(KubeModel):
    """Pod volume; only ``emptyDir`` is modelled, other sources are kept as read."""

    name: str
    empty_dir: Optional[Dict[str, Any]] = Field(None, alias="emptyDir")


class PodSpec(KubeModel):
    containers: List[Container]
    init_containers: Optional[List[Container]] = Field(None, alias="initContainers")
    volumes: Optional[List[Volume]] = None


class ObjectMeta(KubeModel):
    """Object metadata. Unknown server-populated fields are kept for round trips."""

    name: Optional[str] = None
    namespace: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None
    resource_version: Optional[str] = Field(None, alias="resourceVersion")


class PodTemplate(KubeModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec


class LabelSelector(KubeModel):
    match_labels: Dict[str, str] = Field(default_factory=dict, alias="matchLabels")


# Orchestrator documents


class ReplicaSetSpec(KubeModel):
    replicas: int = Field(default=1, ge=0)
    selector: Optional[LabelSelector] = None
    template: PodTemplate


class WorkloadDocument(KubeModel):
    """A replica set: N identical pods built from one template."""

    api_version: str = Field(..., alias="apiVersion")
    kind: str = "ReplicaSet"
    metadata: ObjectMeta
    spec: ReplicaSetSpec

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name

    @property
    def init_containers(self) -> List[Container]:
        """Init-stage containers, read from the first-class field or the annotation."""
        pod_spec = self.spec.template.spec
        if pod_spec.init_containers:
            return list(pod_spec.init_containers)
        annotations = self.spec.template.metadata.annotations or {}
        raw = annotations.get(INIT_CONTAINERS_ANNOTATION)
        if not raw:
            return []
        return [Container.model_validate(item) for item in json.loads(raw)]


class ScaleSpec(KubeModel):
    replicas: int = Field(default=0, ge=0)


class ScaleDocument(KubeModel):
    """
    The scale subresource of a replica set.

    Only ``spec.replicas`` is ever modified client-side; everything else,
    including ``metadata.resourceVersion`` and ``status``, is sent back as read.
    """

    api_version: Optional[str] = Field(None, alias="apiVersion")
    kind: str = "Scale"
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: ScaleSpec = Field(default_factory=ScaleSpec)
    status: Optional[Dict[str, Any]] = None

    @property
    def replicas(self) -> int:
        return self.spec.replicas


# Request Models (API Input)


class DeploymentRequest(BaseModel):
    """
    Caller intent for one replica set.

    Resource hints left as empty strings are omitted from the built
    document. ``env``, ``labels`` and ``annotations`` may be omitted or None.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ..., description="Workload name", min_length=1, max_length=63, pattern=NAME_PATTERN
    )
    replicas: int = Field(default=1, description="Desired replica count", ge=0)
    args: List[str] = Field(default_factory=list, description="Arguments for the binary")
    binary_url: str = Field(..., description="URL the install step fetches the binary from")
    cpu_limit: str = ""
    memory_limit: str = ""
    cpu_request: str = ""
    memory_request: str = ""
    env: Dict[str, str] = Field(default_factory=dict, description="Environment variables")
    labels: Dict[str, str] = Field(default_factory=dict, description="Pod template labels")
    annotations: Dict[str, str] = Field(
        default_factory=dict, description="Pod template annotations"
    )

    @field_validator("env", "labels", "annotations", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return {} if v is None else v

    @field_validator("binary_url")
    @classmethod
    def validate_binary_url(cls, v):
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", v):
            raise ValueError(f"binary_url must be an absolute URL: {v!r}")
        return v


class ScaleRequest(BaseModel):
    """Request to change a workload's replica count."""

    replicas: int = Field(..., description="Desired replica count", ge=0)


# Response Models (API Output)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status", pattern="^(healthy|unhealthy)$")
    version: str
    cluster: str = Field(..., description="Cluster API URL in use")


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error message")
    status: Optional[int] = Field(default=None, description="Status returned by the cluster")
    body: Optional[str] = Field(default=None, description="Body returned by the cluster")


# Serialization Helpers


def to_wire(document: BaseModel) -> Dict[str, Any]:
    """Render a document as the JSON object the cluster expects."""
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    # Constants
    "INIT_CONTAINERS_ANNOTATION",
    # Pod template models
    "Container",
    "EnvVar",
    "LabelSelector",
    "ObjectMeta",
    "PodSpec",
    "PodTemplate",
    "ResourceRequirements",
    "Volume",
    "VolumeMount",
    # Documents
    "ReplicaSetSpec",
    "ScaleDocument",
    "ScaleSpec",
    "WorkloadDocument",
    # Request / response models
    "DeploymentRequest",
    "ErrorResponse",
    "HealthResponse",
    "ScaleRequest",
    # Helpers
    "to_wire",
]
