"""
Replica set document builder.

Turns a DeploymentRequest into the replica set document the cluster
accepts. Pure: no I/O, and the request's own mappings are never modified.

Pod layout:
- a shared ``emptyDir`` volume mounted at the install directory
- init container ``install`` fetches the binary into that volume
- init container ``configure`` marks it executable
- the main container runs the binary with the request's arguments
"""

import json
import posixpath
from typing import Dict, List, Optional

from kargo.config.provider import DEFAULT_API_VERSION, BuilderConfig
from kargo.errors import PreconditionError
from kargo.modules.api.models import (
    INIT_CONTAINERS_ANNOTATION,
    Container,
    DeploymentRequest,
    EnvVar,
    LabelSelector,
    ObjectMeta,
    PodSpec,
    PodTemplate,
    ReplicaSetSpec,
    ResourceRequirements,
    Volume,
    VolumeMount,
    WorkloadDocument,
    to_wire,
)

BIN_VOLUME = "bin"
RUN_LABEL = "run"


class WorkloadSpecBuilder:
    """Builds replica set documents from deployment requests."""

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        api_version: str = DEFAULT_API_VERSION,
    ):
        """
        Initialize builder.

        Args:
            config: Image, install directory and init container style
            api_version: apiVersion stamped on built documents
        """
        self.config = config or BuilderConfig()
        self.api_version = api_version

    def binary_path(self, name: str) -> str:
        """Where the install step puts the binary for workload ``name``."""
        return posixpath.join(self.config.install_dir, name)

    def build(self, request: DeploymentRequest) -> WorkloadDocument:
        """
        Build the replica set document for a request.

        Args:
            request: Caller intent

        Returns:
            WorkloadDocument ready to POST to the replica set collection

        Raises:
            PreconditionError: If the request's annotations use the reserved
                init-container key
        """
        if INIT_CONTAINERS_ANNOTATION in request.annotations:
            raise PreconditionError(
                f"annotation {INIT_CONTAINERS_ANNOTATION!r} is reserved for init containers"
            )

        container = Container(
            name=request.name,
            image=self.config.image,
            command=[self.binary_path(request.name)],
            args=list(request.args) or None,
            env=self._env(request.env),
            volume_mounts=[self._bin_mount()],
            resources=self._resources(request),
        )

        # The annotation value is the serialized init container list, so the
        # list has to be complete before annotations are assembled.
        init_containers = self._init_containers(request)
        annotations = dict(request.annotations)
        annotations[INIT_CONTAINERS_ANNOTATION] = json.dumps(
            [to_wire(c) for c in init_containers], indent=1
        )

        labels = dict(request.labels)
        labels[RUN_LABEL] = request.name

        pod_spec = PodSpec(
            containers=[container],
            init_containers=init_containers if self.config.native_init_containers else None,
            volumes=[Volume(name=BIN_VOLUME, empty_dir={})],
        )

        return WorkloadDocument(
            api_version=self.api_version,
            kind="ReplicaSet",
            metadata=ObjectMeta(name=request.name),
            spec=ReplicaSetSpec(
                replicas=request.replicas,
                selector=LabelSelector(match_labels={RUN_LABEL: request.name}),
                template=PodTemplate(
                    metadata=ObjectMeta(labels=labels, annotations=annotations),
                    spec=pod_spec,
                ),
            ),
        )

    def _bin_mount(self) -> VolumeMount:
        return VolumeMount(name=BIN_VOLUME, mount_path=self.config.install_dir)

    def _init_containers(self, request: DeploymentRequest) -> List[Container]:
        binary_path = self.binary_path(request.name)
        return [
            Container(
                name="install",
                image=self.config.image,
                command=["wget", "-O", binary_path, request.binary_url],
                volume_mounts=[self._bin_mount()],
            ),
            Container(
                name="configure",
                image=self.config.image,
                command=["chmod", "+x", binary_path],
                volume_mounts=[self._bin_mount()],
            ),
        ]

    @staticmethod
    def _env(env: Dict[str, str]) -> Optional[List[EnvVar]]:
        if not env:
            return None
        return [EnvVar(name=name, value=env[name]) for name in sorted(env)]

    @staticmethod
    def _resources(request: DeploymentRequest) -> Optional[ResourceRequirements]:
        limits = _resource_list(cpu=request.cpu_limit, memory=request.memory_limit)
        requests = _resource_list(cpu=request.cpu_request, memory=request.memory_request)
        if not limits and not requests:
            return None
        return ResourceRequirements(limits=limits, requests=requests)


def _resource_list(**hints: str) -> Optional[Dict[str, str]]:
    """Keep only the hints the caller set; None when none were."""
    resources = {key: value for key, value in hints.items() if value}
    return resources or None
