"""
Shared pytest fixtures for Kargo tests.

This module provides common fixtures including:
- FakeCluster: In-memory replica set API served through httpx.MockTransport
- Cluster client and controller wired to the fake
- A static configuration provider for the FastAPI app
"""

import json
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kargo.config.provider import (
    APIConfig,
    BuilderConfig,
    ClusterConfig,
    LogStreamConfig,
)
from kargo.modules.cluster import ClusterAPIClient
from kargo.modules.controller import WorkloadController


# =============================================================================
# Fake Cluster Infrastructure
# =============================================================================

@dataclass
class FakeCall:
    """Record of a request the fake cluster received."""
    method: str
    path: str
    params: Dict[str, str]
    body: Optional[dict] = None
    headers: Dict[str, str] = field(default_factory=dict)


# A scripted reply: a status/body pair, an exception to raise, or a callable
Scripted = Union[Tuple[int, Union[bytes, str, dict]], Exception, Callable]


class FakeCluster:
    """
    In-memory stand-in for the replica set API.

    Understands the collection, item, scale and pod log endpoints, keeps a
    resourceVersion per scale document, and records every call. Scripted
    replies registered with ``script()`` are served first, in order, for the
    matching method and path.

    Usage:
        def test_create(fake_cluster, controller):
            fake_cluster.script("POST", collection, (500, "quota exceeded"))
            with pytest.raises(RemoteFailureError):
                controller.create(request)
            assert fake_cluster.call_count("POST") == 1
    """

    def __init__(self, config: Optional[ClusterConfig] = None):
        self.config = config or ClusterConfig()
        self.workloads: Dict[str, dict] = {}
        self.scales: Dict[str, dict] = {}
        self.logs: Dict[Tuple[str, str], bytes] = {}
        self.calls: List[FakeCall] = []
        self._scripts: Dict[Tuple[str, str], List[Scripted]] = {}
        self._version = 0

    # Setup helpers

    def script(self, method: str, path: str, *replies: Scripted) -> "FakeCluster":
        """Queue replies for the next requests to ``method path``."""
        self._scripts.setdefault((method, path), []).extend(replies)
        return self

    def add_workload(self, name: str, replicas: int = 1) -> dict:
        """Seed a replica set as if it had been created earlier."""
        document = {
            "apiVersion": self.config.api_version,
            "kind": "ReplicaSet",
            "metadata": {"name": name, "namespace": self.config.namespace},
            "spec": {
                "replicas": replicas,
                "template": {
                    "metadata": {"labels": {"run": name}},
                    "spec": {"containers": [{"name": name, "image": "alpine"}]},
                },
            },
        }
        self._store(name, document)
        return document

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # Assertions helpers

    def call_count(self, method: str, path: Optional[str] = None) -> int:
        return len(
            [c for c in self.calls if c.method == method and (path is None or c.path == path)]
        )

    def methods(self) -> List[str]:
        return [c.method for c in self.calls]

    # Request handling

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.calls.append(
            FakeCall(
                method=request.method,
                path=path,
                params=dict(request.url.params),
                body=body,
                headers=dict(request.headers),
            )
        )

        queued = self._scripts.get((request.method, path))
        if queued:
            return self._reply(queued.pop(0), request)

        collection = self.config.collection_path
        if path == collection and request.method == "POST":
            return self._create(body)
        if path.startswith(collection + "/"):
            rest = path[len(collection) + 1:].split("/")
            if len(rest) == 1:
                return self._item(request.method, rest[0])
            if len(rest) == 2 and rest[1] == "scale":
                return self._scale(request.method, rest[0], body)
        if path.startswith("/api/v1/namespaces/") and path.endswith("/log"):
            parts = path.split("/")
            return self._log(parts[4], parts[6])

        return httpx.Response(404, json=_status("NotFound", f"no route for {path}"))

    def _reply(self, scripted: Scripted, request: httpx.Request) -> httpx.Response:
        if isinstance(scripted, Exception):
            raise scripted
        if callable(scripted):
            return scripted(request)
        status, content = scripted
        if isinstance(content, dict):
            return httpx.Response(status, json=content)
        if isinstance(content, str):
            content = content.encode()
        return httpx.Response(status, content=content)

    def _create(self, body: dict) -> httpx.Response:
        name = body["metadata"]["name"]
        if name in self.workloads:
            return httpx.Response(409, json=_status("AlreadyExists", f"{name} already exists"))
        self._store(name, body)
        return httpx.Response(201, json=self.workloads[name])

    def _item(self, method: str, name: str) -> httpx.Response:
        if name not in self.workloads:
            return httpx.Response(404, json=_status("NotFound", f"{name} not found"))
        if method == "GET":
            return httpx.Response(200, json=self.workloads[name])
        if method == "DELETE":
            del self.workloads[name]
            del self.scales[name]
            return httpx.Response(200, json=_status("Success", f"{name} deleted"))
        return httpx.Response(405)

    def _scale(self, method: str, name: str, body: Optional[dict]) -> httpx.Response:
        if name not in self.scales:
            return httpx.Response(404, json=_status("NotFound", f"{name} not found"))
        current = self.scales[name]
        if method == "GET":
            return httpx.Response(200, json=current)
        if method == "PUT":
            sent_version = body.get("metadata", {}).get("resourceVersion")
            if sent_version is not None and sent_version != current["metadata"]["resourceVersion"]:
                return httpx.Response(409, json=_status("Conflict", "object has been modified"))
            replicas = body.get("spec", {}).get("replicas", 0)
            self.set_replicas(name, replicas)
            return httpx.Response(200, json=self.scales[name])
        return httpx.Response(405)

    def _log(self, namespace: str, pod: str) -> httpx.Response:
        content = self.logs.get((namespace, pod))
        if content is None:
            return httpx.Response(404, json=_status("NotFound", f"pod {pod} not found"))
        return httpx.Response(200, content=content)

    def set_replicas(self, name: str, replicas: int) -> None:
        """Change a workload's replica count as a concurrent writer would."""
        self.workloads[name]["spec"]["replicas"] = replicas
        scale = self.scales[name]
        scale["spec"]["replicas"] = replicas
        scale["metadata"]["resourceVersion"] = self._next_version()

    def _store(self, name: str, document: dict) -> None:
        self.workloads[name] = document
        self.scales[name] = {
            "apiVersion": self.config.api_version,
            "kind": "Scale",
            "metadata": {
                "name": name,
                "namespace": self.config.namespace,
                "resourceVersion": self._next_version(),
            },
            "spec": {"replicas": document["spec"].get("replicas", 1)},
            "status": {"replicas": 0},
        }

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)


def _status(reason: str, message: str) -> dict:
    return {"kind": "Status", "apiVersion": "v1", "reason": reason, "message": message}


class StaticConfigProvider:
    """Configuration provider returning fixed values."""

    def __init__(
        self,
        cluster: Optional[ClusterConfig] = None,
        builder: Optional[BuilderConfig] = None,
        log_stream: Optional[LogStreamConfig] = None,
        api: Optional[APIConfig] = None,
    ):
        self.cluster = cluster or ClusterConfig()
        self.builder = builder or BuilderConfig()
        self.log_stream = log_stream or LogStreamConfig(retry_interval=0.01)
        self.api = api or APIConfig()

    def get_cluster_config(self) -> ClusterConfig:
        return self.cluster

    def get_builder_config(self) -> BuilderConfig:
        return self.builder

    def get_log_stream_config(self) -> LogStreamConfig:
        return self.log_stream

    def get_api_config(self) -> APIConfig:
        return self.api


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def cluster_config():
    return ClusterConfig()


@pytest.fixture
def fake_cluster(cluster_config):
    return FakeCluster(cluster_config)


@pytest.fixture
def cluster_client(fake_cluster, cluster_config):
    client = ClusterAPIClient(cluster_config, transport=fake_cluster.transport())
    yield client
    client.close()


@pytest.fixture
def controller(cluster_client):
    return WorkloadController(cluster_client)

