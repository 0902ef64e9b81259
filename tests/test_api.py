"""
API endpoint tests for the Kargo service.

Tests cover:
- GET /health
- POST /api/v1/workloads - Create a replica set
- GET /api/v1/workloads/{name} - Fetch a replica set
- GET/PUT /api/v1/workloads/{name}/scale - Read and change replica count
- DELETE /api/v1/workloads/{name} - Drain and delete
- GET /api/v1/namespaces/{namespace}/pods/{pod}/logs - Follow pod logs

The app runs against the in-memory fake cluster through an injected client.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import StaticConfigProvider
from kargo.config.provider import ClusterConfig
from kargo.main import create_app
from kargo.modules.cluster import ClusterAPIClient

CONFIG = ClusterConfig()


@pytest.fixture
def api(cluster_client):
    app = create_app(StaticConfigProvider(cluster=CONFIG), client=cluster_client)
    with TestClient(app) as test_client:
        yield test_client


def deployment_payload(**overrides):
    payload = {"name": "worker", "replicas": 3, "binary_url": "https://x/worker"}
    payload.update(overrides)
    return payload


class TestHealth:
    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["cluster"] == CONFIG.api_url


class TestWorkloadRoutes:
    """Lifecycle endpoints."""

    def test_create(self, api, fake_cluster):
        response = api.post("/api/v1/workloads", json=deployment_payload(env={"MODE": "fast"}))

        assert response.status_code == 201
        body = response.json()
        assert body["metadata"]["name"] == "worker"
        assert body["spec"]["template"]["metadata"]["labels"]["run"] == "worker"
        assert "worker" in fake_cluster.workloads

    def test_create_invalid_request(self, api, fake_cluster):
        response = api.post("/api/v1/workloads", json=deployment_payload(name="Not_Valid"))

        assert response.status_code == 422
        assert fake_cluster.calls == []

    def test_create_cluster_failure(self, api, fake_cluster):
        fake_cluster.script("POST", CONFIG.collection_path, (500, "quota exceeded"))

        response = api.post("/api/v1/workloads", json=deployment_payload())

        assert response.status_code == 502
        assert response.json()["status"] == 500
        assert response.json()["body"] == "quota exceeded"

    def test_create_duplicate(self, api, fake_cluster):
        fake_cluster.add_workload("worker")

        response = api.post("/api/v1/workloads", json=deployment_payload())

        assert response.status_code == 409

    def test_get(self, api, fake_cluster):
        fake_cluster.add_workload("worker", replicas=2)

        response = api.get("/api/v1/workloads/worker")

        assert response.status_code == 200
        assert response.json()["spec"]["replicas"] == 2

    def test_get_returns_document_as_stored(self, api, fake_cluster):
        document = fake_cluster.add_workload("worker")
        document["spec"]["template"]["spec"]["containers"][0]["ports"] = [{"containerPort": 8080}]

        response = api.get("/api/v1/workloads/worker")

        assert response.json() == document

    def test_get_missing(self, api):
        response = api.get("/api/v1/workloads/ghost")

        assert response.status_code == 404
        assert "does not exist" in response.json()["detail"]

    def test_scale(self, api, fake_cluster):
        fake_cluster.add_workload("worker", replicas=1)

        response = api.put("/api/v1/workloads/worker/scale", json={"replicas": 6})

        assert response.status_code == 200
        assert response.json()["spec"]["replicas"] == 6
        assert api.get("/api/v1/workloads/worker/scale").json()["spec"]["replicas"] == 6

    def test_scale_negative_rejected(self, api, fake_cluster):
        response = api.put("/api/v1/workloads/worker/scale", json={"replicas": -1})

        assert response.status_code == 422
        assert fake_cluster.calls == []

    def test_delete(self, api, fake_cluster):
        fake_cluster.add_workload("worker", replicas=3)

        response = api.delete("/api/v1/workloads/worker")

        assert response.status_code == 204
        assert fake_cluster.methods() == ["GET", "PUT", "DELETE"]

    def test_delete_drain_failure(self, api, fake_cluster):
        fake_cluster.add_workload("worker")
        fake_cluster.script("PUT", CONFIG.scale_path("worker"), (500, "cannot scale"))

        response = api.delete("/api/v1/workloads/worker")

        assert response.status_code == 502
        assert fake_cluster.call_count("DELETE") == 0


class TestUnreachableCluster:
    def test_unreachable_is_503(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = ClusterAPIClient(CONFIG, transport=httpx.MockTransport(refuse))
        app = create_app(StaticConfigProvider(cluster=CONFIG), client=client)

        with TestClient(app) as test_client:
            response = test_client.get("/api/v1/workloads/worker")

        assert response.status_code == 503


class TestLogs:
    def test_follow_logs_with_limit(self, api, fake_cluster):
        fake_cluster.logs[("default", "worker-abc12")] = b"line one\nline two\n"

        response = api.get(
            "/api/v1/namespaces/default/pods/worker-abc12/logs", params={"limit_bytes": 9}
        )

        assert response.status_code == 200
        assert response.content == b"line one\n"
