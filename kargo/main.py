#!/usr/bin/env python3
"""
Kargo - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Serves the workload API

All business logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Iterator, Optional

import uvicorn
from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from kargo import __version__
from kargo.config.provider import ConfigProvider, EnvConfigProvider
from kargo.errors import (
    ClusterUnreachableError,
    ConflictError,
    KargoError,
    NotFoundError,
    PreconditionError,
    RemoteFailureError,
)
from kargo.logging_config import configure_logging, get_logging_config
from kargo.modules.api import (
    DeploymentRequest,
    ErrorResponse,
    HealthResponse,
    ScaleRequest,
    to_wire,
)
from kargo.modules.builder import WorkloadSpecBuilder
from kargo.modules.cluster import ClusterAPIClient
from kargo.modules.controller import WorkloadController
from kargo.modules.logs import LogStreamer

logger = logging.getLogger("kargo.api")

# How long a log response waits for new bytes before re-checking its stream
LOG_POLL_SECONDS = 1.0


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    client: Optional[ClusterAPIClient] = None,
) -> FastAPI:
    """
    Build the Kargo API application.

    Args:
        config_provider: Configuration source (environment by default)
        client: Optional pre-built cluster client; built from configuration
            and closed on shutdown when omitted
    """
    provider = config_provider or EnvConfigProvider()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        logger.info("Starting Kargo API...")

        cluster_client = client or ClusterAPIClient(provider.get_cluster_config())
        builder = WorkloadSpecBuilder(
            provider.get_builder_config(), api_version=cluster_client.config.api_version
        )
        app.state.client = cluster_client
        app.state.controller = WorkloadController(cluster_client, builder)
        app.state.log_streamer = LogStreamer(
            cluster_client, retry_interval=provider.get_log_stream_config().retry_interval
        )

        logger.info(f"Kargo API started against {cluster_client.config.api_url}")

        yield

        logger.info("Shutting down Kargo API...")
        if client is None:
            cluster_client.close()
        logger.info("Kargo API shutdown complete")

    app = FastAPI(
        title="Kargo API",
        description="Kargo - Replica set lifecycle and log tailing",
        version=__version__,
        lifespan=lifespan,
    )

    _register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        return HealthResponse(
            status="healthy",
            version=__version__,
            cluster=request.app.state.client.config.api_url,
        )

    @app.post("/api/v1/workloads", status_code=201)
    def create_workload(deployment: DeploymentRequest, request: Request):
        document = request.app.state.controller.create(deployment)
        return to_wire(document)

    @app.get("/api/v1/workloads/{name}")
    def get_workload(name: str, request: Request):
        return to_wire(request.app.state.controller.get(name))

    @app.get("/api/v1/workloads/{name}/scale")
    def get_workload_scale(name: str, request: Request):
        return to_wire(request.app.state.controller.get_scale(name))

    @app.put("/api/v1/workloads/{name}/scale")
    def scale_workload(name: str, scale: ScaleRequest, request: Request):
        return to_wire(request.app.state.controller.scale(name, scale.replicas))

    @app.delete("/api/v1/workloads/{name}", status_code=204)
    def delete_workload(name: str, request: Request):
        request.app.state.controller.delete(name)
        return Response(status_code=204)

    @app.get("/api/v1/namespaces/{namespace}/pods/{pod}/logs")
    def follow_pod_logs(
        namespace: str,
        pod: str,
        request: Request,
        limit_bytes: Optional[int] = Query(None, ge=1, description="Stop after this many bytes"),
    ):
        stream = request.app.state.log_streamer.stream(pod, namespace)
        return StreamingResponse(
            _relay(stream, limit_bytes), media_type="text/plain; charset=utf-8"
        )

    return app


def _relay(stream, limit_bytes: Optional[int]) -> Iterator[bytes]:
    """Yield log bytes as they arrive; the stream is stopped when the response ends."""
    sent = 0
    try:
        while limit_bytes is None or sent < limit_bytes:
            stream.sink.wait_for(1, timeout=LOG_POLL_SECONDS)
            chunk = stream.sink.read()
            if not chunk:
                continue
            if limit_bytes is not None:
                chunk = chunk[: limit_bytes - sent]
            sent += len(chunk)
            yield chunk
    finally:
        stream.stop()


def _error(status_code: int, exc: KargoError, **extra) -> JSONResponse:
    payload = ErrorResponse(detail=str(exc), **extra)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


def _register_error_handlers(app: FastAPI) -> None:
    """Map Kargo errors to HTTP responses."""

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return _error(404, exc)

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError):
        return _error(409, exc, status=exc.status, body=exc.body)

    @app.exception_handler(RemoteFailureError)
    async def remote_failure(request: Request, exc: RemoteFailureError):
        # Client errors from the cluster are the caller's to fix
        status_code = exc.status if 400 <= exc.status < 500 else 502
        return _error(status_code, exc, status=exc.status, body=exc.body)

    @app.exception_handler(ClusterUnreachableError)
    async def unreachable(request: Request, exc: ClusterUnreachableError):
        return _error(503, exc)

    @app.exception_handler(PreconditionError)
    async def precondition(request: Request, exc: PreconditionError):
        return _error(422, exc)


def main():
    """Main entry point."""
    provider = EnvConfigProvider()
    api_config = provider.get_api_config()
    configure_logging(api_config.log_level)

    try:
        uvicorn.run(
            create_app(provider),
            host=api_config.host,
            port=api_config.port,
            log_config=get_logging_config(api_config.log_level),
        )
    except KeyboardInterrupt:
        logger.info("Kargo API stopped by user")


if __name__ == "__main__":
    main()
