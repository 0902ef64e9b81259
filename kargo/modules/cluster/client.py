"""
Cluster API client.

Executes one request/response exchange against the cluster API and
classifies what happened. It never retries, sleeps or logs: recovery
policy belongs to the callers.
"""

import socket
import ssl
from contextlib import contextmanager
from functools import partial
from typing import Any, Dict, Iterator, Optional

import httpx

from kargo.config.provider import ClusterConfig

from .outcomes import Outcome, Success, TransportError, classify

ACCEPT = "application/json, */*"
CONTENT_TYPE = "application/json"


class ClusterAPIClient:
    """Thin classifier over an ``httpx.Client`` bound to one cluster endpoint."""

    def __init__(
        self,
        config: Optional[ClusterConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Cluster endpoint configuration (defaults to a local kubectl proxy)
            transport: Optional transport override, e.g. ``httpx.MockTransport`` in tests
        """
        self.config = config or ClusterConfig()

        headers = {"Accept": ACCEPT}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        # Configure TLS verification
        verify: Any = self.config.verify_ssl
        if self.config.ca_cert:
            verify = ssl.create_default_context(cafile=self.config.ca_cert)

        self._client = httpx.Client(
            base_url=self.config.api_url,
            headers=headers,
            timeout=self.config.request_timeout,
            verify=verify,
            transport=transport,
        )
        # Followed log streams stay open for the lifetime of the pod
        self._stream_timeout = httpx.Timeout(self.config.request_timeout, read=None)

    def execute(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Any] = None,
    ) -> Outcome:
        """
        Execute a single request and classify the result.

        Args:
            method: HTTP method
            path: Path relative to the cluster API URL
            params: Optional query parameters
            body: Optional JSON-serializable request body

        Returns:
            Success, NotFound, Failure or TransportError
        """
        request = self._build_request(method, path, params, body)
        try:
            response = self._client.send(request)
        except httpx.TransportError as e:
            return TransportError(error=e)
        return classify(response.status_code, response.content)

    @contextmanager
    def stream(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Iterator[Outcome]:
        """
        Open a streaming request.

        Yields a ``Success`` whose ``chunks`` iterate over the body as it
        arrives, or a fully-read non-success outcome. The response is closed
        when the block exits. Transport errors raised while iterating
        ``chunks`` propagate to the caller as ``httpx.TransportError``.
        """
        request = self._build_request(method, path, params, None, timeout=self._stream_timeout)
        response = None
        try:
            response = self._client.send(request, stream=True)
            if not response.is_success:
                body = response.read()
        except httpx.TransportError as e:
            if response is not None:
                response.close()
            yield TransportError(error=e)
            return

        try:
            if response.is_success:
                yield Success(
                    status=response.status_code,
                    chunks=response.iter_bytes(),
                    close=partial(_abort, response),
                )
            else:
                yield classify(response.status_code, body)
        finally:
            response.close()

    def close(self) -> None:
        """Release pooled connections."""
        self._client.close()

    def __enter__(self) -> "ClusterAPIClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _build_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]],
        body: Optional[Any],
        timeout: Optional[httpx.Timeout] = None,
    ) -> httpx.Request:
        kwargs: Dict[str, Any] = {"params": params}
        if body is not None:
            kwargs["json"] = body
            kwargs["headers"] = {"Content-Type": CONTENT_TYPE}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return self._client.build_request(method, path, **kwargs)


def _abort(response: httpx.Response) -> None:
    """
    Abort a streaming response from another thread.

    Closing the response alone does not wake a thread blocked reading it, so
    the socket is shut down instead; the reader then sees end of stream and
    closes the response itself. Transports without a socket are closed.
    """
    network_stream = response.extensions.get("network_stream")
    sock = network_stream.get_extra_info("socket") if network_stream is not None else None
    if sock is None:
        response.close()
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # Peer already hung up
        pass
