"""
Pod log streamer.

Follows the log of one pod and copies every byte into a sink. The stream is
meant to outlive pod restarts: whenever the connection fails, the pod is
missing, or the stream ends, it waits ``retry_interval`` seconds and opens a
new follow request for the same pod name. It never gives up on its own;
``LogStream.stop()`` is the only way to end it.

Failures are reported through the ``kargo.logs`` logger, never raised.
"""

import logging
import threading
from typing import Callable, Optional, Protocol

import httpx

from kargo.config.provider import DEFAULT_RETRY_INTERVAL, ClusterConfig
from kargo.modules.cluster import (
    ClusterAPIClient,
    Failure,
    NotFound,
    Outcome,
    Success,
    TransportError,
)

logger = logging.getLogger("kargo.logs")


class Sink(Protocol):
    """Anything bytes can be written to: a file, ``sys.stdout.buffer``, a LogBuffer."""

    def write(self, data: bytes) -> Optional[int]:
        ...


class LogBuffer:
    """Thread-safe in-memory sink that readers can wait on."""

    def __init__(self):
        self._data = bytearray()
        self._cond = threading.Condition()

    def write(self, data: bytes) -> int:
        with self._cond:
            self._data.extend(data)
            self._cond.notify_all()
        return len(data)

    def getvalue(self) -> bytes:
        """Everything buffered so far, without consuming it."""
        with self._cond:
            return bytes(self._data)

    def read(self) -> bytes:
        """Consume and return everything buffered so far."""
        with self._cond:
            data = bytes(self._data)
            self._data.clear()
            return data

    def wait_for(self, size: int, timeout: Optional[float] = None) -> bool:
        """Block until at least ``size`` bytes are buffered; False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self._data) >= size, timeout=timeout)

    def __len__(self) -> int:
        with self._cond:
            return len(self._data)


class LogStream:
    """
    Handle on one background log follower.

    The follower owns ``sink`` while it runs; nothing else should write to it.
    """

    def __init__(
        self,
        client: ClusterAPIClient,
        name: str,
        namespace: str,
        sink: Sink,
        retry_interval: float,
    ):
        self.client = client
        self.name = name
        self.namespace = namespace
        self.sink = sink
        self.retry_interval = retry_interval
        self.attempts = 0

        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._abort: Optional[Callable[[], None]] = None
        self._thread = threading.Thread(
            target=self._run, name=f"kargo-logs-{namespace}-{name}", daemon=True
        )

    def start(self) -> "LogStream":
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop following: wakes a pending retry wait and aborts an open transfer."""
        self._stop.set()
        with self._lock:
            abort = self._abort
        if abort is not None:
            try:
                abort()
            except Exception as e:
                logger.debug(f"Error aborting log stream for {self.namespace}/{self.name}: {e}")

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def __enter__(self) -> "LogStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
        self.join(timeout=self.retry_interval)

    def _run(self) -> None:
        path = ClusterConfig.log_path(self.namespace, self.name)
        params = {"follow": "true"}
        logger.info(f"Following logs of pod {self.namespace}/{self.name}")

        while not self._stop.is_set():
            self.attempts += 1
            try:
                with self.client.stream("GET", path, params=params) as outcome:
                    self._consume(outcome)
            except (httpx.HTTPError, httpx.StreamError) as e:
                if not self._stop.is_set():
                    logger.warning(f"Log stream for {self.namespace}/{self.name} broke: {e}")
            except Exception as e:
                logger.error(f"Error copying logs of {self.namespace}/{self.name}: {e}")

            if self._stop.wait(self.retry_interval):
                break

        logger.info(f"Stopped following logs of pod {self.namespace}/{self.name}")

    def _consume(self, outcome: Outcome) -> None:
        pod = f"{self.namespace}/{self.name}"

        if isinstance(outcome, TransportError):
            logger.warning(f"Log request for {pod} failed: {outcome.error}")
            logger.info(f"Reconnecting in {self.retry_interval} seconds...")
            return
        if isinstance(outcome, NotFound):
            logger.warning(f"Pod {pod} does not exist")
            return
        if isinstance(outcome, Failure):
            logger.warning(f"Log request for {pod} returned {outcome.status}: {outcome.text}")
            return

        self._set_abort(outcome)
        try:
            for chunk in outcome.chunks or ():
                if self._stop.is_set():
                    break
                self.sink.write(chunk)
        finally:
            self._set_abort(None)
        logger.info(f"Log stream for {pod} ended")

    def _set_abort(self, outcome: Optional[Success]) -> None:
        with self._lock:
            self._abort = outcome.close if outcome is not None else None
            abort_now = self._abort if self._stop.is_set() else None
        if abort_now is not None:
            abort_now()


class LogStreamer:
    """Starts self-healing log followers on a shared cluster client."""

    def __init__(self, client: ClusterAPIClient, retry_interval: float = DEFAULT_RETRY_INTERVAL):
        """
        Initialize log streamer.

        Args:
            client: Cluster API client (its transport is shared with the controller)
            retry_interval: Seconds to wait before reconnecting
        """
        self.client = client
        self.retry_interval = retry_interval

    def stream(self, name: str, namespace: str, sink: Optional[Sink] = None) -> LogStream:
        """
        Start following the log of pod ``name`` in ``namespace``.

        Args:
            name: Pod name
            namespace: Pod namespace
            sink: Where to copy log bytes; a new LogBuffer when omitted

        Returns:
            Running LogStream; its ``sink`` receives the log bytes
        """
        stream = LogStream(
            self.client,
            name,
            namespace,
            sink if sink is not None else LogBuffer(),
            self.retry_interval,
        )
        return stream.start()
