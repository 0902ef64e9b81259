"""
Classified results of a single exchange with the cluster.

Exactly one of four things happens to a request:

- ``Success``: the cluster answered 2xx
- ``NotFound``: the cluster answered 404
- ``Failure``: the cluster answered with any other status
- ``TransportError``: no response was ever produced (DNS, refused, timeout)

``NotFound`` and ``Failure`` are authoritative answers from the cluster.
``TransportError`` carries no status at all, so callers must check for it
before looking at status codes.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union


@dataclass(frozen=True)
class Success:
    """
    2xx response.

    Streaming requests set ``chunks`` instead of ``body``, plus ``close`` to
    abort the transfer from another thread.
    """

    status: int
    body: bytes = b""
    chunks: Optional[Iterator[bytes]] = field(default=None, compare=False, repr=False)
    close: Optional[Callable[[], None]] = field(default=None, compare=False, repr=False)

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass(frozen=True)
class NotFound:
    """404 response."""

    body: bytes = b""
    status: int = 404

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Failure:
    """Any non-2xx, non-404 response."""

    status: int
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class TransportError:
    """The request never produced a response."""

    error: BaseException


Outcome = Union[Success, NotFound, Failure, TransportError]


def classify(status: int, body: bytes = b"") -> Outcome:
    """Map a response status to its outcome."""
    if status == 404:
        return NotFound(body=body)
    if 200 <= status < 300:
        return Success(status=status, body=body)
    return Failure(status=status, body=body)


__all__ = ["Failure", "NotFound", "Outcome", "Success", "TransportError", "classify"]
