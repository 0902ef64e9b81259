"""
Exception hierarchy for Kargo.

Every failure the controller surfaces is a ``KargoError`` so callers can
catch a single base error when they do not care which step failed.
"""

from typing import Optional


class KargoError(Exception):
    """Base error for all Kargo operations."""


class NotFoundError(KargoError):
    """The named resource does not exist on the cluster."""

    def __init__(self, path: str, body: str = ""):
        self.path = path
        self.body = body
        super().__init__(f"{path} does not exist")


class RemoteFailureError(KargoError):
    """
    The cluster answered with an error status.

    Args:
        status: HTTP status code returned by the cluster
        body: Raw response body, kept for diagnostics
        operation: Short description of the attempted operation
    """

    def __init__(self, status: int, body: str = "", operation: Optional[str] = None):
        self.status = status
        self.body = body
        self.operation = operation
        message = f"unexpected status {status}"
        if operation:
            message = f"{operation}: {message}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)


class ConflictError(RemoteFailureError):
    """The write lost an optimistic concurrency race; re-read and retry."""


class ClusterUnreachableError(KargoError):
    """The request never reached the cluster or never came back."""

    def __init__(self, cause: BaseException, operation: Optional[str] = None):
        self.cause = cause
        self.operation = operation
        prefix = f"{operation}: " if operation else ""
        super().__init__(f"{prefix}cluster unreachable: {cause}")


class PreconditionError(KargoError, ValueError):
    """The caller supplied input the operation cannot act on."""
