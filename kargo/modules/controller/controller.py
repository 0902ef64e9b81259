"""
Workload controller.

Drives the lifecycle of replica sets on the cluster:

- create: build the document and POST it to the collection
- get / get_scale: fetch the document or its scale subresource
- scale: read-modify-write of the scale subresource
- delete: drain (scale to zero), then DELETE

Every call is synchronous and none is retried here; callers own retry
policy. Failures are raised as ``kargo.errors`` exceptions.

Concurrency note: ``scale`` reads the scale document and writes it back
whole. The cluster's ``resourceVersion`` from the read travels with the
write, so a concurrent change makes the write fail with ``ConflictError``
(re-read and retry). A cluster that omits ``resourceVersion`` gives no such
protection: the last write wins.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from kargo.errors import (
    ClusterUnreachableError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    RemoteFailureError,
)
from kargo.modules.api.models import (
    DeploymentRequest,
    ScaleDocument,
    WorkloadDocument,
    to_wire,
)
from kargo.modules.builder import WorkloadSpecBuilder
from kargo.modules.cluster import (
    ClusterAPIClient,
    Failure,
    NotFound,
    Outcome,
    Success,
    TransportError,
)

logger = logging.getLogger("kargo.controller")

HTTP_CREATED = 201
HTTP_CONFLICT = 409


class WorkloadController:
    """
    Create, inspect, scale and delete replica sets.

    Holds no state of its own beyond its collaborators, so one instance may
    be shared; it does not serialize concurrent scale or delete calls for the
    same workload.
    """

    def __init__(
        self,
        client: ClusterAPIClient,
        builder: Optional[WorkloadSpecBuilder] = None,
        missing_ok_on_delete: bool = False,
    ):
        """
        Initialize controller.

        Args:
            client: Cluster API client
            builder: Document builder (defaults to one stamped with the
                client's API version)
            missing_ok_on_delete: Treat a workload that vanished between the
                drain and the DELETE as deleted instead of raising NotFoundError
        """
        self.client = client
        self.config = client.config
        self.builder = builder or WorkloadSpecBuilder(api_version=self.config.api_version)
        self.missing_ok_on_delete = missing_ok_on_delete

    def create(self, request: DeploymentRequest) -> WorkloadDocument:
        """
        Create a replica set.

        Only 201 Created counts as success; any other answer is raised.

        Returns:
            The submitted document
        """
        document = self.builder.build(request)
        path = self.config.collection_path

        logger.info(f"Creating replica set {request.name} with {request.replicas} replicas")
        outcome = self.client.execute("POST", path, body=to_wire(document))
        if isinstance(outcome, Success) and outcome.status == HTTP_CREATED:
            return document

        self._raise_for(outcome, path, f"create {request.name}", success_ok=False)

    def get(self, name: str) -> WorkloadDocument:
        """
        Fetch a replica set.

        Raises:
            NotFoundError: If the replica set does not exist
            RemoteFailureError: If the cluster answered with an error
            ClusterUnreachableError: If the cluster could not be reached
        """
        path = self.config.item_path(name)
        outcome = self.client.execute("GET", path)
        self._raise_for(outcome, path, f"get {name}")
        return self._parse(WorkloadDocument, outcome, f"get {name}")

    def get_scale(self, name: str) -> ScaleDocument:
        """Fetch the scale subresource of a replica set."""
        path = self.config.scale_path(name)
        outcome = self.client.execute("GET", path)
        self._raise_for(outcome, path, f"get scale {name}")
        return self._parse(ScaleDocument, outcome, f"get scale {name}")

    def scale(self, name: str, replicas: int) -> ScaleDocument:
        """
        Set the desired replica count of a replica set.

        The scale subresource only accepts a full document, so the current
        one is read first (never cached) and written back with the new count.

        Args:
            name: Replica set name
            replicas: Desired replica count, >= 0

        Returns:
            The submitted scale document

        Raises:
            PreconditionError: If replicas is negative
            ConflictError: If the scale document changed since it was read
        """
        if replicas < 0:
            raise PreconditionError(f"replicas must be >= 0, got {replicas}")

        scale = self.get_scale(name)
        scale.spec.replicas = replicas

        path = self.config.scale_path(name)
        logger.info(f"Scaling replica set {name} to {replicas} replicas")
        outcome = self.client.execute("PUT", path, body=to_wire(scale))
        self._raise_for(outcome, path, f"scale {name}")
        return scale

    def delete(self, name: str) -> None:
        """
        Drain a replica set, then delete it.

        The DELETE is only issued after scaling to zero succeeded; a failed
        drain raises immediately. A 404 on the DELETE itself is raised as
        NotFoundError unless the controller was built with
        ``missing_ok_on_delete``.
        """
        logger.info(f"Draining replica set {name} before deletion")
        self.scale(name, 0)

        path = self.config.item_path(name)
        logger.info(f"Deleting replica set {name}")
        outcome = self.client.execute("DELETE", path)
        if isinstance(outcome, NotFound) and self.missing_ok_on_delete:
            logger.info(f"Replica set {name} was already gone after draining")
            return
        self._raise_for(outcome, path, f"delete {name}")

    def _raise_for(
        self, outcome: Outcome, path: str, operation: str, success_ok: bool = True
    ) -> None:
        """Raise the exception matching a non-success outcome."""
        # TransportError has no status; check it first
        if isinstance(outcome, TransportError):
            logger.warning(f"{operation} failed: cluster unreachable: {outcome.error}")
            raise ClusterUnreachableError(outcome.error, operation=operation)

        if isinstance(outcome, NotFound):
            logger.warning(f"{operation} failed: {path} does not exist")
            raise NotFoundError(path, body=outcome.text)

        if isinstance(outcome, Success):
            if success_ok:
                return
            body = outcome.body.decode("utf-8", errors="replace")
            logger.warning(f"{operation} failed: unexpected status {outcome.status}")
            raise RemoteFailureError(outcome.status, body, operation=operation)

        if isinstance(outcome, Failure):
            logger.warning(f"{operation} failed with status {outcome.status}: {outcome.text}")
            if outcome.status == HTTP_CONFLICT:
                raise ConflictError(outcome.status, outcome.text, operation=operation)
            raise RemoteFailureError(outcome.status, outcome.text, operation=operation)

        raise TypeError(f"Unknown outcome: {outcome!r}")

    @staticmethod
    def _parse(model, outcome: Success, operation: str):
        try:
            return model.model_validate(outcome.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"{operation}: undecodable response: {e}")
            raise RemoteFailureError(
                outcome.status,
                outcome.body.decode("utf-8", errors="replace"),
                operation=f"{operation} (undecodable response)",
            ) from e
