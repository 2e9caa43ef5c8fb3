"""Shared create/delete template for every reconciled resource kind."""

from __future__ import annotations

import logging
import re
from typing import Any

from .. import metrics
from ..constants import CONTROLLER_NAME, ILLEGAL_NAME, POSTGRESQL_MAX_IDENTIFIER_LENGTH
from ..context import Context
from ..logging import log_resource_event
from ..state import Action
from ..utils.errors import IllegalIdentifierError, InvalidSpecError
from ..utils.events import (
    emit_creation_completed,
    emit_creation_requested,
    emit_delete_completed,
    emit_delete_requested,
)
from ..utils.kube import Resource, ResourceApi, ResourceKind

IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9._-]+$")


def scoped_name(namespace: str, name: str) -> str:
    """Name of an external object, unique across namespaces sharing one backend."""
    return f"{namespace}_{name}"


def validate_identifier(identifier: str, max_length: int = POSTGRESQL_MAX_IDENTIFIER_LENGTH) -> str:
    """Validate a resolved backend identifier.

    Raises:
        IllegalIdentifierError: If the identifier is empty, too long or has unexpected characters
    """
    if not identifier or len(identifier) > max_length:
        raise IllegalIdentifierError(f"identifier {identifier!r} must be 1 to {max_length} characters long")
    if not IDENTIFIER_PATTERN.match(identifier.lower()):
        raise IllegalIdentifierError(f"identifier {identifier!r} contains illegal characters")
    return identifier


def reject_illegal_name(resource: Resource) -> None:
    """Refuse the reserved name before any backend is touched.

    Raises:
        IllegalIdentifierError: If the resource uses the reserved name
    """
    if resource.name == ILLEGAL_NAME:
        raise IllegalIdentifierError(f"{resource.kind.kind} name {ILLEGAL_NAME!r} is not allowed")


def required_spec(resource: Resource, field: str) -> Any:
    """Return a spec field that must be set.

    Raises:
        InvalidSpecError: If the field is missing or empty
    """
    value = resource.spec.get(field)
    if value in (None, ""):
        raise InvalidSpecError(f"{resource!r} has no spec.{field}")
    return value


class ResourceMachine:
    """Create/delete state machine for one resource kind.

    Subclasses set ``kind`` and implement :meth:`create` and :meth:`delete`.
    ``create`` returns the status fields to record next to ``created: true``;
    ``delete`` removes everything ``create`` made. The template supplies the
    idempotency check, the events and the status patch.
    """

    kind: ResourceKind

    def __init__(self, context: Context) -> None:
        self.context = context
        self.logger = logging.getLogger(type(self).__module__)

    @property
    def api(self) -> ResourceApi:
        return self.context.api(self.kind)

    def display_name(self, resource: Resource) -> str:
        return f"{self.kind.kind.lower()} {resource.name}"

    def log_info(self, resource: Resource, message: str, event: str = "info", reason: str = "Info", **kwargs: Any) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind.kind,
            resource_name=resource.name,
            namespace=resource.namespace,
            uid=resource.uid,
            event=event,
            reason=reason,
            message=message,
            **kwargs,
        )

    def create(self, resource: Resource) -> dict[str, Any]:
        raise NotImplementedError

    def delete(self, resource: Resource) -> None:
        raise NotImplementedError

    def needs_delete(self, resource: Resource) -> bool:
        """Whether external objects of ``resource`` may exist and must be deleted."""
        return resource.created

    def reconcile(self, resource: Resource) -> Action:
        """Create the external objects once and record it in status.

        A resource whose status says it was created is left alone: there is
        no drift detection.
        """
        if resource.created:
            return Action.requeue(self.context.reconcile_interval)

        display_name = self.display_name(resource)
        emit_creation_requested(resource.event_body(), display_name)
        self.log_info(resource, f"Creating {display_name}", event="create", reason="CreationRequested")

        status = self.create(resource)

        emit_creation_completed(resource.event_body(), display_name)
        self.api.apply_status(resource, {"created": True, **status})
        self.log_info(resource, f"Created {display_name}", event="create", reason="CreationCompleted", status=status)
        metrics.reconcile_total.labels(kind=self.kind.kind, result="created").inc()

        return Action.requeue(self.context.reconcile_interval)

    def cleanup(self, resource: Resource) -> Action:
        """Delete the external objects of a resource that is going away."""
        display_name = self.display_name(resource)
        emit_delete_requested(resource.event_body(), display_name)
        self.log_info(resource, f"Deleting {display_name}", event="delete", reason="DeleteRequested")

        if self.needs_delete(resource):
            self.delete(resource)
        else:
            self.log_info(resource, f"{display_name} was never created, nothing to delete", event="delete")

        emit_delete_completed(resource.event_body(), display_name)
        metrics.reconcile_total.labels(kind=self.kind.kind, result="deleted").inc()

        return Action.await_change()
