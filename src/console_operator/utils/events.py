"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CREATION_COMPLETED,
    EVENT_REASON_CREATION_REQUESTED,
    EVENT_REASON_DELETE_COMPLETED,
    EVENT_REASON_DELETE_REQUESTED,
    EVENT_REASON_RECONCILE_COMPLETED,
    EVENT_REASON_RECONCILE_FAILED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Body of the involved object (apiVersion, kind and metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_creation_requested(body: dict[str, Any], name: str) -> None:
    """Emit creation requested event."""
    emit_event(body, EVENT_REASON_CREATION_REQUESTED, f"Creating {name}")


def emit_creation_completed(body: dict[str, Any], name: str) -> None:
    """Emit creation completed event."""
    emit_event(body, EVENT_REASON_CREATION_COMPLETED, f"Created {name}")


def emit_delete_requested(body: dict[str, Any], name: str) -> None:
    """Emit delete requested event."""
    emit_event(body, EVENT_REASON_DELETE_REQUESTED, f"Deleting {name}")


def emit_delete_completed(body: dict[str, Any], name: str) -> None:
    """Emit delete completed event."""
    emit_event(body, EVENT_REASON_DELETE_COMPLETED, f"Deleted {name}")


def emit_reconcile_completed(body: dict[str, Any]) -> None:
    emit_event(body, EVENT_REASON_RECONCILE_COMPLETED, "Reconciliation completed")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")
