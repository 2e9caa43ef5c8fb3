"""Per-kind reconciliation driver wrapping a resource machine in the finalizer protocol."""

from __future__ import annotations

import logging
import time
from typing import Any

from . import metrics
from .constants import CONTROLLER_NAME
from .context import Context
from .logging import log_resource_event
from .resources.base import ResourceMachine
from .state import Action, ObjectLocks, ResourceRef, ResourceState
from .tracing import get_trace_id, trace_span
from .utils.errors import NotFoundError, sanitize_exception
from .utils.events import emit_reconcile_completed, emit_reconcile_failed
from .utils.kube import ResourceApi

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "unexpected"


class Controller:
    """Drives one resource kind through its lifecycle.

    ``reconcile`` loads the object, keeps the finalizer marker in place while
    the external objects exist and hands the object to the machine.
    ``error_policy`` turns any failure into a retry after a fixed interval.
    """

    def __init__(self, context: Context, machine: ResourceMachine) -> None:
        self.context = context
        self.machine = machine
        self.kind = machine.kind
        self._locks = ObjectLocks()

    @property
    def api(self) -> ResourceApi:
        return self.context.api(self.kind)

    def _log(
        self,
        ref: ResourceRef,
        message: str,
        event: str,
        reason: str,
        uid: str = "unknown",
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind.kind,
            resource_name=ref.name,
            namespace=ref.namespace,
            uid=uid,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def reconcile(self, ref: ResourceRef) -> Action:
        """Reconcile the object identified by ``ref``.

        Raises:
            ConsoleError: If any step fails
        """
        self.context.diagnostics.touch()
        metrics.reconcile_runs_total.labels(group_version=self.kind.group_version, kind=self.kind.kind).inc()

        start_time = time.time()
        trace_id: str | None = None
        try:
            with trace_span(
                f"reconcile {self.kind.kind}",
                kind=self.kind.kind,
                attributes={"k8s.namespace": ref.namespace, "k8s.name": ref.name},
            ):
                trace_id = get_trace_id()
                # kopf runs the timer next to the change handlers; one object is reconciled at a time.
                with self._locks.hold(ref):
                    return self._reconcile(ref)
        finally:
            duration = time.time() - start_time
            exemplar = {"trace_id": trace_id} if trace_id else None
            metrics.reconcile_duration_seconds.labels(kind=self.kind.kind).observe(duration, exemplar=exemplar)

    def _reconcile(self, ref: ResourceRef) -> Action:
        try:
            resource = self.api.get(ref)
        except NotFoundError:
            self._log(ref, f"{self.kind.kind} {ref} is gone", event="reconcile", reason="NotFound")
            return Action.await_change()

        state = resource.state
        self._log(ref, f"Reconciling {self.kind.kind} {ref}", event="reconcile", reason=state.value, uid=resource.uid)

        if state is ResourceState.REMOVED:
            return Action.await_change()

        if state is ResourceState.DELETING:
            action = self.machine.cleanup(resource)
            self.api.remove_finalizer(resource)
        else:
            resource = self.api.add_finalizer(resource)
            action = self.machine.reconcile(resource)

        emit_reconcile_completed(resource.event_body())
        metrics.reconcile_total.labels(kind=self.kind.kind, result="success").inc()
        return action

    def error_policy(self, ref: ResourceRef, error: BaseException, body: dict[str, Any] | None = None) -> Action:
        """Record a failed reconciliation and schedule the retry.

        Args:
            ref: Identity of the object that failed
            error: The error raised by :meth:`reconcile`
            body: Body of the object, when known, to attach a warning event to
        """
        error_label = getattr(error, "metric_label", UNEXPECTED_ERROR)
        message = sanitize_exception(error)
        uid = ((body or {}).get("metadata") or {}).get("uid", "unknown")

        self._log(
            ref,
            f"Reconciliation of {self.kind.kind} {ref} failed",
            event="reconcile",
            reason="ReconcileFailed",
            uid=uid,
            level=logging.ERROR,
            error=message,
            error_type=type(error).__name__,
        )
        if body is not None:
            emit_reconcile_failed(body, message)

        metrics.reconcile_failures_total.labels(
            group_version=self.kind.group_version,
            kind=self.kind.kind,
            instance=ref.name,
            error=error_label,
        ).inc()
        metrics.reconcile_total.labels(kind=self.kind.kind, result="failed").inc()

        return Action.requeue(self.context.retry_interval)
