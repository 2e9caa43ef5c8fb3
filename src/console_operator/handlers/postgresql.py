"""kopf bindings for Database and User."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import RECONCILE_INTERVAL_SECONDS, RETRY_INTERVAL_SECONDS
from ..utils.kube import DATABASE, USER
from . import run_controller


@kopf.on.resume(DATABASE.group_version, DATABASE.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.create(DATABASE.group_version, DATABASE.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.update(DATABASE.group_version, DATABASE.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.delete(DATABASE.group_version, DATABASE.kind, optional=True, backoff=RETRY_INTERVAL_SECONDS)
@kopf.timer(
    DATABASE.group_version,
    DATABASE.kind,
    interval=RECONCILE_INTERVAL_SECONDS,
    initial_delay=RECONCILE_INTERVAL_SECONDS,
    backoff=RETRY_INTERVAL_SECONDS,
)
def reconcile_database(
    name: str,
    namespace: str,
    body: kopf.Body,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Reconcile a Database."""
    run_controller(memo, DATABASE.kind, namespace, name, dict(body))


@kopf.on.resume(USER.group_version, USER.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.create(USER.group_version, USER.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.update(USER.group_version, USER.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.delete(USER.group_version, USER.kind, optional=True, backoff=RETRY_INTERVAL_SECONDS)
@kopf.timer(
    USER.group_version,
    USER.kind,
    interval=RECONCILE_INTERVAL_SECONDS,
    initial_delay=RECONCILE_INTERVAL_SECONDS,
    backoff=RETRY_INTERVAL_SECONDS,
)
def reconcile_user(
    name: str,
    namespace: str,
    body: kopf.Body,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Reconcile a User."""
    run_controller(memo, USER.kind, namespace, name, dict(body))
