"""kopf bindings for Bucket and Token."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import RECONCILE_INTERVAL_SECONDS, RETRY_INTERVAL_SECONDS
from ..utils.kube import BUCKET, TOKEN
from . import run_controller


@kopf.on.resume(BUCKET.group_version, BUCKET.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.create(BUCKET.group_version, BUCKET.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.update(BUCKET.group_version, BUCKET.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.delete(BUCKET.group_version, BUCKET.kind, optional=True, backoff=RETRY_INTERVAL_SECONDS)
@kopf.timer(
    BUCKET.group_version,
    BUCKET.kind,
    interval=RECONCILE_INTERVAL_SECONDS,
    initial_delay=RECONCILE_INTERVAL_SECONDS,
    backoff=RETRY_INTERVAL_SECONDS,
)
def reconcile_bucket(
    name: str,
    namespace: str,
    body: kopf.Body,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Reconcile a Bucket."""
    run_controller(memo, BUCKET.kind, namespace, name, dict(body))


@kopf.on.resume(TOKEN.group_version, TOKEN.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.create(TOKEN.group_version, TOKEN.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.update(TOKEN.group_version, TOKEN.kind, backoff=RETRY_INTERVAL_SECONDS)
@kopf.on.delete(TOKEN.group_version, TOKEN.kind, optional=True, backoff=RETRY_INTERVAL_SECONDS)
@kopf.timer(
    TOKEN.group_version,
    TOKEN.kind,
    interval=RECONCILE_INTERVAL_SECONDS,
    initial_delay=RECONCILE_INTERVAL_SECONDS,
    backoff=RETRY_INTERVAL_SECONDS,
)
def reconcile_token(
    name: str,
    namespace: str,
    body: kopf.Body,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Reconcile a Token."""
    run_controller(memo, TOKEN.kind, namespace, name, dict(body))
