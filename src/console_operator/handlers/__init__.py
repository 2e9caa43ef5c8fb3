"""kopf bindings for all resource kinds.

Importing this package registers the handlers with kopf.
"""

from __future__ import annotations

from typing import Any

import kopf

from ..state import ResourceRef
from ..utils.errors import sanitize_exception


def run_controller(memo: Any, kind: str, namespace: str, name: str, body: dict[str, Any]) -> None:
    """Reconcile one object through the controller registered for ``kind``.

    Raises:
        kopf.TemporaryError: If reconciliation failed, delayed by the controller's retry interval
    """
    controller = memo.controllers[kind]
    ref = ResourceRef(namespace, name)
    try:
        controller.reconcile(ref)
    except Exception as e:
        action = controller.error_policy(ref, e, body)
        raise kopf.TemporaryError(sanitize_exception(e), delay=action.requeue_after) from e


from . import postgresql, s3  # noqa: E402,F401
