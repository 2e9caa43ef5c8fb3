"""Main entry point for the console operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf
from pydantic import ValidationError

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .context import Context, connect_backends
from .controller import Controller
from .resources import BucketMachine, DatabaseMachine, TokenMachine, UserMachine
from .settings import Settings
from .tracing import initialize_tracing
from .utils.errors import ConsoleError, sanitize_exception

logger = logging.getLogger(__name__)

MACHINES = (DatabaseMachine, UserMachine, BucketMachine, TokenMachine)


def build_controllers(context: Context) -> dict[str, Controller]:
    """One controller per resource kind, keyed by kind."""
    controllers = {}
    for machine_cls in MACHINES:
        machine = machine_cls(context)
        controllers[machine.kind.kind] = Controller(context, machine)
    return controllers


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and connect to every backend."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    try:
        app_settings = Settings()
    except ValidationError as e:
        raise kopf.PermanentError(f"Invalid settings: {sanitize_exception(e)}") from e

    try:
        backends = connect_backends(app_settings)
    except ConsoleError as e:
        raise kopf.PermanentError(f"Failed to connect to backends: {sanitize_exception(e)}") from e

    context = Context.from_cluster(backends)
    memo.context = context
    memo.controllers = build_controllers(context)
    memo.server = health.start_server(app_settings.metrics_port, backends, context.diagnostics)
    logger.info(f"Operator configured with postgresql backends {sorted(backends.sql_backends)}")


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop the HTTP server and close backend connections."""
    server = getattr(memo, "server", None)
    if server is not None:
        server.shutdown()
    context = getattr(memo, "context", None)
    if context is not None:
        context.backends.close()


def main() -> None:
    """Run the operator across all namespaces as the single active instance."""
    kopf.run(clusterwide=True, standalone=True)


if __name__ == "__main__":
    main()
