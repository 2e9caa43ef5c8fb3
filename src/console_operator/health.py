"""Health, readiness, diagnostics and metrics endpoints for the operator."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Request, Response

from .context import BackendRegistry
from .state import DiagnosticsState

logger = logging.getLogger(__name__)


def _json_response(data: dict[str, Any], status: int = 200) -> Response:
    return Response(json.dumps(data), mimetype="application/json", status=status)


def create_combined_wsgi_app(backends: BackendRegistry, diagnostics: DiagnosticsState) -> Any:
    """Create a WSGI app that serves health and diagnostics, delegating /metrics to prometheus.

    Routes:
        /healthz: always ok while the process serves requests
        /readyz: 503 while any PostgreSQL backend connection is unhealthy
        /: diagnostics with the time of the last reconciliation
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        request = Request(environ)
        path = request.path

        if path == "/healthz":
            response = _json_response({"status": "ok"})
        elif path == "/readyz":
            backends_health = backends.health()
            if all(backends_health.values()):
                response = _json_response({"status": "ready", "backends": backends_health})
            else:
                response = _json_response({"status": "unavailable", "backends": backends_health}, status=503)
        elif path == "/":
            response = _json_response(diagnostics.snapshot())
        elif path == "/metrics":
            return metrics_app(environ, start_response)
        else:
            response = _json_response({"error": "not found"}, status=404)

        return response(environ, start_response)

    return combined_app


def start_server(port: int, backends: BackendRegistry, diagnostics: DiagnosticsState) -> BaseWSGIServer:
    """Serve the combined app from a daemon thread and return the server."""
    app = create_combined_wsgi_app(backends, diagnostics)
    server = make_server("", port, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info(f"Serving metrics and health endpoints on port {port}")
    return server
