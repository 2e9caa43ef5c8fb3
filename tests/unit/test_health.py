"""Tests for health, readiness and diagnostics endpoints."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from console_operator.context import BackendRegistry
from console_operator.health import create_combined_wsgi_app
from console_operator.state import DiagnosticsState

from conftest import FakeSqlBackend


def call(app, path: str) -> tuple[str, bytes]:
    environ = {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SCRIPT_NAME": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
        "wsgi.input": None,
    }
    start_response = MagicMock()
    body = b"".join(app(environ, start_response))
    return start_response.call_args[0][0], body


@pytest.fixture
def backend():
    return FakeSqlBackend()


@pytest.fixture
def app(backend):
    return create_combined_wsgi_app(BackendRegistry({"pg1": backend}), DiagnosticsState())


class TestCombinedApp:
    """Test cases for the combined WSGI application."""

    def test_healthz(self, app):
        status, body = call(app, "/healthz")
        assert status.startswith("200")
        assert json.loads(body) == {"status": "ok"}

    def test_readyz_when_backends_healthy(self, app):
        status, body = call(app, "/readyz")
        assert status.startswith("200")
        assert json.loads(body) == {"status": "ready", "backends": {"pg1": True}}

    def test_readyz_when_backend_lost(self, app, backend):
        """Test that a lost PostgreSQL connection makes the operator unready."""
        backend.healthy = False

        status, body = call(app, "/readyz")

        assert status.startswith("503")
        assert json.loads(body)["backends"] == {"pg1": False}

    def test_healthz_ignores_backend_health(self, app, backend):
        backend.healthy = False

        status, _ = call(app, "/healthz")

        assert status.startswith("200")

    def test_diagnostics(self, app):
        status, body = call(app, "/")
        data = json.loads(body)
        assert status.startswith("200")
        assert data["reporter"] == "console.tjo.cloud"
        assert "last_event" in data

    def test_metrics(self, app):
        status, body = call(app, "/metrics")
        assert status.startswith("200")
        assert b"console_operator_reconcile_runs_total" in body

    def test_unknown_path(self, app):
        status, _ = call(app, "/nope")
        assert status.startswith("404")
