"""Tests for tracing helpers."""

from __future__ import annotations

import pytest

from console_operator.tracing import get_trace_id, initialize_tracing, trace_span


class TestTracing:
    """Test cases for tracing helpers without a configured exporter."""

    def test_no_trace_id_outside_span(self):
        assert get_trace_id() is None

    def test_initialize_tracing_disabled(self, monkeypatch):
        monkeypatch.delenv("OTEL_TRACES_ENABLED", raising=False)

        initialize_tracing()

    def test_trace_span_reraises(self):
        with pytest.raises(ValueError):
            with trace_span("reconcile Bucket", kind="Bucket"):
                raise ValueError("boom")
