"""Prometheus metrics for the console operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_runs_total = Counter(
    "console_operator_reconcile_runs_total",
    "Total number of reconciliations",
    ["group_version", "kind"],
)

reconcile_failures_total = Counter(
    "console_operator_reconcile_failures_total",
    "Total number of failed reconciliations",
    ["group_version", "kind", "instance", "error"],
)

reconcile_total = Counter(
    "console_operator_reconcile_total",
    "Reconciliations by outcome",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "console_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.01, 0.1, 0.25, 0.5, 1.0, 5.0, 15.0, 60.0],
)

# Backend call metrics
api_call_total = Counter(
    "console_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "console_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

backend_up = Gauge(
    "console_operator_backend_up",
    "Whether the connection to a backend is healthy",
    ["backend"],
)
