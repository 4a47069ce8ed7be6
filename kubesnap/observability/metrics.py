"""Prometheus metrics for the sync pipeline."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

fetch_failures_total = Counter(
    "kubesnap_fetch_failures_total",
    "List calls that failed or could not be converted, per resource kind.",
    ["kind"],
)

errors_reported_total = Counter(
    "kubesnap_errors_reported_total",
    "Errors surfaced to the presentation layer, per source.",
    ["source"],
)

sync_duration_seconds = Histogram(
    "kubesnap_sync_duration_seconds",
    "Wall time of one sync entry point, fetch through publish.",
    ["target"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

reconcile_rows = Histogram(
    "kubesnap_reconcile_rows",
    "Number of merged ledger rows per utilization reconciliation.",
    buckets=(0, 10, 50, 100, 500, 1000, 5000, 10000),
)


def start_metrics_server(port: int) -> bool:
    """Expose the default registry over HTTP. Returns False when disabled (port 0)."""
    if port <= 0:
        return False
    start_http_server(port)
    return True
