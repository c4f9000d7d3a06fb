"""Prometheus collectors for HTTP traffic and the usage ledger."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

HTTP_REQUESTS = Counter(
    "recap_http_requests_total",
    "HTTP requests served, by route template",
    labelnames=("method", "route", "status"),
)
HTTP_LATENCY = Histogram(
    "recap_http_request_duration_seconds",
    "Time spent serving HTTP requests",
    labelnames=("method", "route"),
    # Summaries wait on the transcript fetch and a completion call.
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60),
)

RATE_LIMIT_DECISIONS = Counter(
    "recap_rate_limit_decisions_total",
    "Admission outcomes per rate-limited endpoint",
    labelnames=("endpoint", "outcome"),
)

USAGE_SWEEP_RUNS = Counter(
    "recap_usage_sweep_runs_total",
    "Usage ledger sweeps, by outcome",
    labelnames=("outcome",),
)
USAGE_SWEEP_REMOVED = Counter(
    "recap_usage_sweep_removed_total",
    "Usage records deleted by the retention sweep",
)
USAGE_SWEEP_DURATION = Histogram(
    "recap_usage_sweep_duration_seconds",
    "Wall time of one retention sweep",
    buckets=(0.1, 0.5, 1, 5, 15, 60, 300),
)


def record_rate_limit_decision(endpoint: str, outcome: str) -> None:
    """Count one limiter outcome: ``allowed``, ``denied`` or ``error``."""

    RATE_LIMIT_DECISIONS.labels(endpoint=endpoint, outcome=outcome).inc()


def record_usage_sweep(removed: int | None, duration: float) -> None:
    """Record a finished sweep; ``removed`` is ``None`` when it failed."""

    USAGE_SWEEP_DURATION.observe(duration)
    if removed is None:
        USAGE_SWEEP_RUNS.labels(outcome="failed").inc()
        return
    USAGE_SWEEP_RUNS.labels(outcome="completed").inc()
    USAGE_SWEEP_REMOVED.inc(removed)
