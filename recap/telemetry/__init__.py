"""Prometheus metrics and OpenTelemetry tracing."""

from .http import normalise_path, route_label, setup_prometheus
from .metrics import record_rate_limit_decision, record_usage_sweep
from .tracing import configure_tracing, parse_headers

__all__ = [
    "configure_tracing",
    "normalise_path",
    "parse_headers",
    "record_rate_limit_decision",
    "record_usage_sweep",
    "route_label",
    "setup_prometheus",
]
