"""OTLP trace export, enabled only when an endpoint is configured."""

from __future__ import annotations

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .. import __version__
from ..core.config import Settings, get_settings

_provider: TracerProvider | None = None


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value`` exporter headers, skipping malformed pairs."""

    pairs = (part.partition("=") for part in (raw or "").split(","))
    return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip()}


def _build_provider(settings: Settings) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name or settings.project_name,
                "service.version": __version__,
            }
        )
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.otel_exporter_otlp_endpoint,
                headers=parse_headers(settings.otel_exporter_otlp_headers),
            )
        )
    )
    return provider


def configure_tracing(app: FastAPI) -> None:
    """Instrument ``app``; the global provider is installed once per process."""

    global _provider
    settings = get_settings()
    if not settings.otel_exporter_otlp_endpoint:
        return
    if _provider is None:
        _provider = _build_provider(settings)
        trace.set_tracer_provider(_provider)
    FastAPIInstrumentor.instrument_app(app, tracer_provider=_provider)
