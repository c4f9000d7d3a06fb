from functools import lru_cache
from secrets import token_urlsafe
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_v1_prefix: str = "/v1"
    project_name: str = "Recap API"
    cors_origins: List[str] = []
    secret_key: str = Field(default_factory=lambda: token_urlsafe(32))
    access_token_expire_minutes: int = 60

    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy async connection string for the primary database",
    )

    log_level: str = Field(default="INFO", description="Minimum level emitted by structlog")
    log_json: bool = Field(default=False, description="Render log lines as JSON when true")

    openai_api_key: str | None = Field(default=None, description="API key for the completion service")
    openai_model: str = Field(default="gpt-4o-mini", description="Chat completion model name")
    openai_timeout_seconds: float = Field(default=60.0, gt=0)
    summary_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    translation_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    translation_max_tokens: int = Field(default=2000, ge=1)
    diagram_max_tokens: int = Field(default=1000, ge=1)
    transcript_max_chars: int = Field(
        default=30_000,
        ge=1,
        description="Transcripts longer than this are truncated before summarisation",
    )

    rate_limit_summarize_max_requests: int = Field(default=10, ge=1)
    rate_limit_summarize_window_seconds: int = Field(default=3600, ge=1)
    rate_limit_translate_max_requests: int | None = Field(
        default=None,
        ge=1,
        description="Translation is unlimited unless both translate limits are set",
    )
    rate_limit_translate_window_seconds: int | None = Field(default=None, ge=1)
    rate_limit_diagram_max_requests: int | None = Field(
        default=None,
        ge=1,
        description="Diagram generation is unlimited unless both diagram limits are set",
    )
    rate_limit_diagram_window_seconds: int | None = Field(default=None, ge=1)

    usage_retention_days: int = Field(
        default=30,
        ge=1,
        description="Usage records older than this are removed by the sweep task",
    )
    usage_sweep_hour: int = Field(
        default=3,
        ge=0,
        le=23,
        description="UTC hour at which Celery beat runs the usage sweep",
    )

    redis_url: str | None = Field(
        default=None,
        description="Redis connection string used as the Celery broker fallback",
    )
    celery_broker_url: str | None = Field(
        default=None,
        description="Broker URL for Celery workers; falls back to Redis when unset",
    )

    enable_prometheus_metrics: bool = Field(
        default=True, description="Expose Prometheus metrics endpoint when true"
    )
    prometheus_metrics_path: str = Field(
        default="/metrics/prometheus",
        description="Path where scraped Prometheus metrics are served",
    )
    otel_exporter_otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP HTTP endpoint for exporting traces",
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None,
        description="Comma separated key=value pairs added to OTLP requests",
    )
    otel_service_name: str | None = Field(
        default=None, description="Optional override for OpenTelemetry service.name"
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
