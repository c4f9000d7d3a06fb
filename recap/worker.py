"""Celery app running the scheduled usage ledger sweep."""

from __future__ import annotations

import asyncio
import time
from datetime import timedelta

import structlog
from celery import Celery
from celery.schedules import crontab

from .core.config import get_settings
from .core.logging import configure_logging
from .db import dispose_engine, get_sessionmaker
from .repositories.api_usage import SqlAlchemyApiUsageRepository
from .services.rate_limiter import RateLimiter, RateLimitStoreError, build_rate_limit_policies
from .telemetry.metrics import record_usage_sweep

logger = structlog.get_logger(__name__)

SWEEP_TASK_NAME = "usage.sweep_expired"


def build_celery_app() -> Celery:
    settings = get_settings()
    broker = settings.celery_broker_url or settings.redis_url or "memory://"
    app = Celery("recap", broker=broker)
    app.conf.update(
        task_default_queue="default",
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        beat_schedule={
            "sweep-expired-usage": {
                "task": SWEEP_TASK_NAME,
                "schedule": crontab(minute=0, hour=settings.usage_sweep_hour),
            }
        },
    )
    return app


configure_logging()
celery_app = build_celery_app()


async def sweep_expired_usage(retention_days: int | None = None) -> int | None:
    """Run one sweep; returns the removed count, or ``None`` when it failed.

    A failed sweep only delays storage reclamation, so it is logged and left
    for the next scheduled run.
    """

    settings = get_settings()
    days = settings.usage_retention_days if retention_days is None else retention_days
    if days < 0:
        raise ValueError("retention_days must not be negative")
    session_factory = get_sessionmaker()
    start = time.perf_counter()
    removed: int | None = None
    async with session_factory() as session:
        limiter = RateLimiter(
            SqlAlchemyApiUsageRepository(session),
            build_rate_limit_policies(settings),
        )
        try:
            removed = await limiter.sweep_expired(timedelta(days=days))
        except RateLimitStoreError as exc:
            logger.error("usage.sweep.failed", error=str(exc.__cause__ or exc))
    record_usage_sweep(removed, time.perf_counter() - start)
    return removed


@celery_app.task(name=SWEEP_TASK_NAME)
def sweep_expired_usage_task(retention_days: int | None = None) -> dict:
    """Celery entrypoint that executes the sweep coroutine."""

    async def _run() -> int | None:
        try:
            return await sweep_expired_usage(retention_days)
        finally:
            # Each task gets a fresh event loop; pooled connections can't outlive it.
            await dispose_engine()

    removed = asyncio.run(_run())
    return {"removed": removed, "ok": removed is not None}
