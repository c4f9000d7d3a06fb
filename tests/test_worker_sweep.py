from __future__ import annotations

from datetime import timedelta

import pytest
from prometheus_client import REGISTRY

from recap import worker
from recap.core.clock import utcnow
from recap.repositories.api_usage import SqlAlchemyApiUsageRepository


@pytest.fixture
def patched_sessionmaker(monkeypatch, session_factory):
    monkeypatch.setattr(worker, "get_sessionmaker", lambda: session_factory)
    return session_factory


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


async def _seed(session_factory, *ages: timedelta) -> None:
    now = utcnow()
    async with session_factory() as session:
        repo = SqlAlchemyApiUsageRepository(session)
        for age in ages:
            await repo.record(user_id="u1", endpoint="summaries:create", timestamp=now - age)


async def test_sweep_removes_records_older_than_retention(patched_sessionmaker):
    await _seed(patched_sessionmaker, timedelta(days=45), timedelta(days=2))

    assert await worker.sweep_expired_usage() == 1
    assert await worker.sweep_expired_usage(retention_days=1) == 1
    assert await worker.sweep_expired_usage() == 0


async def test_zero_day_retention_is_honoured(patched_sessionmaker):
    await _seed(patched_sessionmaker, timedelta(hours=1), timedelta(days=2))

    assert await worker.sweep_expired_usage(retention_days=0) == 2


async def test_negative_retention_is_rejected(patched_sessionmaker):
    with pytest.raises(ValueError):
        await worker.sweep_expired_usage(retention_days=-1)


async def test_sweep_outcomes_are_counted(patched_sessionmaker, engine):
    await _seed(patched_sessionmaker, timedelta(days=45), timedelta(days=40))
    completed = _sample("recap_usage_sweep_runs_total", {"outcome": "completed"})
    failed = _sample("recap_usage_sweep_runs_total", {"outcome": "failed"})
    removed = _sample("recap_usage_sweep_removed_total")

    assert await worker.sweep_expired_usage() == 2
    async with engine.begin() as conn:
        await conn.exec_driver_sql("DROP TABLE api_usage")
    assert await worker.sweep_expired_usage() is None

    assert _sample("recap_usage_sweep_runs_total", {"outcome": "completed"}) == completed + 1
    assert _sample("recap_usage_sweep_runs_total", {"outcome": "failed"}) == failed + 1
    assert _sample("recap_usage_sweep_removed_total") == removed + 2


def test_beat_schedule_runs_daily_sweep():
    entry = worker.celery_app.conf.beat_schedule["sweep-expired-usage"]

    assert entry["task"] == worker.SWEEP_TASK_NAME
    assert worker.SWEEP_TASK_NAME in worker.celery_app.tasks
