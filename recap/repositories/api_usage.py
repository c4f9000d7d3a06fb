"""Persistence for the append-only API usage ledger."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import DefaultDict, Protocol, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.api_usage import ApiUsageModel


class UsageStoreError(RuntimeError):
    """Raised when the usage ledger cannot be read or written."""


class ApiUsageRepository(Protocol):
    """Interface describing operations on the usage ledger."""

    async def count_since(self, *, user_id: str, endpoint: str, since: datetime) -> int:
        """Count records for the partition with ``timestamp >= since``."""

    async def record(self, *, user_id: str, endpoint: str, timestamp: datetime) -> None:
        """Append one admitted request."""

    async def delete_before(self, cutoff: datetime) -> int:
        """Remove every record with ``timestamp < cutoff`` and return how many."""


class InMemoryApiUsageRepository:
    """Process-local ledger for tests and single-process development."""

    def __init__(self) -> None:
        self._records: DefaultDict[Tuple[str, str], list[datetime]] = defaultdict(list)

    async def count_since(self, *, user_id: str, endpoint: str, since: datetime) -> int:
        return sum(1 for ts in self._records.get((user_id, endpoint), ()) if ts >= since)

    async def record(self, *, user_id: str, endpoint: str, timestamp: datetime) -> None:
        self._records[(user_id, endpoint)].append(timestamp)

    async def delete_before(self, cutoff: datetime) -> int:
        removed = 0
        for key in list(self._records):
            kept = [ts for ts in self._records[key] if ts >= cutoff]
            removed += len(self._records[key]) - len(kept)
            if kept:
                self._records[key] = kept
            else:
                del self._records[key]
        return removed

    def total(self, *, user_id: str | None = None, endpoint: str | None = None) -> int:
        return sum(
            len(stamps)
            for (uid, ep), stamps in self._records.items()
            if (user_id is None or uid == user_id) and (endpoint is None or ep == endpoint)
        )


class SqlAlchemyApiUsageRepository:
    """Stores usage records in the ``api_usage`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_since(self, *, user_id: str, endpoint: str, since: datetime) -> int:
        try:
            result = await self._session.execute(
                select(func.count(ApiUsageModel.id)).where(
                    ApiUsageModel.user_id == user_id,
                    ApiUsageModel.endpoint == endpoint,
                    ApiUsageModel.timestamp >= since,
                )
            )
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise UsageStoreError("failed to count usage records") from exc
        return int(result.scalar_one())

    async def record(self, *, user_id: str, endpoint: str, timestamp: datetime) -> None:
        self._session.add(
            ApiUsageModel(user_id=user_id, endpoint=endpoint, timestamp=timestamp)
        )
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise UsageStoreError("failed to record usage") from exc

    async def delete_before(self, cutoff: datetime) -> int:
        try:
            result = await self._session.execute(
                delete(ApiUsageModel).where(ApiUsageModel.timestamp < cutoff)
            )
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise UsageStoreError("failed to delete expired usage records") from exc
        return result.rowcount or 0
