from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.summaries import Summary, SummaryCreate
from ..models.summary import SummaryModel


class SummariesRepository(Protocol):
    async def create(self, user_id: UUID, payload: SummaryCreate) -> Summary: ...

    async def get(self, summary_id: UUID, user_id: UUID) -> Summary | None: ...

    async def list_for_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> tuple[list[Summary], int]: ...

    async def delete(self, summary_id: UUID, user_id: UUID) -> bool: ...

    async def set_diagram(
        self, summary_id: UUID, user_id: UUID, mermaid_code: str
    ) -> Summary | None: ...


class SqlAlchemySummariesRepository:
    """Summary persistence scoped to the owning user on every query."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: UUID, payload: SummaryCreate) -> Summary:
        model = SummaryModel(
            user_id=user_id,
            video_id=payload.video_id,
            video_url=payload.video_url,
            video_title=payload.title,
            thumbnail=payload.thumbnail,
            summary=payload.summary,
            bullet_points=list(payload.bullet_points),
            action_items=list(payload.action_items),
            word_count=payload.word_count,
        )
        self._session.add(model)
        await self._session.commit()
        await self._session.refresh(model)
        return Summary.model_validate(model)

    async def get(self, summary_id: UUID, user_id: UUID) -> Summary | None:
        model = await self._get_model(summary_id, user_id)
        if model is None:
            return None
        return Summary.model_validate(model)

    async def list_for_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> tuple[list[Summary], int]:
        result = await self._session.execute(
            select(SummaryModel)
            .where(SummaryModel.user_id == user_id)
            .order_by(SummaryModel.created_at.desc(), SummaryModel.id)
            .limit(limit)
            .offset(offset)
        )
        summaries = [Summary.model_validate(model) for model in result.scalars().all()]
        total = await self._session.scalar(
            select(func.count(SummaryModel.id)).where(SummaryModel.user_id == user_id)
        )
        return summaries, int(total or 0)

    async def delete(self, summary_id: UUID, user_id: UUID) -> bool:
        result = await self._session.execute(
            delete(SummaryModel).where(
                SummaryModel.id == summary_id,
                SummaryModel.user_id == user_id,
            )
        )
        await self._session.commit()
        return bool(result.rowcount)

    async def set_diagram(
        self, summary_id: UUID, user_id: UUID, mermaid_code: str
    ) -> Summary | None:
        model = await self._get_model(summary_id, user_id)
        if model is None:
            return None
        model.mermaid_code = mermaid_code
        await self._session.commit()
        await self._session.refresh(model)
        return Summary.model_validate(model)

    async def _get_model(self, summary_id: UUID, user_id: UUID) -> SummaryModel | None:
        result = await self._session.execute(
            select(SummaryModel).where(
                SummaryModel.id == summary_id,
                SummaryModel.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
