"""Domain models for generated video summaries."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SummaryRequest(BaseModel):
    """Payload accepted by the summarize endpoint."""

    youtube_url: str = Field(..., min_length=1, max_length=2048)
    word_count: int = Field(default=300, ge=50, le=2000, description="Target summary length")
    include_notes: bool = Field(
        default=True,
        description="Ask for bullet points and action items alongside the prose summary",
    )


class SummaryContent(BaseModel):
    """Structured output of the completion call."""

    title: str | None = None
    summary: str = ""
    bullet_points: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)


class SummaryCreate(SummaryContent):
    video_id: str
    video_url: str
    thumbnail: str | None = None
    word_count: int


class Summary(BaseModel):
    """Persisted summary owned by a single user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    video_id: str
    video_url: str
    video_title: str | None = None
    thumbnail: str | None = None
    summary: str
    bullet_points: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    word_count: int
    mermaid_code: str | None = None
    created_at: datetime


class SummaryListResponse(BaseModel):
    summaries: list[Summary]
    total_count: int
    has_more: bool
