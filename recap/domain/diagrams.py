from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class DiagramRequest(BaseModel):
    summary: str = Field(..., min_length=1)
    bullet_points: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    summary_id: UUID | None = Field(
        default=None,
        description="Store the generated code on this summary when provided",
    )


class DiagramResponse(BaseModel):
    mermaid_code: str
    success: bool = True
