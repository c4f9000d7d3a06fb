"""Domain models describing API rate limiting state."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RateLimitPolicy(BaseModel):
    """Ceiling on admitted requests within a trailing window."""

    model_config = ConfigDict(frozen=True)

    max_requests: int = Field(gt=0, description="Requests admitted per window")
    window_seconds: int = Field(gt=0, description="Length of the sliding window")


class RateLimitDecision(BaseModel):
    """Represents the outcome of a rate limit check."""

    allowed: bool = Field(
        description="Whether the request is permitted under the configured quota",
    )
    limit: int | None = Field(
        default=None,
        description="Maximum requests per window; null when the endpoint is unlimited",
        ge=0,
    )
    remaining: int | None = Field(
        default=None,
        description="Requests still available after this one; null when unbounded",
        ge=0,
    )
    reset_time: datetime = Field(
        description="Check time plus the window length (now when unlimited)",
    )
    retry_after_seconds: int = Field(
        default=0,
        description="Seconds from the check until reset_time",
        ge=0,
    )

    @property
    def unlimited(self) -> bool:
        return self.limit is None


class RateLimitExceededPayload(BaseModel):
    """Structured error payload returned when a limit is exceeded."""

    message: str = Field(default="Rate limit exceeded")
    limit: int = Field(description="The enforced request cap for the evaluated window", ge=0)
    retry_after: int = Field(
        description="Seconds until clients should retry the blocked action",
        ge=0,
    )
    reset_time: datetime


class UsageWindowStatus(BaseModel):
    """Read-only view of a caller's consumption for one endpoint."""

    endpoint: str
    limit: int | None = None
    used: int = Field(ge=0)
    remaining: int | None = None
    window_seconds: int | None = None
