from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    """Shared fields for user representations."""

    email: EmailStr = Field(..., description="Primary email used for login")
    full_name: Optional[str] = Field(
        default=None,
        max_length=160,
        description="Display name shown next to saved summaries",
    )


class UserCreate(UserBase):
    """Payload accepted when creating a new user."""

    password: str = Field(
        ..., min_length=8, max_length=72, description="Raw password to be hashed"
    )


class User(UserBase):
    """Persisted user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None
