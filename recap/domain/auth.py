from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from .users import User, UserCreate


class RegisterRequest(UserCreate):
    """Sign-up payload."""


class TokenRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: User
