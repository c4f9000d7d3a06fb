"""Password hashing and bearer token helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import get_settings

ALGORITHM = "HS256"
TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(ValueError):
    """Raised when a bearer token cannot be decoded into a user id."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Sign a token whose subject is the user's id."""

    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {"sub": str(user_id), "typ": TOKEN_TYPE, "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> UUID:
    """Return the user id carried by ``token``.

    Expired, tampered and malformed tokens all raise ``InvalidTokenError``.
    """

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("token signature or expiry is invalid") from exc
    if payload.get("typ") != TOKEN_TYPE or not payload.get("sub"):
        raise InvalidTokenError("token is missing required claims")
    try:
        return UUID(payload["sub"])
    except ValueError as exc:
        raise InvalidTokenError("token subject is not a user id") from exc
