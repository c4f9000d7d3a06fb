from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ...core.config import get_settings
from ...core.security import create_access_token
from ...domain.auth import RegisterRequest, TokenRequest, TokenResponse
from ...domain.users import User, UserCreate
from ...repositories.users import UsersRepository
from ..dependencies import get_current_user, get_users_repository

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])


def _token_response(user: User) -> TokenResponse:
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(user.id),
        expires_in=settings.access_token_expire_minutes * 60,
        user=user,
    )


@router.post("/auth/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    users_repo: UsersRepository = Depends(get_users_repository),
) -> TokenResponse:
    try:
        user = await users_repo.create(
            UserCreate(email=payload.email, password=payload.password, full_name=payload.full_name)
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        ) from exc
    logger.info("auth.registered", user_id=str(user.id))
    return _token_response(user)


@router.post("/auth/token", response_model=TokenResponse)
async def issue_token(
    payload: TokenRequest,
    users_repo: UsersRepository = Depends(get_users_repository),
) -> TokenResponse:
    user = await users_repo.verify_credentials(payload.email, payload.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    updated_user = await users_repo.touch_last_login(user.id)
    return _token_response(updated_user or user)


@router.get("/auth/me", response_model=User)
async def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user
