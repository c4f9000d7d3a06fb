from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.security import hash_password, verify_password
from ..domain.users import User, UserCreate
from ..models.user import UserModel


class UsersRepository(Protocol):
    """Persistence interface for user records."""

    async def create(self, payload: UserCreate) -> User: ...

    async def get(self, user_id: UUID) -> User | None: ...

    async def touch_last_login(self, user_id: UUID) -> User | None: ...

    async def verify_credentials(self, email: str, password: str) -> User | None: ...


class SqlAlchemyUsersRepository:
    """SQLAlchemy-backed repository for user persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, payload: UserCreate) -> User:
        model = UserModel(
            email=payload.email.lower(),
            full_name=payload.full_name,
            password_hash=hash_password(payload.password),
        )
        self._session.add(model)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ValueError("user with email already exists") from exc
        await self._session.refresh(model)
        return User.model_validate(model)

    async def get(self, user_id: UUID) -> User | None:
        model = await self._session.get(UserModel, user_id)
        if model is None:
            return None
        return User.model_validate(model)

    async def touch_last_login(self, user_id: UUID) -> User | None:
        now = utcnow()
        await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(last_login_at=now, updated_at=now)
        )
        await self._session.commit()
        model = await self._session.get(UserModel, user_id, populate_existing=True)
        if model is None:
            return None
        return User.model_validate(model)

    async def verify_credentials(self, email: str, password: str) -> User | None:
        result = await self._session.execute(
            select(UserModel).where(UserModel.email == email.lower())
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        if not verify_password(password, model.password_hash):
            return None
        return User.model_validate(model)
