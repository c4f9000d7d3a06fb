"""Pytest configuration and fixtures for API tests."""

from __future__ import annotations

from typing import AsyncGenerator

import httpx
import pytest
from fastapi import Depends, FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recap.api.dependencies import (
    get_api_usage_repository,
    get_completion_client,
    get_rate_limiter,
    get_transcript_provider,
)
from recap.db import get_session, init_db
from recap.domain.rate_limits import RateLimitPolicy
from recap.main import create_app
from recap.repositories.api_usage import ApiUsageRepository, InMemoryApiUsageRepository
from recap.services.rate_limiter import DIAGRAM_ENDPOINT, SUMMARIZE_ENDPOINT, RateLimiter

from tests.fakes import FakeClock, FakeCompletionClient, FakeTranscriptProvider


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_repo() -> InMemoryApiUsageRepository:
    return InMemoryApiUsageRepository()


@pytest.fixture
async def engine():
    """In-memory SQLite database shared by every session in a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def policies() -> dict[str, RateLimitPolicy]:
    return {
        SUMMARIZE_ENDPOINT: RateLimitPolicy(max_requests=2, window_seconds=3600),
        DIAGRAM_ENDPOINT: RateLimitPolicy(max_requests=1, window_seconds=60),
    }


@pytest.fixture
def transcripts() -> FakeTranscriptProvider:
    return FakeTranscriptProvider()


@pytest.fixture
def completions() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def app(session_factory, policies, clock, transcripts, completions) -> FastAPI:
    app = create_app()

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _limiter(
        repo: ApiUsageRepository = Depends(get_api_usage_repository),
    ) -> RateLimiter:
        return RateLimiter(repo, policies, clock=clock)

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_rate_limiter] = _limiter
    app.dependency_overrides[get_transcript_provider] = lambda: transcripts
    app.dependency_overrides[get_completion_client] = lambda: completions
    return app


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register(client: httpx.AsyncClient, email: str) -> dict[str, str]:
    response = await client.post(
        "/v1/auth/register",
        json={"email": email, "password": "correct-horse", "full_name": "Test User"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client) -> dict[str, str]:
    return await register(client, "alice@example.com")


@pytest.fixture
async def other_headers(client) -> dict[str, str]:
    return await register(client, "bob@example.com")
