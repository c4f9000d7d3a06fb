from __future__ import annotations

from functools import lru_cache

import structlog
from fastapi import Depends, HTTPException, Query, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.security import InvalidTokenError, decode_access_token
from ..db import get_session
from ..domain.pagination import PaginationParams
from ..domain.rate_limits import RateLimitDecision, RateLimitExceededPayload, RateLimitPolicy
from ..domain.users import User
from ..repositories.api_usage import ApiUsageRepository, SqlAlchemyApiUsageRepository
from ..repositories.summaries import SqlAlchemySummariesRepository, SummariesRepository
from ..repositories.users import SqlAlchemyUsersRepository, UsersRepository
from ..services.completions import CompletionClient, CompletionConfigError, OpenAICompletionClient
from ..services.rate_limiter import RateLimiter, RateLimitStoreError, build_rate_limit_policies
from ..services.transcripts import TranscriptProvider, YouTubeTranscriptProvider

logger = structlog.get_logger(__name__)

_http_bearer = HTTPBearer(auto_error=False)
_transcript_provider: TranscriptProvider | None = None
_completion_client: CompletionClient | None = None


@lru_cache
def get_rate_limit_policies() -> dict[str, RateLimitPolicy]:
    """Policy table, built once per process from settings."""

    return build_rate_limit_policies(get_settings())


async def get_users_repository(
    session: AsyncSession = Depends(get_session),
) -> UsersRepository:
    return SqlAlchemyUsersRepository(session)


async def get_summaries_repository(
    session: AsyncSession = Depends(get_session),
) -> SummariesRepository:
    return SqlAlchemySummariesRepository(session)


async def get_api_usage_repository(
    session: AsyncSession = Depends(get_session),
) -> ApiUsageRepository:
    return SqlAlchemyApiUsageRepository(session)


async def get_rate_limiter(
    repo: ApiUsageRepository = Depends(get_api_usage_repository),
) -> RateLimiter:
    return RateLimiter(repo, get_rate_limit_policies())


async def get_transcript_provider() -> TranscriptProvider:
    global _transcript_provider
    if _transcript_provider is None:
        _transcript_provider = YouTubeTranscriptProvider(
            max_chars=get_settings().transcript_max_chars
        )
    return _transcript_provider


async def get_completion_client() -> CompletionClient:
    global _completion_client
    if _completion_client is None:
        try:
            _completion_client = OpenAICompletionClient(get_settings())
        except CompletionConfigError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(exc),
            ) from exc
    return _completion_client


async def get_pagination_params(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> PaginationParams:
    return PaginationParams(limit=limit, offset=offset)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_http_bearer),
    users_repo: UsersRepository = Depends(get_users_repository),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user_id = decode_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    user = await users_repo.get(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    if decision.unlimited:
        return {}
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": decision.reset_time.isoformat() + "Z",
    }
    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after_seconds)
    return headers


async def admit_request(
    limiter: RateLimiter,
    user: User,
    endpoint: str,
    response: Response | None = None,
) -> RateLimitDecision:
    """Run the limiter and translate its outcome into HTTP semantics.

    A denial becomes 429 with the reset time. A ledger failure becomes 503 so
    the guarded work is never performed without an admission decision.
    """

    try:
        decision = await limiter.check_and_record(str(user.id), endpoint)
    except RateLimitStoreError as exc:
        logger.error("rate_limit.unavailable", endpoint=endpoint, user_id=str(user.id))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiter is temporarily unavailable",
        ) from exc

    headers = rate_limit_headers(decision)
    if not decision.allowed:
        payload = RateLimitExceededPayload(
            limit=decision.limit or 0,
            retry_after=decision.retry_after_seconds,
            reset_time=decision.reset_time,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=payload.model_dump(mode="json"),
            headers=headers,
        )
    if response is not None:
        response.headers.update(headers)
    return decision
