from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...domain.rate_limits import UsageWindowStatus
from ...domain.users import User
from ...services.rate_limiter import RateLimiter, RateLimitStoreError
from ..dependencies import get_current_user, get_rate_limiter

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("/{endpoint}", response_model=UsageWindowStatus)
async def read_usage(
    endpoint: str,
    current_user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> UsageWindowStatus:
    try:
        return await limiter.peek(str(current_user.id), endpoint)
    except RateLimitStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiter is temporarily unavailable",
        ) from exc
