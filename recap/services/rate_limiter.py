"""Sliding-window admission control backed by the usage ledger.

Each check counts the caller's records inside the trailing window and, when
the count is under the policy ceiling, appends a new record. The count and the
insert are separate statements: two concurrent requests from the same caller
can both observe ``count < max_requests`` and both be admitted, so under load
a partition can exceed its ceiling by up to the number of in-flight requests
minus one. Counts are never cached between calls.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timedelta

import structlog

from ..core.clock import utcnow
from ..core.config import Settings
from ..domain.rate_limits import RateLimitDecision, RateLimitPolicy, UsageWindowStatus
from ..repositories.api_usage import ApiUsageRepository, UsageStoreError
from ..telemetry.metrics import record_rate_limit_decision

logger = structlog.get_logger(__name__)

SUMMARIZE_ENDPOINT = "summaries:create"
TRANSLATE_ENDPOINT = "summaries:translate"
DIAGRAM_ENDPOINT = "summaries:diagram"


class RateLimitStoreError(RuntimeError):
    """The ledger could not be read or written, so no decision was made."""


def build_rate_limit_policies(settings: Settings) -> dict[str, RateLimitPolicy]:
    """Build the endpoint policy table from settings.

    Optional policies only apply when both their request ceiling and window
    are configured.
    """

    policies = {
        SUMMARIZE_ENDPOINT: RateLimitPolicy(
            max_requests=settings.rate_limit_summarize_max_requests,
            window_seconds=settings.rate_limit_summarize_window_seconds,
        )
    }
    optional = (
        (
            TRANSLATE_ENDPOINT,
            settings.rate_limit_translate_max_requests,
            settings.rate_limit_translate_window_seconds,
        ),
        (
            DIAGRAM_ENDPOINT,
            settings.rate_limit_diagram_max_requests,
            settings.rate_limit_diagram_window_seconds,
        ),
    )
    for endpoint, max_requests, window_seconds in optional:
        if max_requests and window_seconds:
            policies[endpoint] = RateLimitPolicy(
                max_requests=max_requests, window_seconds=window_seconds
            )
    return policies


class RateLimiter:
    """Per-user, per-endpoint admission control over an ``ApiUsageRepository``."""

    def __init__(
        self,
        repository: ApiUsageRepository,
        policies: Mapping[str, RateLimitPolicy],
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repository = repository
        self._policies = dict(policies)
        self._clock = clock

    async def check_and_record(self, user_id: str, endpoint: str) -> RateLimitDecision:
        """Decide whether to admit a request and record it when admitted.

        Raises ``RateLimitStoreError`` when the ledger is unavailable; callers
        must not read that as either an admission or a denial.
        """

        now = self._clock()
        policy = self._policies.get(endpoint)
        if policy is None:
            return RateLimitDecision(allowed=True, reset_time=now)

        window = timedelta(seconds=policy.window_seconds)
        try:
            count = await self._repository.count_since(
                user_id=user_id, endpoint=endpoint, since=now - window
            )
        except UsageStoreError as exc:
            record_rate_limit_decision(endpoint, "error")
            logger.error("rate_limit.count_failed", endpoint=endpoint, user_id=user_id, error=str(exc))
            raise RateLimitStoreError("usage ledger is unavailable") from exc

        allowed = count < policy.max_requests
        decision = RateLimitDecision(
            allowed=allowed,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - count - 1),
            reset_time=now + window,
            retry_after_seconds=policy.window_seconds,
        )

        if not allowed:
            record_rate_limit_decision(endpoint, "denied")
            logger.info(
                "rate_limit.denied",
                endpoint=endpoint,
                user_id=user_id,
                count=count,
                limit=policy.max_requests,
            )
            return decision

        try:
            await self._repository.record(user_id=user_id, endpoint=endpoint, timestamp=now)
        except UsageStoreError as exc:
            record_rate_limit_decision(endpoint, "error")
            logger.error("rate_limit.record_failed", endpoint=endpoint, user_id=user_id, error=str(exc))
            raise RateLimitStoreError("usage ledger is unavailable") from exc

        record_rate_limit_decision(endpoint, "allowed")
        logger.debug("rate_limit.allowed", endpoint=endpoint, user_id=user_id, remaining=decision.remaining)
        return decision

    async def peek(self, user_id: str, endpoint: str) -> UsageWindowStatus:
        """Report current consumption without recording anything."""

        policy = self._policies.get(endpoint)
        if policy is None:
            return UsageWindowStatus(endpoint=endpoint, used=0)
        since = self._clock() - timedelta(seconds=policy.window_seconds)
        try:
            used = await self._repository.count_since(
                user_id=user_id, endpoint=endpoint, since=since
            )
        except UsageStoreError as exc:
            raise RateLimitStoreError("usage ledger is unavailable") from exc
        return UsageWindowStatus(
            endpoint=endpoint,
            limit=policy.max_requests,
            used=used,
            remaining=max(0, policy.max_requests - used),
            window_seconds=policy.window_seconds,
        )

    async def sweep_expired(self, retention: timedelta) -> int:
        """Delete records older than ``retention`` and return how many went."""

        cutoff = self._clock() - retention
        try:
            removed = await self._repository.delete_before(cutoff)
        except UsageStoreError as exc:
            raise RateLimitStoreError("usage ledger sweep failed") from exc
        logger.info("usage.sweep.completed", cutoff=cutoff.isoformat(), removed=removed)
        return removed
