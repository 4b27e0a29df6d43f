"""
Per-subject sliding-window rate limiting.

Each authenticated subject gets one window of ``window_seconds`` with a
cap that depends on its canonical role. Unauthenticated calls are not
counted here; they never get past credential validation anyway.

Usage:
    limiter = RateLimiter(MemoryRateStore(), RateLimitPolicy.from_settings(settings.rate_limit))
    decision = await limiter.try_acquire(subject.id, subject.role)
    if not decision.allowed:
        raise RateLimitExceeded(decision.retry_after, decision.limit)
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Callable

import structlog

from faculty_authz.core.interfaces import RateStore

from .errors import fail_closed
from .roles import Role, normalize_role

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitPolicy:
    """Window length and per-role caps."""

    window_seconds: float = 900
    limits: dict[Role, int] = field(
        default_factory=lambda: {
            Role.STUDENT: 100,
            Role.LECTURER: 200,
            Role.PRL: 300,
            Role.PROGRAM_LEADER: 500,
        }
    )
    default_limit: int = 100
    sweep_interval_seconds: float = 60

    @classmethod
    def from_settings(cls, rate_limit_settings) -> "RateLimitPolicy":
        return cls(
            window_seconds=rate_limit_settings.window_seconds,
            limits={
                Role.STUDENT: rate_limit_settings.student,
                Role.LECTURER: rate_limit_settings.lecturer,
                Role.PRL: rate_limit_settings.prl,
                Role.PROGRAM_LEADER: rate_limit_settings.program_leader,
            },
            default_limit=rate_limit_settings.default,
            sweep_interval_seconds=rate_limit_settings.sweep_interval_seconds,
        )

    def limit_for(self, role: Role | str | None) -> int:
        return self.limits.get(normalize_role(role), self.default_limit)


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Attributes:
        allowed: Whether the request may proceed
        limit: Cap applied to this subject (0 when not counted)
        remaining: Requests left in the current window
        retry_after: Whole seconds until a slot frees (0 when allowed)
    """
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0

    @classmethod
    def uncounted(cls) -> "RateLimitDecision":
        return cls(allowed=True, limit=0, remaining=0)


class RateLimiter:
    """
    Decide whether a subject may make one more request.

    ``clock`` is injectable so tests can move time without sleeping.
    """

    def __init__(
        self,
        store: RateStore,
        policy: RateLimitPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.policy = policy or RateLimitPolicy()
        self.clock = clock
        self._last_sweep = clock()

    @staticmethod
    def key_for(subject_id: int) -> str:
        return f"user:{subject_id}"

    async def try_acquire(self, subject_id: int | None, role: Role | str | None) -> RateLimitDecision:
        if subject_id is None:
            return RateLimitDecision.uncounted()

        now = self.clock()
        window = self.policy.window_seconds

        with fail_closed("rate_limit", subject_id=subject_id):
            limit = self.policy.limit_for(role)
            await self._maybe_sweep(now)
            state = await self.store.hit(self.key_for(subject_id), now, window, limit)

        if state.allowed:
            return RateLimitDecision(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - state.count),
            )

        oldest = state.oldest if state.oldest is not None else now
        retry_after = max(1, math.ceil(oldest + window - now))
        logger.warning(
            "Rate limit exceeded",
            subject_id=subject_id,
            role=str(normalize_role(role)) if role else None,
            limit=limit,
            retry_after=retry_after,
        )
        return RateLimitDecision(allowed=False, limit=limit, remaining=0, retry_after=retry_after)

    async def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self.policy.sweep_interval_seconds:
            return
        self._last_sweep = now
        removed = await self.store.sweep(now, self.policy.window_seconds)
        if removed:
            logger.debug("Rate windows swept", removed=removed)
