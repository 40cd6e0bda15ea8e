"""
Sliding-window rate limiter.

Counts requests per identifier over a trailing window. The limiter is a
defense-in-depth layer, not an eligibility authority: if its storage
fails it lets the request through and logs the failure.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger

from taskengine.services.rate_limiter.backends import (
    MemoryRateLimitBackend,
    RateLimitBackend,
)
from taskengine.services.rate_limiter.presets import DEFAULT_PRESET, RATE_LIMITS


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check. ``reset_time`` is epoch milliseconds."""

    success: bool
    limit: int
    remaining: int
    reset_time: float

    def to_headers(self) -> dict[str, str]:
        """Standard X-RateLimit-* response headers."""
        reset = datetime.fromtimestamp(self.reset_time / 1000, UTC)
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset.isoformat(),
        }


class RateLimiter:
    """Per-identifier sliding-window counter."""

    def __init__(
        self,
        backend: RateLimitBackend | None = None,
        clock_ms: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize rate limiter.

        Args:
            backend: Timestamp storage (process memory by default)
            clock_ms: Wall clock in epoch milliseconds
        """
        self._clock_ms = clock_ms or (lambda: time.time() * 1000)
        self.backend = backend or MemoryRateLimitBackend(clock_ms=self._clock_ms)

    async def check_limit(
        self, identifier: str, limit: int = 30, window_ms: int = 3_600_000
    ) -> RateLimitResult:
        """
        Record a request and decide whether it is within budget.

        Args:
            identifier: Caller key (user id, IP, ...)
            limit: Requests allowed in the window
            window_ms: Trailing window length in milliseconds

        Returns:
            RateLimitResult; ``remaining`` is 0 when rejected
        """
        now = self._clock_ms()
        try:
            state = await self.backend.hit(identifier, limit, window_ms, now)
        except Exception as e:
            logger.error(
                f"Rate limit check failed for {identifier}: {type(e).__name__}: {e}. "
                "Allowing request (fail open)."
            )
            return RateLimitResult(
                success=True,
                limit=limit,
                remaining=max(0, limit - 1),
                reset_time=now + window_ms,
            )

        reset_time = (
            state.oldest_ms + window_ms if state.oldest_ms is not None else now + window_ms
        )

        if not state.allowed:
            logger.warning(
                f"Rate limit exceeded for {identifier}",
                extra={"limit": limit, "attempts": state.count, "reset_time": reset_time},
            )
            return RateLimitResult(
                success=False, limit=limit, remaining=0, reset_time=reset_time
            )

        return RateLimitResult(
            success=True,
            limit=limit,
            remaining=max(0, limit - state.count),
            reset_time=reset_time,
        )

    async def rate_limit(
        self, identifier: str, preset: str = DEFAULT_PRESET
    ) -> RateLimitResult:
        """Check a request against a named preset."""
        config = RATE_LIMITS[preset]
        return await self.check_limit(identifier, config.limit, config.window_ms)

    async def reset(self, identifier: str) -> None:
        """Forget an identifier's history (e.g. after successful login)."""
        try:
            await self.backend.reset(identifier)
        except Exception as e:
            logger.error(f"Error clearing rate limit for {identifier}: {e}")
