"""
Unit tests for the sliding-window rate limiter.

Tests cover:
- Window accounting with a manual clock
- Fail-open behavior
- Redis backend script invocation
- Response headers
"""

from unittest.mock import AsyncMock

import pytest

from taskengine.services.rate_limiter import (
    RATE_LIMITS,
    MemoryRateLimitBackend,
    RateLimiter,
    RateLimitResult,
    RedisRateLimitBackend,
)
from taskengine.services.rate_limiter.backends import SLIDING_WINDOW_LUA


@pytest.fixture
def limiter(fake_clock):
    return RateLimiter(clock_ms=fake_clock)


class TestSlidingWindow:
    """Test the in-memory window."""

    @pytest.mark.asyncio
    async def test_five_allowed_then_rejected(self, limiter):
        results = [await limiter.check_limit("k", 5, 1000) for _ in range(6)]

        assert [r.success for r in results] == [True] * 5 + [False]
        assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]
        assert results[5].reset_time == 1000

    @pytest.mark.asyncio
    async def test_window_expires(self, limiter, fake_clock):
        for _ in range(5):
            await limiter.check_limit("k", 5, 1000)

        fake_clock.advance(1000)
        result = await limiter.check_limit("k", 5, 1000)

        assert result.success is True
        assert result.remaining == 4

    @pytest.mark.asyncio
    async def test_window_slides(self, limiter, fake_clock):
        await limiter.check_limit("k", 2, 1000)
        fake_clock.advance(500)
        await limiter.check_limit("k", 2, 1000)

        fake_clock.advance(400)
        rejected = await limiter.check_limit("k", 2, 1000)
        assert rejected.success is False
        assert rejected.reset_time == 1000

        fake_clock.advance(100)
        allowed = await limiter.check_limit("k", 2, 1000)
        assert allowed.success is True
        assert allowed.reset_time == 1500

    @pytest.mark.asyncio
    async def test_rejected_requests_not_counted(self, limiter, fake_clock):
        await limiter.check_limit("k", 1, 1000)
        for _ in range(3):
            fake_clock.advance(100)
            await limiter.check_limit("k", 1, 1000)

        fake_clock.advance(700)
        result = await limiter.check_limit("k", 1, 1000)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_identifiers_independent(self, limiter):
        await limiter.check_limit("a", 1, 1000)
        result = await limiter.check_limit("b", 1, 1000)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_reset(self, limiter):
        await limiter.check_limit("k", 1, 1000)
        await limiter.reset("k")
        result = await limiter.check_limit("k", 1, 1000)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_preset(self, limiter):
        result = await limiter.rate_limit("user:1", "login")
        assert result.limit == RATE_LIMITS["login"].limit == 5
        assert result.remaining == 4

    @pytest.mark.asyncio
    async def test_store_capacity_evicts_idle_identifiers(self, fake_clock):
        backend = MemoryRateLimitBackend(max_keys=2, clock_ms=fake_clock)
        limiter = RateLimiter(backend=backend, clock_ms=fake_clock)

        await limiter.check_limit("a", 1, 1000)
        await limiter.check_limit("b", 1, 1000)
        await limiter.check_limit("c", 1, 1000)

        # "a" was least recently used and evicted
        result = await limiter.check_limit("a", 1, 1000)
        assert result.success is True


class TestFailOpen:
    """Test storage failures."""

    @pytest.mark.asyncio
    async def test_backend_error_allows_request(self, fake_clock):
        backend = AsyncMock()
        backend.hit.side_effect = ConnectionError("redis down")
        limiter = RateLimiter(backend=backend, clock_ms=fake_clock)

        result = await limiter.check_limit("k", 10, 1000)

        assert result.success is True
        assert result.remaining == 9
        assert result.reset_time == 1000

    @pytest.mark.asyncio
    async def test_reset_error_swallowed(self, fake_clock):
        backend = AsyncMock()
        backend.reset.side_effect = ConnectionError("redis down")
        limiter = RateLimiter(backend=backend, clock_ms=fake_clock)

        await limiter.reset("k")


class TestRedisBackend:
    """Test the Redis sliding window."""

    @pytest.mark.asyncio
    async def test_hit_runs_script(self, fake_clock):
        redis = AsyncMock()
        redis.eval.return_value = [1, 1, "1000"]
        fake_clock.advance(1000)
        limiter = RateLimiter(backend=RedisRateLimitBackend(redis), clock_ms=fake_clock)

        result = await limiter.check_limit("user:1", 5, 60_000)

        args = redis.eval.await_args.args
        assert args[0] == SLIDING_WINDOW_LUA
        assert args[1:6] == (1, "rate_limit:user:1", 1000, 60_000, 5)
        assert args[6].startswith("1000-")
        assert result.success is True
        assert result.remaining == 4
        assert result.reset_time == 61_000

    @pytest.mark.asyncio
    async def test_rejection(self, fake_clock):
        redis = AsyncMock()
        redis.eval.return_value = [0, 5, "200"]
        limiter = RateLimiter(backend=RedisRateLimitBackend(redis), clock_ms=fake_clock)

        result = await limiter.check_limit("k", 5, 1000)

        assert result.success is False
        assert result.remaining == 0
        assert result.reset_time == 1200

    @pytest.mark.asyncio
    async def test_reset_deletes_key(self):
        redis = AsyncMock()
        await RedisRateLimitBackend(redis).reset("k")
        redis.delete.assert_awaited_once_with("rate_limit:k")


class TestHeaders:
    """Test X-RateLimit-* headers."""

    def test_to_headers(self):
        result = RateLimitResult(success=True, limit=100, remaining=42, reset_time=0)
        assert result.to_headers() == {
            "X-RateLimit-Limit": "100",
            "X-RateLimit-Remaining": "42",
            "X-RateLimit-Reset": "1970-01-01T00:00:00+00:00",
        }
