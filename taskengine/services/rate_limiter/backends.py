"""
Rate limiter storage backends.

Each backend performs prune + count + append as one atomic step for an
identifier and reports the resulting window state.
"""

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from redis.asyncio import Redis

from taskengine.config.constants import (
    RATE_LIMIT_STORE_MAX_KEYS,
    RATE_LIMIT_STORE_TTL_MS,
)
from taskengine.services.cache.lru_store import LRUTTLStore


@dataclass(frozen=True)
class WindowState:
    """Outcome of recording one request in a sliding window."""

    allowed: bool
    count: int
    oldest_ms: float | None


class RateLimitBackend(Protocol):
    """Sliding-window timestamp storage."""

    async def hit(
        self, identifier: str, limit: int, window_ms: int, now_ms: float
    ) -> WindowState: ...

    async def reset(self, identifier: str) -> None: ...


class MemoryRateLimitBackend:
    """
    Process-local timestamp lists in a bounded LRU store.

    Idle identifiers expire after the store TTL (or the window, if longer);
    the least recently seen identifiers are dropped past capacity.
    """

    def __init__(
        self,
        max_keys: int = RATE_LIMIT_STORE_MAX_KEYS,
        ttl_ms: int = RATE_LIMIT_STORE_TTL_MS,
        clock_ms: Callable[[], float] | None = None,
    ) -> None:
        self.ttl_ms = ttl_ms
        self._store: LRUTTLStore[list[float]] = LRUTTLStore(
            max_size=max_keys,
            default_ttl=ttl_ms,
            clock=clock_ms or (lambda: time.time() * 1000),
        )

    async def hit(
        self, identifier: str, limit: int, window_ms: int, now_ms: float
    ) -> WindowState:
        timestamps = self._store.get(identifier) or []
        recent = [ts for ts in timestamps if now_ms - ts < window_ms]
        entry_ttl = max(self.ttl_ms, window_ms)

        if len(recent) >= limit:
            self._store.set(identifier, recent, ttl=entry_ttl)
            return WindowState(allowed=False, count=len(recent), oldest_ms=min(recent))

        recent.append(now_ms)
        self._store.set(identifier, recent, ttl=entry_ttl)
        return WindowState(allowed=True, count=len(recent), oldest_ms=min(recent))

    async def reset(self, identifier: str) -> None:
        self._store.delete(identifier)


# KEYS[1] = window key
# ARGV = now_ms, window_ms, limit, member
SLIDING_WINDOW_LUA = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
local count = redis.call('ZCARD', key)

if count >= limit then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    return {0, count, oldest[2]}
end

redis.call('ZADD', key, now, member)
redis.call('PEXPIRE', key, window)
local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
return {1, count + 1, oldest[2]}
"""


class RedisRateLimitBackend:
    """
    Sliding window shared across replicas.

    One sorted set per identifier (score = request time in ms), updated by
    a Lua script so prune/count/append is atomic on the server.
    """

    def __init__(self, redis_client: Redis, key_prefix: str = "rate_limit:") -> None:
        self.redis = redis_client
        self.key_prefix = key_prefix

    async def hit(
        self, identifier: str, limit: int, window_ms: int, now_ms: float
    ) -> WindowState:
        key = f"{self.key_prefix}{identifier}"
        member = f"{int(now_ms)}-{uuid.uuid4().hex}"
        allowed, count, oldest = await self.redis.eval(
            SLIDING_WINDOW_LUA, 1, key, int(now_ms), window_ms, limit, member
        )
        return WindowState(
            allowed=bool(int(allowed)),
            count=int(count),
            oldest_ms=float(oldest) if oldest is not None else None,
        )

    async def reset(self, identifier: str) -> None:
        await self.redis.delete(f"{self.key_prefix}{identifier}")
