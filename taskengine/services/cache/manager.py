"""
Cache manager.

Read-through cache for idempotent aggregate queries. A failing backend is
logged and behaves like a miss, so callers always fall through to the
source of truth.
"""

import re
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from taskengine.services.cache.backends import CacheBackend

T = TypeVar("T")


class CacheManager:
    """Named cache instance over a storage backend."""

    def __init__(self, name: str, backend: CacheBackend) -> None:
        """
        Initialize cache manager.

        Args:
            name: Instance name used in logs and stats
            backend: Storage backend
        """
        self.name = name
        self.backend = backend
        self.hit_count = 0
        self.miss_count = 0
        self.logger = logger.bind(cache=name)

    async def get(self, key: str) -> Any | None:
        """
        Get cached value.

        Returns:
            Cached value, or None on miss or backend error
        """
        try:
            value = await self.backend.get(key)
        except Exception as e:
            self.logger.error(f"Cache get error for key {key}: {e}")
            self.miss_count += 1
            return None

        if value is None:
            self.miss_count += 1
            self.logger.debug(f"Cache MISS for key: {key}")
            return None

        self.hit_count += 1
        self.logger.debug(f"Cache HIT for key: {key}")
        return value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """
        Store value.

        Args:
            key: Cache key
            value: Value to store (None is never cached)
            ttl: Lifetime in seconds, defaults to the instance TTL
        """
        if value is None:
            return
        try:
            await self.backend.set(key, value, ttl)
            self.logger.debug(f"Cache SET for key: {key}")
        except Exception as e:
            self.logger.error(f"Cache set error for key {key}: {e}")

    async def delete(self, key: str) -> None:
        """Remove key."""
        try:
            await self.backend.delete(key)
            self.logger.debug(f"Cache DELETE for key: {key}")
        except Exception as e:
            self.logger.error(f"Cache delete error for key {key}: {e}")

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Remove every key containing ``pattern`` or matching it as a regex.

        Linear scan over the instance's keys.

        Args:
            pattern: Substring or regular expression

        Returns:
            Number of keys removed
        """
        try:
            regex = re.compile(pattern)
        except re.error:
            regex = None

        try:
            keys = await self.backend.keys()
            matched = [
                key for key in keys
                if pattern in key or (regex is not None and regex.search(key))
            ]
            for key in matched:
                await self.backend.delete(key)
        except Exception as e:
            self.logger.error(f"Cache invalidate pattern error for {pattern!r}: {e}")
            return 0

        self.logger.info(
            f"Cache invalidated {len(matched)} keys matching pattern: {pattern}"
        )
        return len(matched)

    async def get_or_set(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """
        Cache-aside helper: return cached value or compute and store it.

        Errors raised by ``compute`` propagate to the caller.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await compute()
        await self.set(key, value, ttl)
        return value

    async def clear(self) -> None:
        """Drop all entries and reset counters."""
        try:
            await self.backend.clear()
        except Exception as e:
            self.logger.error(f"Cache clear error: {e}")
        self.hit_count = 0
        self.miss_count = 0
        self.logger.info("Cache cleared")

    async def get_stats(self) -> dict[str, Any]:
        """Hit/miss statistics for monitoring."""
        total = self.hit_count + self.miss_count
        try:
            size = await self.backend.size()
        except Exception as e:
            self.logger.error(f"Cache size error: {e}")
            size = 0
        return {
            "name": self.name,
            "size": size,
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "hit_rate": self.hit_count / total if total else 0.0,
            "max_size": self.backend.max_size,
        }
