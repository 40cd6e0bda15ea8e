"""
Cache storage backends.

The cache manager talks to a backend through ``CacheBackend`` so that the
same interface can be served from process memory or from Redis when
several replicas must share state.
"""

import json
import time
from collections.abc import Callable
from typing import Any, Protocol

from redis.asyncio import Redis

from taskengine.services.cache.lru_store import LRUTTLStore


class CacheBackend(Protocol):
    """Storage interface used by CacheManager."""

    max_size: int | None

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: float | None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...

    async def clear(self) -> None: ...

    async def size(self) -> int: ...


class MemoryCacheBackend:
    """Process-local LRU + TTL backend."""

    def __init__(
        self,
        max_size: int,
        default_ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_size = max_size
        self._store: LRUTTLStore[Any] = LRUTTLStore(
            max_size=max_size, default_ttl=default_ttl, clock=clock
        )

    async def get(self, key: str) -> Any | None:
        return self._store.get(key)

    async def set(self, key: str, value: Any, ttl: float | None) -> None:
        self._store.set(key, value, ttl=ttl)

    async def delete(self, key: str) -> None:
        self._store.delete(key)

    async def keys(self) -> list[str]:
        return self._store.keys()

    async def clear(self) -> None:
        self._store.clear()

    async def size(self) -> int:
        return len(self._store)


class RedisCacheBackend:
    """
    Redis backend shared across replicas.

    Keys are namespaced per cache instance so invalidating one data class
    never touches another. Values are stored as JSON; capacity is governed
    by the server's maxmemory policy rather than a per-instance bound.
    """

    def __init__(self, redis_client: Redis, namespace: str, default_ttl: float) -> None:
        self.redis = redis_client
        self.prefix = f"cache:{namespace}:"
        self.default_ttl = default_ttl
        self.max_size = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Any | None:
        raw = await self.redis.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: float | None) -> None:
        seconds = ttl if ttl is not None else self.default_ttl
        await self.redis.set(
            self._key(key),
            json.dumps(value, default=str),
            px=max(1, int(seconds * 1000)),
        )

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))

    async def keys(self) -> list[str]:
        prefix_len = len(self.prefix)
        return [
            key[prefix_len:]
            async for key in self.redis.scan_iter(match=f"{self.prefix}*")
        ]

    async def clear(self) -> None:
        keys = [key async for key in self.redis.scan_iter(match=f"{self.prefix}*")]
        if keys:
            await self.redis.delete(*keys)

    async def size(self) -> int:
        return len(await self.keys())
