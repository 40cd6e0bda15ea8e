"""
Named cache instances.

Each data class gets its own instance with its own capacity and TTL, so
invalidating one class never evicts another.
"""

from dataclasses import dataclass

from loguru import logger
from redis.asyncio import Redis

from taskengine.services.cache.backends import MemoryCacheBackend, RedisCacheBackend
from taskengine.services.cache.manager import CacheManager


@dataclass(frozen=True)
class CacheConfig:
    """Capacity and TTL (seconds) of a named cache."""

    max_size: int
    ttl: float


CACHE_CONFIGS: dict[str, CacheConfig] = {
    "api": CacheConfig(max_size=1000, ttl=5 * 60),
    "user": CacheConfig(max_size=500, ttl=10 * 60),
    "notification": CacheConfig(max_size=200, ttl=2 * 60),
    "mlm": CacheConfig(max_size=300, ttl=15 * 60),
    "blog": CacheConfig(max_size=100, ttl=30 * 60),
}


class CacheKeys:
    """Cache key builders."""

    @staticmethod
    def user(user_id: int) -> str:
        return f"user:{user_id}"

    @staticmethod
    def user_rank(user_id: int) -> str:
        return f"user:rank:{user_id}"

    @staticmethod
    def user_notifications(user_id: int) -> str:
        return f"notifications:{user_id}"

    @staticmethod
    def task_list(
        page: int, limit: int, task_type: str | None, category: str | None
    ) -> str:
        return f"tasks:list:{page}:{limit}:{task_type or 'all'}:{category or 'all'}"


class CacheRegistry:
    """Holds the named cache instances of one process."""

    def __init__(self, caches: dict[str, CacheManager]) -> None:
        self._caches = caches

    @property
    def api(self) -> CacheManager:
        return self._caches["api"]

    @property
    def user(self) -> CacheManager:
        return self._caches["user"]

    @property
    def notification(self) -> CacheManager:
        return self._caches["notification"]

    @property
    def mlm(self) -> CacheManager:
        return self._caches["mlm"]

    @property
    def blog(self) -> CacheManager:
        return self._caches["blog"]

    async def invalidate_user(self, user_id: int) -> None:
        """Drop everything cached about one user."""
        await self.user.delete(CacheKeys.user(user_id))
        await self.user.delete(CacheKeys.user_rank(user_id))
        await self.notification.delete(CacheKeys.user_notifications(user_id))
        await self.mlm.invalidate_pattern(rf"^mlm:[^:]+:{user_id}(:|$)")


def build_memory_registry(
    configs: dict[str, CacheConfig] | None = None,
) -> CacheRegistry:
    """Create process-local caches."""
    configs = configs or CACHE_CONFIGS
    return CacheRegistry({
        name: CacheManager(
            name, MemoryCacheBackend(max_size=cfg.max_size, default_ttl=cfg.ttl)
        )
        for name, cfg in configs.items()
    })


def build_redis_registry(
    redis_client: Redis,
    configs: dict[str, CacheConfig] | None = None,
) -> CacheRegistry:
    """Create caches shared through Redis."""
    configs = configs or CACHE_CONFIGS
    return CacheRegistry({
        name: CacheManager(
            name, RedisCacheBackend(redis_client, namespace=name, default_ttl=cfg.ttl)
        )
        for name, cfg in configs.items()
    })


def build_cache_registry(backend: str, redis_client: Redis | None = None) -> CacheRegistry:
    """
    Create caches for the configured backend.

    Falls back to memory when Redis is requested but no client is given.
    """
    if backend == "redis":
        if redis_client is None:
            logger.warning("Redis cache backend requested without client, using memory")
            return build_memory_registry()
        return build_redis_registry(redis_client)
    return build_memory_registry()
