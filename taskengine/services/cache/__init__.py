"""
Cache services package.

- lru_store: bounded LRU store with per-entry TTL
- backends: memory and Redis storage behind one interface
- manager: CacheManager (get / set / delete / invalidate_pattern / get_or_set)
- registry: named instances, key builders and invalidation helpers
"""

from taskengine.services.cache.backends import (
    CacheBackend,
    MemoryCacheBackend,
    RedisCacheBackend,
)
from taskengine.services.cache.lru_store import LRUTTLStore
from taskengine.services.cache.manager import CacheManager
from taskengine.services.cache.registry import (
    CACHE_CONFIGS,
    CacheConfig,
    CacheKeys,
    CacheRegistry,
    build_cache_registry,
    build_memory_registry,
)

__all__ = [
    "CACHE_CONFIGS",
    "CacheBackend",
    "CacheConfig",
    "CacheKeys",
    "CacheManager",
    "CacheRegistry",
    "LRUTTLStore",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "build_cache_registry",
    "build_memory_registry",
]
