"""
Rate limiter package.

- core: RateLimiter.check_limit / rate_limit (fail-open)
- backends: memory and Redis sliding-window storage
- presets: named request budgets
"""

from taskengine.services.rate_limiter.backends import (
    MemoryRateLimitBackend,
    RateLimitBackend,
    RedisRateLimitBackend,
    WindowState,
)
from taskengine.services.rate_limiter.core import RateLimiter, RateLimitResult
from taskengine.services.rate_limiter.presets import RATE_LIMITS, RateLimitPreset

__all__ = [
    "RATE_LIMITS",
    "MemoryRateLimitBackend",
    "RateLimitBackend",
    "RateLimitPreset",
    "RateLimitResult",
    "RateLimiter",
    "RedisRateLimitBackend",
    "WindowState",
]
