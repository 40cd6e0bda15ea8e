"""
Rate limiting presets for different endpoints.
"""

from dataclasses import dataclass

from taskengine.config.constants import DAY_MS, HOUR_MS, MINUTE_MS


@dataclass(frozen=True)
class RateLimitPreset:
    """Request budget over a trailing window."""

    limit: int
    window_ms: int


RATE_LIMITS: dict[str, RateLimitPreset] = {
    # Authentication
    "login": RateLimitPreset(limit=5, window_ms=15 * MINUTE_MS),
    "register": RateLimitPreset(limit=3, window_ms=HOUR_MS),
    "forgot_password": RateLimitPreset(limit=3, window_ms=HOUR_MS),
    # API (task endpoints use "api")
    "api": RateLimitPreset(limit=100, window_ms=HOUR_MS),
    "api_strict": RateLimitPreset(limit=30, window_ms=HOUR_MS),
    # MLM actions
    "referrals": RateLimitPreset(limit=10, window_ms=DAY_MS),
    "withdrawals": RateLimitPreset(limit=5, window_ms=DAY_MS),
}

DEFAULT_PRESET = "api"
