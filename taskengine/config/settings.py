"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskengine.config.constants import (
    DEFAULT_BLOCKED_COUNTRIES,
    GLOBAL_TASK_AMOUNT_ENV,
    TASK_COMMISSION_RATE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (shared backend for cache and rate limiter)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Backends: "memory" keeps state process-local, "redis" shares it
    cache_backend: str = "memory"
    rate_limit_backend: str = "memory"

    # Task day boundaries ("today", "this week") are computed in this zone
    local_timezone: str = "UTC"

    # Country restriction for task endpoints
    country_blocking_enabled: bool = True
    blocked_countries: str = ",".join(DEFAULT_BLOCKED_COUNTRIES)

    # Sponsor commission on task rewards
    task_commission_rate: float = Field(
        default=TASK_COMMISSION_RATE,
        ge=0,
        le=1.0,
        description="Share of each task reward credited to the sponsor",
    )

    # HTTP server
    http_host: str = "0.0.0.0"
    http_port: int = Field(
        default=8080, ge=1, le=65535, description="Task API HTTP port"
    )

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(("postgresql://", "postgresql+asyncpg://")):
            raise ValueError(
                "DATABASE_URL must start with postgresql:// or postgresql+asyncpg://"
            )
        return v

    @field_validator("cache_backend", "rate_limit_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate state backend name."""
        backend = v.strip().lower()
        if backend not in ("memory", "redis"):
            raise ValueError(f"Unknown backend '{v}'. Expected 'memory' or 'redis'")
        return backend

    @field_validator("local_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate IANA timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG must be False in production environment. "
                "Set DEBUG=false in your .env file."
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone used for daily quota boundaries."""
        return ZoneInfo(self.local_timezone)

    def get_blocked_countries(self) -> list[str]:
        """Parse blocked country codes from comma-separated string."""
        return [
            code.strip().upper()
            for code in self.blocked_countries.split(",")
            if code.strip()
        ]


def read_global_task_amount() -> int | None:
    """
    Read the platform-wide task reward override.

    Read from the environment on every call so that an operator change
    takes effect on the next request without a restart.

    Returns:
        Override amount, or None when unset or not an integer
    """
    raw = os.environ.get(GLOBAL_TASK_AMOUNT_ENV)
    if not raw:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"Invalid {GLOBAL_TASK_AMOUNT_ENV} value: {raw!r}, ignoring")
        return None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
