"""
aiohttp application factory.
"""

from aiohttp import web
from loguru import logger
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskengine.config.database import create_engine, create_session_maker
from taskengine.config.settings import Settings
from taskengine.services.access_gate import AccessGate, CountryAccessGate
from taskengine.services.cache.registry import CacheRegistry, build_cache_registry
from taskengine.services.events import EventSink, LoggingEventSink
from taskengine.services.rate_limiter.backends import (
    MemoryRateLimitBackend,
    RedisRateLimitBackend,
)
from taskengine.services.rate_limiter.core import RateLimiter
from taskengine.utils.redis_utils import get_redis_client, get_redis_url_masked
from taskengine.web import keys
from taskengine.web.handlers import routes
from taskengine.web.middlewares import MIDDLEWARES
from taskengine.web.session import HeaderSessionResolver, SessionResolver


def build_rate_limiter(settings: Settings, redis_client: Redis | None) -> RateLimiter:
    """Create the rate limiter for the configured backend."""
    if settings.rate_limit_backend == "redis" and redis_client is not None:
        return RateLimiter(backend=RedisRateLimitBackend(redis_client))
    if settings.rate_limit_backend == "redis":
        logger.warning("Redis rate limit backend requested without client, using memory")
    return RateLimiter(backend=MemoryRateLimitBackend())


def build_access_gate(settings: Settings) -> AccessGate:
    """Create the country restriction gate from settings."""
    return CountryAccessGate(
        blocked_countries=settings.get_blocked_countries(),
        enabled=settings.country_blocking_enabled,
        allow_test_header=settings.debug,
    )


def create_app(
    settings: Settings,
    session_maker: async_sessionmaker[AsyncSession],
    *,
    db_engine: AsyncEngine | None = None,
    redis_client: Redis | None = None,
    caches: CacheRegistry | None = None,
    rate_limiter: RateLimiter | None = None,
    access_gate: AccessGate | None = None,
    session_resolver: SessionResolver | None = None,
    event_sink: EventSink | None = None,
) -> web.Application:
    """
    Build the task API application.

    Collaborators default to the ones described by ``settings``; pass
    explicit instances to override them.

    Args:
        settings: Application settings
        session_maker: Factory for per-request database sessions
        db_engine: Engine disposed on shutdown
        redis_client: Shared Redis client for the redis backends

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=MIDDLEWARES)

    app[keys.SETTINGS] = settings
    app[keys.SESSION_MAKER] = session_maker
    app[keys.CACHES] = caches or build_cache_registry(settings.cache_backend, redis_client)
    app[keys.RATE_LIMITER] = rate_limiter or build_rate_limiter(settings, redis_client)
    app[keys.ACCESS_GATE] = access_gate or build_access_gate(settings)
    app[keys.SESSION_RESOLVER] = session_resolver or HeaderSessionResolver()
    app[keys.EVENT_SINK] = event_sink or LoggingEventSink()
    if db_engine is not None:
        app[keys.DB_ENGINE] = db_engine
    if redis_client is not None:
        app[keys.REDIS] = redis_client

    app.router.add_routes(routes)
    app.on_cleanup.append(close_resources)
    return app


async def close_resources(app: web.Application) -> None:
    """Release database and Redis connections."""
    redis_client = app.get(keys.REDIS)
    if redis_client is not None:
        try:
            await redis_client.aclose()
        except Exception as e:
            logger.warning(f"Error closing Redis client: {e}")

    db_engine = app.get(keys.DB_ENGINE)
    if db_engine is not None:
        await db_engine.dispose()
        logger.info("Database engine disposed")


def build_app(settings: Settings) -> web.Application:
    """Create engine, Redis client and application from settings."""
    db_engine = create_engine(settings)
    session_maker = create_session_maker(db_engine)

    redis_client = None
    if "redis" in (settings.cache_backend, settings.rate_limit_backend):
        redis_client = get_redis_client(settings)
        logger.info(f"Using Redis at {get_redis_url_masked(settings)}")

    return create_app(
        settings,
        session_maker,
        db_engine=db_engine,
        redis_client=redis_client,
    )
