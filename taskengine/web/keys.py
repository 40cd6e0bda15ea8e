"""
Typed application keys for shared state.
"""

from aiohttp import web
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskengine.config.settings import Settings
from taskengine.services.access_gate import AccessGate
from taskengine.services.cache.registry import CacheRegistry
from taskengine.services.events import EventSink
from taskengine.services.rate_limiter.core import RateLimiter, RateLimitResult
from taskengine.web.session import SessionResolver

SETTINGS = web.AppKey("settings", Settings)
DB_ENGINE = web.AppKey("db_engine", AsyncEngine)
SESSION_MAKER = web.AppKey("session_maker", async_sessionmaker[AsyncSession])
CACHES = web.AppKey("caches", CacheRegistry)
RATE_LIMITER = web.AppKey("rate_limiter", RateLimiter)
ACCESS_GATE = web.AppKey("access_gate", AccessGate)
SESSION_RESOLVER = web.AppKey("session_resolver", SessionResolver)
EVENT_SINK = web.AppKey("event_sink", EventSink)
REDIS = web.AppKey("redis", Redis)

# Per-request values
USER_ID = web.RequestKey("user_id", int)
RATE_LIMIT_RESULT = web.RequestKey("rate_limit_result", RateLimitResult)
