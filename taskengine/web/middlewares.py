"""
Request middlewares.

Order for /api routes: error mapping, session, access gate, rate limit.
Routes outside /api (health checks) only pass through error mapping.
"""

from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from taskengine.services.rate_limiter.presets import DEFAULT_PRESET
from taskengine.utils.exceptions import (
    CountryBlockedError,
    ErrorCode,
    RateLimitExceededError,
    TaskEngineError,
    UnauthorizedError,
)
from taskengine.web import keys

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

API_PREFIX = "/api/"


def is_api_request(request: web.Request) -> bool:
    return request.path.startswith(API_PREFIX)


def error_response(error: TaskEngineError) -> web.Response:
    return web.json_response(error.to_dict(), status=error.http_status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn raised errors into structured JSON responses."""
    try:
        return await handler(request)
    except TaskEngineError as e:
        return error_response(e)
    except ValidationError as e:
        return web.json_response(
            {
                "error": "Invalid request",
                "code": ErrorCode.INVALID_REQUEST,
                "details": e.errors(include_url=False, include_context=False),
            },
            status=400,
        )
    except web.HTTPException:
        raise
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return web.json_response(
            {"error": "Internal server error", "code": ErrorCode.INTERNAL_ERROR},
            status=500,
        )


@web.middleware
async def session_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Require an authenticated member on API routes."""
    if not is_api_request(request):
        return await handler(request)

    user_id = request.app[keys.SESSION_RESOLVER].resolve(request)
    if user_id is None:
        raise UnauthorizedError("Unauthorized: Please sign in to access tasks")
    request[keys.USER_ID] = user_id
    return await handler(request)


@web.middleware
async def access_gate_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Apply the access gate (country restriction) to API routes."""
    if not is_api_request(request):
        return await handler(request)

    decision = request.app[keys.ACCESS_GATE].check(request.headers)
    if not decision.allowed:
        raise CountryBlockedError(
            decision.reason or "Access from your location is restricted",
            country=decision.country,
        )
    return await handler(request)


@web.middleware
async def rate_limit_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Apply the "api" request budget per member and expose X-RateLimit-* headers."""
    if not is_api_request(request):
        return await handler(request)

    user_id = request.get(keys.USER_ID)
    identifier = f"api:user:{user_id}" if user_id else f"api:ip:{request.remote}"
    result = await request.app[keys.RATE_LIMITER].rate_limit(identifier, DEFAULT_PRESET)
    request[keys.RATE_LIMIT_RESULT] = result

    if not result.success:
        response = error_response(
            RateLimitExceededError(
                "Too many requests. Please try again later.",
                limit=result.limit,
                remaining=result.remaining,
                resetTime=result.reset_time,
            )
        )
        response.headers.update(result.to_headers())
        return response

    response = await handler(request)
    response.headers.update(result.to_headers())
    return response


MIDDLEWARES = [
    error_middleware,
    session_middleware,
    access_gate_middleware,
    rate_limit_middleware,
]
