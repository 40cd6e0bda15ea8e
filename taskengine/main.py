"""
Task engine entry point.

Builds settings, database engine, caches and rate limiter, then serves
the task API with aiohttp.
"""

from aiohttp import web
from loguru import logger

from taskengine.config.settings import get_settings
from taskengine.initialization.logging import setup_logging
from taskengine.web.app import build_app


def main() -> None:
    """Run the task API server."""
    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info(
        f"Environment: {settings.environment}, "
        f"cache backend: {settings.cache_backend}, "
        f"rate limit backend: {settings.rate_limit_backend}, "
        f"timezone: {settings.local_timezone}"
    )

    app = build_app(settings)
    web.run_app(
        app,
        host=settings.http_host,
        port=settings.http_port,
        print=None,
    )
    logger.info("Task engine stopped")


if __name__ == "__main__":
    main()
