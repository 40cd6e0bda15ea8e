"""
Base service class.

Provides common functionality for all service classes including session management,
logging, and helper decorators.
"""

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.utils.exceptions import TaskEngineError

# Type variable for generic decorator return types
T = TypeVar("T")


@dataclass
class ServiceResult:
    """
    Standard service result container.

    Domain rejections come back as ``success=False`` with the structured
    ``error_code``; ``data`` then holds the error details.
    """
    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def from_error(cls, error: TaskEngineError) -> "ServiceResult":
        return cls(
            success=False,
            data=dict(error.details),
            error=error.message,
            error_code=error.code,
        )


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success, rolls back on exception.

    Usage:
        @transaction
        async def _credit(self, ...):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except Exception as e:
            await self.rollback()
            self.logger.error(
                f"Transaction failed in {func.__name__}",
                extra={
                    "error": str(e),
                    "function": func.__name__,
                },
            )
            raise

    return wrapper


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Domain rejections (TaskEngineError) are logged at info level with
    their code; anything else is logged as a failure.

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.debug(
            f"Starting {func.__name__}",
            extra={
                "function": func.__name__,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            },
        )

        try:
            result = await func(self, *args, **kwargs)
        except TaskEngineError as e:
            self.logger.info(
                f"Rejected {func.__name__}: {e.code}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(time.time() - start_time, 3),
                    "error_code": e.code,
                },
            )
            raise
        except Exception as e:
            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(time.time() - start_time, 3),
                    "error": str(e),
                    "success": False,
                },
            )
            raise

        self.logger.debug(
            f"Completed {func.__name__}",
            extra={
                "function": func.__name__,
                "duration_seconds": round(time.time() - start_time, 3),
                "success": True,
            },
        )
        return result

    return wrapper
