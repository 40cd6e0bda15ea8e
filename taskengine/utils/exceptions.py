"""
Exception handling utilities.

Defines the task engine's error taxonomy. Every domain rejection carries a
structured ``code`` so callers can react without parsing messages.
"""

from typing import Any


class ErrorCode:
    """Structured error codes surfaced to API clients."""

    UNAUTHORIZED = "UNAUTHORIZED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    DAILY_LIMIT_REACHED = "DAILY_LIMIT_REACHED"
    TASK_ALREADY_STARTED = "TASK_ALREADY_STARTED"
    DUPLICATE_COMPLETION = "DUPLICATE_COMPLETION"
    TASK_NOT_STARTED = "TASK_NOT_STARTED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    INVALID_REQUEST = "INVALID_REQUEST"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    COUNTRY_BLOCKED = "COUNTRY_BLOCKED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TaskEngineError(Exception):
    """Base class for domain errors with a structured code."""

    code: str = ErrorCode.INTERNAL_ERROR
    http_status: int = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for API responses."""
        return {"error": self.message, "code": self.code, **self.details}


class UnauthorizedError(TaskEngineError):
    """No valid session; client should sign in again."""

    code = ErrorCode.UNAUTHORIZED
    http_status = 401


class UserNotFoundError(TaskEngineError):
    """User vanished between session check and lookup."""

    code = ErrorCode.USER_NOT_FOUND
    http_status = 404


class RecordNotFoundError(TaskEngineError):
    """Task or completion row does not exist (or is inactive)."""

    code = ErrorCode.RECORD_NOT_FOUND
    http_status = 404


class NotEligibleError(TaskEngineError):
    """Eligibility resolver rejected the user."""

    code = ErrorCode.NOT_ELIGIBLE
    http_status = 403


class DailyLimitReachedError(TaskEngineError):
    """Daily task quota exhausted until local midnight."""

    code = ErrorCode.DAILY_LIMIT_REACHED
    http_status = 429


class TaskAlreadyStartedError(TaskEngineError):
    """Task has a non-FAILED session already."""

    code = ErrorCode.TASK_ALREADY_STARTED
    http_status = 400


class DuplicateCompletionError(TaskAlreadyStartedError):
    """
    Unique (user, task) constraint violated by a concurrent start.

    Reported with TASK_ALREADY_STARTED semantics.
    """


class TaskNotStartedError(TaskEngineError):
    """Progress reported for a task that has no session."""

    code = ErrorCode.TASK_NOT_STARTED
    http_status = 400


class InvalidTransitionError(TaskEngineError):
    """Session state does not allow the requested transition."""

    code = ErrorCode.INVALID_TRANSITION
    http_status = 409


class VerificationFailedError(TaskEngineError):
    """Submitted engagement data does not meet task requirements."""

    code = ErrorCode.VERIFICATION_FAILED
    http_status = 400


class InvalidRequestError(TaskEngineError):
    """Malformed request payload or parameters."""

    code = ErrorCode.INVALID_REQUEST
    http_status = 400


class RateLimitExceededError(TaskEngineError):
    """Caller exceeded the sliding-window request budget."""

    code = ErrorCode.RATE_LIMIT_EXCEEDED
    http_status = 429


class CountryBlockedError(TaskEngineError):
    """Access gate refused the request's country."""

    code = ErrorCode.COUNTRY_BLOCKED
    http_status = 403


def http_status_for(code: str | None) -> int:
    """
    Get the HTTP status for an error code.

    Unknown codes map to 500.
    """
    pending: list[type[TaskEngineError]] = [TaskEngineError]
    while pending:
        cls = pending.pop()
        if cls.code == code:
            return cls.http_status
        pending.extend(cls.__subclasses__())
    return 500
