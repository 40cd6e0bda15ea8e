"""
Task event sinks.

The engine reports session transitions to an EventSink after the
transaction commits. Notification dispatch is plugged in here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from loguru import logger

from taskengine.utils.datetime_utils import utc_now


class TaskEventType:
    """Task event names."""

    STARTED = "task_started"
    PROGRESS = "task_progress"
    COMPLETED = "task_completed"
    FAILED = "task_failed"
    COMMISSION_ACCRUED = "commission_accrued"


@dataclass(frozen=True)
class TaskEvent:
    """Something that happened to a task session."""

    type: str
    user_id: int
    task_id: int
    data: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)


class EventSink(Protocol):
    """Receiver of task events."""

    async def emit(self, event: TaskEvent) -> None: ...


class LoggingEventSink:
    """Default sink: writes events to the log."""

    def __init__(self) -> None:
        self.logger = logger.bind(service="TaskEvents")

    async def emit(self, event: TaskEvent) -> None:
        self.logger.info(
            f"{event.type}: user={event.user_id} task={event.task_id}",
            extra={"event": event.type, **event.data},
        )
