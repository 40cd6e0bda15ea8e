"""
Task session state machine.

Lifecycle of one (user, task) pair:

    ABSENT -> IN_PROGRESS -> COMPLETED
                          -> FAILED -> IN_PROGRESS (retry)

COMPLETED is terminal.
"""

from taskengine.models.enums import CompletionStatus
from taskengine.models.task_completion import TaskCompletion
from taskengine.utils.exceptions import InvalidTransitionError

ABSENT = "ABSENT"

TRANSITIONS: dict[str, frozenset[str]] = {
    ABSENT: frozenset({CompletionStatus.IN_PROGRESS}),
    CompletionStatus.IN_PROGRESS: frozenset(
        {CompletionStatus.COMPLETED, CompletionStatus.FAILED}
    ),
    CompletionStatus.FAILED: frozenset({CompletionStatus.IN_PROGRESS}),
    CompletionStatus.COMPLETED: frozenset(),
}


def state_of(completion: TaskCompletion | None) -> str:
    """Current session state; ABSENT when no row exists."""
    if completion is None:
        return ABSENT
    return completion.status


def can_transition(current: str, target: str) -> bool:
    """Check whether ``current -> target`` is allowed."""
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    """
    Validate a transition.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move task session from {current} to {target}",
            taskStatus=current,
        )


def can_start(completion: TaskCompletion | None) -> bool:
    """A session can be (re)started when absent or FAILED."""
    return can_transition(state_of(completion), CompletionStatus.IN_PROGRESS)
