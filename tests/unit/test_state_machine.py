"""Unit tests for the task session state machine."""

import pytest

from taskengine.models.enums import CompletionStatus
from taskengine.services.task_session.state_machine import (
    ABSENT,
    can_start,
    can_transition,
    ensure_transition,
    state_of,
)
from taskengine.utils.exceptions import ErrorCode, InvalidTransitionError
from tests.factories import make_completion


class TestTransitions:
    """Test the transition table."""

    @pytest.mark.parametrize(
        "current, target",
        [
            (ABSENT, CompletionStatus.IN_PROGRESS),
            (CompletionStatus.IN_PROGRESS, CompletionStatus.COMPLETED),
            (CompletionStatus.IN_PROGRESS, CompletionStatus.FAILED),
            (CompletionStatus.FAILED, CompletionStatus.IN_PROGRESS),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize(
        "current, target",
        [
            (ABSENT, CompletionStatus.COMPLETED),
            (CompletionStatus.COMPLETED, CompletionStatus.IN_PROGRESS),
            (CompletionStatus.COMPLETED, CompletionStatus.FAILED),
            (CompletionStatus.FAILED, CompletionStatus.COMPLETED),
            (CompletionStatus.IN_PROGRESS, CompletionStatus.IN_PROGRESS),
        ],
    )
    def test_forbidden(self, current, target):
        assert can_transition(current, target) is False

    def test_ensure_transition_raises_with_status(self):
        """Forbidden transitions raise with the current status."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(CompletionStatus.COMPLETED, CompletionStatus.FAILED)
        assert exc_info.value.code == ErrorCode.INVALID_TRANSITION
        assert exc_info.value.details["taskStatus"] == CompletionStatus.COMPLETED


class TestCanStart:
    """Test start guard."""

    def test_absent(self):
        assert state_of(None) == ABSENT
        assert can_start(None) is True

    def test_failed_is_retryable(self):
        assert can_start(make_completion(status=CompletionStatus.FAILED)) is True

    def test_in_progress_blocks(self):
        assert can_start(make_completion()) is False

    def test_completed_blocks(self):
        assert can_start(make_completion(status=CompletionStatus.COMPLETED)) is False
