"""
Unit tests for TaskSessionService.

Repositories are replaced with AsyncMock so the tests exercise the
session rules without a database.
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from taskengine.models.enums import CompletionStatus, MembershipStatus
from taskengine.services.events import TaskEventType
from taskengine.services.task_session.session_service import TaskSessionService
from taskengine.services.task_session.verification import TrackingData
from taskengine.utils.exceptions import (
    DailyLimitReachedError,
    DuplicateCompletionError,
    ErrorCode,
    InvalidRequestError,
    InvalidTransitionError,
    NotEligibleError,
    RecordNotFoundError,
    TaskAlreadyStartedError,
    TaskNotStartedError,
    UserNotFoundError,
    VerificationFailedError,
)
from tests.factories import (
    NOW,
    make_completion,
    make_plan,
    make_task,
    make_transaction,
    make_user,
)


def build_service(mock_session, settings, override=None, user=None):
    """Service with mocked repositories around a default happy path."""
    sink = AsyncMock()
    service = TaskSessionService(
        mock_session,
        settings,
        event_sink=sink,
        clock=lambda: NOW,
        override_reader=lambda: override,
    )

    service.users = AsyncMock()
    service.users.get_by_id.return_value = user or make_user()
    service.users.get_referral_plans.return_value = []

    service.plans = AsyncMock()
    service.plans.find_by_name.return_value = make_plan()

    service.tasks = AsyncMock()
    service.tasks.get_active.return_value = make_task()

    service.completions = AsyncMock()
    service.completions.count_completed_since.return_value = 0
    service.completions.get_for_user_task.return_value = None
    service.completions.upsert_start.return_value = make_completion()

    service.transactions = AsyncMock()
    service.transactions.record_task_reward.return_value = make_transaction()
    return service


def emitted_types(service) -> list[str]:
    return [call.args[0].type for call in service.event_sink.emit.await_args_list]


@pytest.fixture
def service(mock_session, settings):
    return build_service(mock_session, settings)


class TestStart:
    """Test starting a task session."""

    @pytest.mark.asyncio
    async def test_start_opens_session(self, service, mock_session):
        completion = await service.start(1, 10)

        assert completion.status == CompletionStatus.IN_PROGRESS
        service.completions.upsert_start.assert_awaited_once_with(1, 10, NOW)
        service.tasks.increment_attempts.assert_awaited_once_with(10)
        mock_session.commit.assert_awaited()
        assert emitted_types(service) == [TaskEventType.STARTED]

    @pytest.mark.asyncio
    async def test_user_not_found(self, service):
        service.users.get_by_id.return_value = None
        with pytest.raises(UserNotFoundError):
            await service.start(1, 10)

    @pytest.mark.asyncio
    async def test_not_eligible(self, mock_session, settings):
        service = build_service(
            mock_session,
            settings,
            user=make_user(membership_status=MembershipStatus.INACTIVE),
        )

        with pytest.raises(NotEligibleError) as exc_info:
            await service.start(1, 10)

        assert exc_info.value.details["reason"] == "MEMBERSHIP_INACTIVE"
        service.users.get_referral_plans.assert_not_awaited()
        service.completions.upsert_start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_task_not_found(self, service):
        service.tasks.get_active.return_value = None
        with pytest.raises(RecordNotFoundError):
            await service.start(1, 10)

    @pytest.mark.asyncio
    async def test_daily_limit_reached(self, service):
        """Fifth completion today blocks a sixth start."""
        service.completions.count_completed_since.return_value = 5

        with pytest.raises(DailyLimitReachedError) as exc_info:
            await service.start(1, 10)

        details = exc_info.value.details
        assert details["tasksPerDay"] == 5
        assert details["completionsToday"] == 5
        assert details["resetsAt"] == "2026-10-15T00:00:00+00:00"
        service.completions.upsert_start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_daily_quota_counts_from_local_midnight(self, service):
        await service.start(1, 10)
        since = service.completions.count_completed_since.await_args.args[1]
        assert since.isoformat() == "2026-10-14T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_already_in_progress(self, service):
        service.completions.get_for_user_task.return_value = make_completion()

        with pytest.raises(TaskAlreadyStartedError) as exc_info:
            await service.start(1, 10)

        assert exc_info.value.details["taskStatus"] == CompletionStatus.IN_PROGRESS
        service.completions.upsert_start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_completed_cannot_restart(self, service):
        service.completions.get_for_user_task.return_value = make_completion(
            status=CompletionStatus.COMPLETED
        )
        with pytest.raises(TaskAlreadyStartedError):
            await service.start(1, 10)

    @pytest.mark.asyncio
    async def test_failed_session_can_retry(self, service):
        service.completions.get_for_user_task.return_value = make_completion(
            status=CompletionStatus.FAILED
        )

        completion = await service.start(1, 10)

        assert completion.status == CompletionStatus.IN_PROGRESS
        service.completions.upsert_start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_start_loses_upsert(self, service):
        """Upsert returning nothing means another request won."""
        service.completions.upsert_start.return_value = None
        service.completions.get_for_user_task.side_effect = [None, make_completion()]

        with pytest.raises(TaskAlreadyStartedError) as exc_info:
            await service.start(1, 10)

        assert exc_info.value.details["taskStatus"] == CompletionStatus.IN_PROGRESS
        service.tasks.increment_attempts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_violation_reported_as_already_started(
        self, service, mock_session
    ):
        service.completions.upsert_start.side_effect = IntegrityError(
            "INSERT", {}, Exception("duplicate key")
        )

        with pytest.raises(DuplicateCompletionError) as exc_info:
            await service.start(1, 10)

        assert exc_info.value.code == ErrorCode.TASK_ALREADY_STARTED
        assert exc_info.value.details["cause"] == ErrorCode.DUPLICATE_COMPLETION
        mock_session.rollback.assert_awaited_once()
        assert emitted_types(service) == []


class TestRecordProgress:
    """Test progress reports and completion."""

    @pytest.fixture(autouse=True)
    def in_progress(self, service):
        service.completions.get_for_user_task.return_value = make_completion()
        service.completions.complete_if_in_progress.return_value = make_completion(
            status=CompletionStatus.COMPLETED,
            progress=100,
            reward=Decimal("30"),
            completed_at=NOW,
        )

    @pytest.mark.asyncio
    async def test_negative_progress_rejected(self, service):
        with pytest.raises(InvalidRequestError):
            await service.record_progress(1, 10, -1)

    @pytest.mark.asyncio
    async def test_not_started(self, service):
        service.completions.get_for_user_task.return_value = None
        with pytest.raises(TaskNotStartedError):
            await service.record_progress(1, 10, 50)

    @pytest.mark.asyncio
    async def test_failed_session_rejected(self, service):
        service.completions.get_for_user_task.return_value = make_completion(
            status=CompletionStatus.FAILED
        )
        with pytest.raises(InvalidTransitionError):
            await service.record_progress(1, 10, 50)

    @pytest.mark.asyncio
    async def test_partial_progress(self, service):
        service.completions.update_progress.return_value = make_completion(progress=40)

        outcome = await service.record_progress(1, 10, 40)

        assert outcome.is_completed is False
        assert outcome.completion.progress == 40
        service.completions.update_progress.assert_awaited_once_with(100, 40, None)
        service.users.credit_task_reward.assert_not_awaited()
        assert emitted_types(service) == [TaskEventType.PROGRESS]

    @pytest.mark.asyncio
    async def test_reaching_target_completes_and_credits(self, service):
        outcome = await service.record_progress(1, 10, 100)

        assert outcome.is_completed is True
        assert outcome.reward_earned == 30
        service.completions.complete_if_in_progress.assert_awaited_once_with(
            100, 100, Decimal("30"), NOW, None
        )
        service.users.credit_task_reward.assert_awaited_once_with(1, Decimal("30"))
        service.tasks.increment_completions.assert_awaited_once_with(10)
        service.transactions.record_task_reward.assert_awaited_once_with(
            1, 10, 100, Decimal("30"), NOW, tracking=None
        )
        assert outcome.transaction_id == 500
        assert outcome.to_dict()["transactionId"] == 500
        service.users.add_pending_commission.assert_not_awaited()
        assert emitted_types(service) == [TaskEventType.COMPLETED]

    @pytest.mark.asyncio
    async def test_progress_clamped_to_target(self, service):
        await service.record_progress(1, 10, 250)
        args = service.completions.complete_if_in_progress.await_args.args
        assert args[1] == 100

    @pytest.mark.asyncio
    async def test_override_amount_credited(self, mock_session, settings):
        service = build_service(mock_session, settings, override=50)
        service.completions.get_for_user_task.return_value = make_completion()

        outcome = await service.record_progress(1, 10, 100)

        assert outcome.reward_earned == 50
        service.users.credit_task_reward.assert_awaited_once_with(1, Decimal("50"))

    @pytest.mark.asyncio
    async def test_sponsor_commission(self, mock_session, settings):
        service = build_service(mock_session, settings, user=make_user(sponsor_id=5))
        service.completions.get_for_user_task.return_value = make_completion()

        outcome = await service.record_progress(1, 10, 100)

        assert outcome.commission == Decimal("3")
        service.users.add_pending_commission.assert_awaited_once_with(
            5, Decimal("3.00000000")
        )
        assert emitted_types(service) == [
            TaskEventType.COMPLETED,
            TaskEventType.COMMISSION_ACCRUED,
        ]

    @pytest.mark.asyncio
    async def test_completed_session_not_paid_twice(self, service):
        service.completions.get_for_user_task.return_value = make_completion(
            status=CompletionStatus.COMPLETED
        )

        outcome = await service.record_progress(1, 10, 100)

        assert outcome.already_completed is True
        assert outcome.reward_earned == 0
        service.completions.complete_if_in_progress.assert_not_awaited()
        service.users.credit_task_reward.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_completion_not_paid_twice(self, service):
        """Losing the compare-and-set returns the winner's row."""
        service.completions.complete_if_in_progress.return_value = None
        service.completions.get_for_user_task.side_effect = [
            make_completion(),
            make_completion(status=CompletionStatus.COMPLETED),
        ]

        outcome = await service.record_progress(1, 10, 100)

        assert outcome.already_completed is True
        service.users.credit_task_reward.assert_not_awaited()
        service.tasks.increment_completions.assert_not_awaited()
        service.transactions.record_task_reward.assert_not_awaited()
        assert emitted_types(service) == []

    @pytest.mark.asyncio
    async def test_daily_limit_checked_at_completion(self, service):
        service.completions.count_completed_since.return_value = 5

        with pytest.raises(DailyLimitReachedError):
            await service.record_progress(1, 10, 100)

        service.completions.complete_if_in_progress.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tracking_verified_and_stored(self, service):
        tracking = TrackingData(
            time_spent=60, scroll_percentage=90, mouse_movements=25
        )

        await service.record_progress(1, 10, 100, tracking=tracking, notes="done")

        notes = service.completions.complete_if_in_progress.await_args.args[4]
        stored = json.loads(notes)
        assert stored["originalNotes"] == "done"
        assert stored["trackingData"]["timeSpent"] == 60
        assert stored["articleUrl"] == "https://example.com/article"

        ledger_tracking = service.transactions.record_task_reward.await_args.kwargs["tracking"]
        assert ledger_tracking["timeSpent"] == 60
        assert ledger_tracking["mouseMovements"] == 25

    @pytest.mark.asyncio
    async def test_failed_verification_writes_nothing(self, service):
        tracking = TrackingData(time_spent=10, mouse_movements=25)

        with pytest.raises(VerificationFailedError):
            await service.record_progress(1, 10, 100, tracking=tracking)

        service.completions.complete_if_in_progress.assert_not_awaited()
        service.users.credit_task_reward.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_complete_uses_task_target(self, service):
        outcome = await service.complete(1, 10)
        assert outcome.is_completed is True


class TestFail:
    """Test failing a session."""

    @pytest.mark.asyncio
    async def test_fail_in_progress(self, service):
        service.completions.get_for_user_task.return_value = make_completion()
        service.completions.fail_if_in_progress.return_value = make_completion(
            status=CompletionStatus.FAILED
        )

        failed = await service.fail(1, 10, "closed tab")

        assert failed.status == CompletionStatus.FAILED
        service.completions.fail_if_in_progress.assert_awaited_once_with(100, "closed tab")
        assert emitted_types(service) == [TaskEventType.FAILED]

    @pytest.mark.asyncio
    async def test_fail_completed_rejected(self, service):
        service.completions.get_for_user_task.return_value = make_completion(
            status=CompletionStatus.COMPLETED
        )
        with pytest.raises(InvalidTransitionError):
            await service.fail(1, 10)
        service.completions.fail_if_in_progress.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fail_not_started(self, service):
        with pytest.raises(TaskNotStartedError):
            await service.fail(1, 10)


class TestRewardLedger:
    """Test the ledger entry written with each reward credit."""

    @pytest.mark.asyncio
    async def test_ledger_entry_shares_the_credit_transaction(self, service, mock_session):
        """Credit and ledger row are committed together, once."""
        service.completions.get_for_user_task.return_value = make_completion()
        service.completions.complete_if_in_progress.return_value = make_completion(
            status=CompletionStatus.COMPLETED, progress=100, completed_at=NOW
        )

        await service.record_progress(1, 10, 100)

        service.users.credit_task_reward.assert_awaited_once()
        service.transactions.record_task_reward.assert_awaited_once()
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ledger_failure_rolls_back_credit(self, service, mock_session):
        service.completions.get_for_user_task.return_value = make_completion()
        service.completions.complete_if_in_progress.return_value = make_completion(
            status=CompletionStatus.COMPLETED, progress=100, completed_at=NOW
        )
        service.transactions.record_task_reward.side_effect = RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await service.record_progress(1, 10, 100)

        mock_session.rollback.assert_awaited()
        mock_session.commit.assert_not_awaited()
        assert emitted_types(service) == []
