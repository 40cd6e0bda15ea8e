"""
Task session service.

Drives one (user, task) session through start, progress, completion and
failure. Every state change is a conditional single-row statement inside
a transaction, so concurrent requests for the same pair can neither open
two active sessions nor pay the reward twice.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.config.settings import Settings, read_global_task_amount
from taskengine.models.enums import CompletionStatus
from taskengine.models.task import Task
from taskengine.models.task_completion import TaskCompletion
from taskengine.models.transaction import Transaction
from taskengine.repositories.membership_plan_repository import (
    MembershipPlanRepository,
)
from taskengine.repositories.task_completion_repository import (
    TaskCompletionRepository,
)
from taskengine.repositories.task_repository import TaskRepository
from taskengine.repositories.transaction_repository import TransactionRepository
from taskengine.repositories.user_repository import UserRepository
from taskengine.services.base_service import BaseService, log_operation, transaction
from taskengine.services.events import EventSink, LoggingEventSink, TaskEvent, TaskEventType
from taskengine.services.task_session.context import MemberContext, load_member_context
from taskengine.services.task_session.state_machine import (
    can_start,
    ensure_transition,
    state_of,
)
from taskengine.services.task_session.verification import TrackingData, TrackingVerifier
from taskengine.utils.datetime_utils import (
    next_local_midnight,
    start_of_local_day,
    utc_now,
)
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
)

COMMISSION_QUANT = Decimal("0.00000001")


@dataclass(frozen=True)
class ProgressOutcome:
    """Result of a progress report."""

    completion: TaskCompletion
    is_completed: bool
    reward_earned: int = 0
    already_completed: bool = False
    commission: Decimal = Decimal("0")
    transaction_id: int | None = None

    def to_dict(self) -> dict:
        return {
            **self.completion.to_dict(),
            "isCompleted": self.is_completed,
            "alreadyCompleted": self.already_completed,
            "rewardEarned": self.reward_earned,
            "transactionId": self.transaction_id,
        }


class TaskSessionService(BaseService):
    """Task session lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        event_sink: EventSink | None = None,
        verifier: TrackingVerifier | None = None,
        clock: Callable[[], datetime] = utc_now,
        override_reader: Callable[[], int | None] = read_global_task_amount,
    ) -> None:
        super().__init__(session)
        self.settings = settings
        self.event_sink = event_sink or LoggingEventSink()
        self.verifier = verifier or TrackingVerifier()
        self.clock = clock
        self.override_reader = override_reader

        self.users = UserRepository(session)
        self.plans = MembershipPlanRepository(session)
        self.tasks = TaskRepository(session)
        self.completions = TaskCompletionRepository(session)
        self.transactions = TransactionRepository(session)

    @property
    def tz(self) -> tzinfo:
        return self.settings.tzinfo

    async def member_context(self, user_id: int, now: datetime) -> MemberContext:
        """Load a fresh member snapshot, reading the reward override once."""
        return await load_member_context(
            self.users, self.plans, user_id, now, self.override_reader()
        )

    async def _get_active_task(self, task_id: int) -> Task:
        task = await self.tasks.get_active(task_id)
        if task is None:
            raise RecordNotFoundError("Task not found or inactive", taskId=task_id)
        return task

    async def _ensure_daily_quota(self, ctx: MemberContext, now: datetime) -> int:
        completions_today = await self.completions.count_completed_since(
            ctx.user.id, start_of_local_day(now, self.tz)
        )
        if completions_today >= ctx.plan.tasks_per_day:
            raise DailyLimitReachedError(
                f"Daily task limit reached. Maximum {ctx.plan.tasks_per_day} tasks per day.",
                tasksPerDay=ctx.plan.tasks_per_day,
                completionsToday=completions_today,
                resetsAt=next_local_midnight(now, self.tz).isoformat(),
            )
        return completions_today

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    @log_operation
    async def start(self, user_id: int, task_id: int) -> TaskCompletion:
        """
        Start (or retry a FAILED) task session.

        Args:
            user_id: Member ID
            task_id: Task ID

        Returns:
            The IN_PROGRESS completion row

        Raises:
            UserNotFoundError, RecordNotFoundError, NotEligibleError,
            DailyLimitReachedError, TaskAlreadyStartedError
        """
        now = self.clock()
        ctx = await self.member_context(user_id, now)

        if not ctx.eligibility.eligible:
            raise NotEligibleError(
                "Task access disabled. Please check your account status.",
                reason=ctx.eligibility.reason,
            )

        task = await self._get_active_task(task_id)
        await self._ensure_daily_quota(ctx, now)

        existing = await self.completions.get_for_user_task(user_id, task_id)
        if not can_start(existing):
            raise TaskAlreadyStartedError(
                "Task already started or completed",
                taskStatus=state_of(existing),
            )

        try:
            completion = await self._open_session(user_id, task.id, now)
        except IntegrityError as e:
            raise DuplicateCompletionError(
                "Task completion already exists",
                taskStatus=CompletionStatus.IN_PROGRESS,
                cause=ErrorCode.DUPLICATE_COMPLETION,
            ) from e

        if completion is None:
            current = await self.completions.get_for_user_task(user_id, task_id)
            raise TaskAlreadyStartedError(
                "Task already started or completed",
                taskStatus=state_of(current),
            )

        await self.event_sink.emit(
            TaskEvent(TaskEventType.STARTED, user_id, task.id, {"completionId": completion.id})
        )
        return completion

    @transaction
    async def _open_session(
        self, user_id: int, task_id: int, now: datetime
    ) -> TaskCompletion | None:
        completion = await self.completions.upsert_start(user_id, task_id, now)
        if completion is not None:
            await self.tasks.increment_attempts(task_id)
        return completion

    # ------------------------------------------------------------------
    # Progress / completion
    # ------------------------------------------------------------------

    @log_operation
    async def record_progress(
        self,
        user_id: int,
        task_id: int,
        progress: int,
        tracking: TrackingData | None = None,
        notes: str | None = None,
        article_url: str | None = None,
    ) -> ProgressOutcome:
        """
        Report progress on an IN_PROGRESS session.

        Progress is clamped to the task target; reaching the target
        completes the session and credits the reward exactly once.

        Args:
            user_id: Member ID
            task_id: Task ID
            progress: Reported progress (>= 0)
            tracking: Optional engagement data, verified when present
            notes: Optional free-form notes
            article_url: Article the tracking data was collected on

        Returns:
            ProgressOutcome

        Raises:
            RecordNotFoundError, TaskNotStartedError, InvalidTransitionError,
            VerificationFailedError, DailyLimitReachedError
        """
        if progress < 0:
            raise InvalidRequestError("Valid progress is required", progress=progress)

        now = self.clock()
        task = await self._get_active_task(task_id)
        completion = await self.completions.get_for_user_task(user_id, task_id)
        if completion is None:
            raise TaskNotStartedError("Task not started", taskId=task_id)

        if completion.status == CompletionStatus.COMPLETED:
            return ProgressOutcome(
                completion=completion, is_completed=True, already_completed=True
            )
        if completion.status != CompletionStatus.IN_PROGRESS:
            raise InvalidTransitionError(
                "Task session is not in progress", taskStatus=completion.status
            )

        if tracking is not None:
            self.verifier.verify(task, tracking)
            notes = json.dumps({
                "originalNotes": notes or completion.notes,
                "trackingData": tracking.model_dump(by_alias=True),
                "articleUrl": article_url or task.article_url,
                "validatedAt": now.isoformat(),
            })

        clamped = min(progress, task.target)
        if progress < task.target:
            updated = await self._save_progress(completion.id, clamped, notes)
            if updated is None:
                return await self._lost_race(user_id, task_id)
            await self.event_sink.emit(
                TaskEvent(TaskEventType.PROGRESS, user_id, task_id, {"progress": clamped})
            )
            return ProgressOutcome(completion=updated, is_completed=False)

        ctx = await self.member_context(user_id, now)
        await self._ensure_daily_quota(ctx, now)
        return await self._finish(ctx, task, completion, clamped, notes, now, tracking)

    async def complete(
        self,
        user_id: int,
        task_id: int,
        tracking: TrackingData | None = None,
        notes: str | None = None,
    ) -> ProgressOutcome:
        """Complete a session outright (progress = task target)."""
        task = await self._get_active_task(task_id)
        return await self.record_progress(
            user_id, task_id, task.target, tracking=tracking, notes=notes
        )

    async def _finish(
        self,
        ctx: MemberContext,
        task: Task,
        completion: TaskCompletion,
        progress: int,
        notes: str | None,
        now: datetime,
        tracking: TrackingData | None = None,
    ) -> ProgressOutcome:
        reward = Decimal(ctx.reward)
        result = await self._complete_session(
            ctx, task, completion.id, progress, reward, notes, now, tracking
        )
        if result is None:
            return await self._lost_race(ctx.user.id, task.id)

        completed, entry, commission = result
        await self.event_sink.emit(
            TaskEvent(
                TaskEventType.COMPLETED,
                ctx.user.id,
                task.id,
                {
                    "completionId": completed.id,
                    "transactionId": entry.id,
                    "reward": ctx.reward,
                },
            )
        )
        if commission > 0:
            await self.event_sink.emit(
                TaskEvent(
                    TaskEventType.COMMISSION_ACCRUED,
                    ctx.user.id,
                    task.id,
                    {"sponsorId": ctx.user.sponsor_id, "amount": str(commission)},
                )
            )
        return ProgressOutcome(
            completion=completed,
            is_completed=True,
            reward_earned=ctx.reward,
            commission=commission,
            transaction_id=entry.id,
        )

    @transaction
    async def _complete_session(
        self,
        ctx: MemberContext,
        task: Task,
        completion_id: int,
        progress: int,
        reward: Decimal,
        notes: str | None,
        now: datetime,
        tracking: TrackingData | None = None,
    ) -> tuple[TaskCompletion, Transaction, Decimal] | None:
        completed = await self.completions.complete_if_in_progress(
            completion_id, progress, reward, now, notes
        )
        if completed is None:
            return None

        await self.users.credit_task_reward(ctx.user.id, reward)
        entry = await self.transactions.record_task_reward(
            ctx.user.id,
            task.id,
            completed.id,
            reward,
            now,
            tracking=tracking.model_dump(by_alias=True) if tracking else None,
        )
        await self.tasks.increment_completions(task.id)

        commission = Decimal("0")
        rate = Decimal(str(self.settings.task_commission_rate))
        if ctx.user.sponsor_id is not None and rate > 0:
            commission = (reward * rate).quantize(COMMISSION_QUANT)
            await self.users.add_pending_commission(ctx.user.sponsor_id, commission)
        return completed, entry, commission

    @transaction
    async def _save_progress(
        self, completion_id: int, progress: int, notes: str | None
    ) -> TaskCompletion | None:
        return await self.completions.update_progress(completion_id, progress, notes)

    async def _lost_race(self, user_id: int, task_id: int) -> ProgressOutcome:
        current = await self.completions.get_for_user_task(user_id, task_id)
        if current is not None and current.status == CompletionStatus.COMPLETED:
            return ProgressOutcome(
                completion=current, is_completed=True, already_completed=True
            )
        raise InvalidTransitionError(
            "Task session changed concurrently", taskStatus=state_of(current)
        )

    # ------------------------------------------------------------------
    # Failure
    # ------------------------------------------------------------------

    @log_operation
    async def fail(
        self, user_id: int, task_id: int, reason: str | None = None
    ) -> TaskCompletion:
        """
        Mark an IN_PROGRESS session FAILED so it can be retried.

        Raises:
            TaskNotStartedError, InvalidTransitionError
        """
        completion = await self.completions.get_for_user_task(user_id, task_id)
        if completion is None:
            raise TaskNotStartedError("Task not started", taskId=task_id)
        ensure_transition(completion.status, CompletionStatus.FAILED)

        failed = await self._fail_session(completion.id, reason)
        if failed is None:
            current = await self.completions.get_for_user_task(user_id, task_id)
            raise InvalidTransitionError(
                "Task session changed concurrently", taskStatus=state_of(current)
            )

        await self.event_sink.emit(
            TaskEvent(TaskEventType.FAILED, user_id, task_id, {"reason": reason})
        )
        return failed

    @transaction
    async def _fail_session(
        self, completion_id: int, reason: str | None
    ) -> TaskCompletion | None:
        return await self.completions.fail_if_in_progress(completion_id, reason)
