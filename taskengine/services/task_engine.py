"""
Task Eligibility & Reward Engine.

Entry point used by the web layer. Lists tasks annotated for a member and
drives task sessions; every operation returns a ServiceResult carrying
either the payload or a structured error code.

Only the task catalogue pages and the leaderboard rank are served from
cache. Eligibility, rewards and completion counts are always computed
from fresh reads.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TASK_CURRENCY
from taskengine.config.settings import Settings, read_global_task_amount
from taskengine.models.enums import CompletionStatus
from taskengine.models.task_completion import TaskCompletion
from taskengine.services.base_service import BaseService, ServiceResult
from taskengine.services.cache.registry import CacheKeys, CacheRegistry
from taskengine.services.events import EventSink
from taskengine.services.task_session.context import MemberContext
from taskengine.services.task_session.session_service import TaskSessionService
from taskengine.services.task_session.state_machine import can_start
from taskengine.services.task_session.verification import TrackingData
from taskengine.utils.datetime_utils import (
    ensure_aware,
    start_of_local_day,
    start_of_local_week,
    utc_now,
)
from taskengine.utils.exceptions import InvalidRequestError, TaskEngineError


class TaskListStatus:
    """Values of the task list ``status`` filter."""

    COMPLETED = "completed"
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"

    ALL = (COMPLETED, AVAILABLE, IN_PROGRESS)


class TaskEngine(BaseService):
    """Task listing and session orchestration for one request."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        caches: CacheRegistry,
        event_sink: EventSink | None = None,
        clock: Callable[[], datetime] = utc_now,
        override_reader: Callable[[], int | None] = read_global_task_amount,
    ) -> None:
        super().__init__(session)
        self.settings = settings
        self.caches = caches
        self.clock = clock
        self.sessions = TaskSessionService(
            session,
            settings,
            event_sink=event_sink,
            clock=clock,
            override_reader=override_reader,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_tasks(
        self,
        user_id: int,
        task_type: str | None = None,
        category: str | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ServiceResult:
        """
        List active tasks annotated for a member.

        Args:
            user_id: Member ID
            task_type: Optional task type filter
            category: Optional category filter
            status: Optional "completed" / "available" / "in_progress"
            page: Page number (1-indexed)
            limit: Page size

        Returns:
            ServiceResult with ``{tasks, userStats, pagination}``
        """
        try:
            return ServiceResult.ok(
                await self._list_tasks(user_id, task_type, category, status, page, limit)
            )
        except TaskEngineError as e:
            return ServiceResult.from_error(e)

    async def _list_tasks(
        self,
        user_id: int,
        task_type: str | None,
        category: str | None,
        status: str | None,
        page: int,
        limit: int,
    ) -> dict[str, Any]:
        if status and status not in TaskListStatus.ALL:
            raise InvalidRequestError(f"Unknown status filter: {status}", status=status)
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidRequestError(
                f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}",
                page=page,
                limit=limit,
            )

        now = self.clock()
        ctx = await self.sessions.member_context(user_id, now)

        catalogue = await self.caches.api.get_or_set(
            CacheKeys.task_list(page, limit, task_type, category),
            lambda: self._load_catalogue(page, limit, task_type, category),
        )

        completions = await self.sessions.completions.list_for_user(user_id)
        by_task = {completion.task_id: completion for completion in completions}

        day_start = start_of_local_day(now, self.settings.tzinfo)
        week_start = start_of_local_week(now, self.settings.tzinfo)
        completions_today = self._count_completed_since(completions, day_start)
        completions_this_week = self._count_completed_since(completions, week_start)
        quota_left = completions_today < ctx.plan.tasks_per_day

        tasks = [
            self._annotate(task, by_task.get(task["id"]), ctx, quota_left)
            for task in catalogue["tasks"]
        ]
        tasks = self._filter_by_status(tasks, status)

        rank = await self.caches.user.get_or_set(
            CacheKeys.user_rank(user_id),
            lambda: self.sessions.users.get_rank(user_id, ctx.user.total_points or 0),
        )

        user = ctx.user
        return {
            "tasks": tasks,
            "userStats": {
                "balance": float(user.balance or 0),
                "totalPoints": user.total_points or 0,
                "totalEarnings": float(user.total_earnings or 0),
                "tasksCompleted": user.tasks_completed or 0,
                "rank": rank,
                "completionsToday": completions_today,
                "completionsThisWeek": completions_this_week,
                "tasksPerDay": ctx.plan.tasks_per_day,
                "eligible": ctx.eligibility.eligible,
                "eligibilityReason": ctx.eligibility.reason,
                "earningEndsAt": (
                    user.earnings_continue_until.isoformat()
                    if user.earnings_continue_until
                    else None
                ),
            },
            "pagination": {
                "page": page,
                "limit": limit,
                "total": len(tasks),
            },
        }

    async def _load_catalogue(
        self,
        page: int,
        limit: int,
        task_type: str | None,
        category: str | None,
    ) -> dict[str, Any]:
        rows = await self.sessions.tasks.list_active(
            page=page, limit=limit, task_type=task_type, category=category
        )
        return {"tasks": [task.to_dict() for task in rows]}

    @staticmethod
    def _count_completed_since(
        completions: list[TaskCompletion], since: datetime
    ) -> int:
        return sum(
            1
            for completion in completions
            if completion.completed_at is not None
            and ensure_aware(completion.completed_at) >= since
        )

    @staticmethod
    def _annotate(
        task: dict[str, Any],
        completion: TaskCompletion | None,
        ctx: MemberContext,
        quota_left: bool,
    ) -> dict[str, Any]:
        eligible = ctx.eligibility.eligible
        return {
            **task,
            "reward": ctx.reward,
            "currency": TASK_CURRENCY,
            "userCompletion": completion.to_dict() if completion else None,
            "canStart": eligible and quota_left and can_start(completion),
            "isCompleted": (
                completion is not None
                and completion.status == CompletionStatus.COMPLETED
            ),
            "isInProgress": (
                completion is not None
                and completion.status == CompletionStatus.IN_PROGRESS
            ),
            "progress": completion.progress if completion else 0,
            "requiresReferral": not eligible,
        }

    @staticmethod
    def _filter_by_status(
        tasks: list[dict[str, Any]], status: str | None
    ) -> list[dict[str, Any]]:
        if status == TaskListStatus.COMPLETED:
            return [task for task in tasks if task["isCompleted"]]
        if status == TaskListStatus.AVAILABLE:
            return [task for task in tasks if task["canStart"]]
        if status == TaskListStatus.IN_PROGRESS:
            return [task for task in tasks if task["isInProgress"]]
        return tasks

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_task(self, user_id: int, task_id: int) -> ServiceResult:
        """
        Start a task session.

        Returns:
            ServiceResult with ``{success, message, taskCompletion, id}``
        """
        try:
            completion = await self.sessions.start(user_id, task_id)
        except TaskEngineError as e:
            return ServiceResult.from_error(e)

        return ServiceResult.ok({
            "success": True,
            "message": "Task started successfully",
            "taskCompletion": completion.to_dict(),
            "id": completion.id,
        })

    async def report_progress(
        self,
        user_id: int,
        task_id: int,
        progress: int,
        tracking: TrackingData | None = None,
        notes: str | None = None,
        article_url: str | None = None,
    ) -> ServiceResult:
        """
        Report progress; completes the session when the target is reached.

        Returns:
            ServiceResult with the completion plus ``isCompleted``,
            ``alreadyCompleted``, ``rewardEarned`` and ``transactionId``
        """
        try:
            outcome = await self.sessions.record_progress(
                user_id,
                task_id,
                progress,
                tracking=tracking,
                notes=notes,
                article_url=article_url,
            )
        except TaskEngineError as e:
            return ServiceResult.from_error(e)

        if outcome.is_completed and not outcome.already_completed:
            await self.caches.invalidate_user(user_id)
        return ServiceResult.ok(outcome.to_dict())

    async def fail_task(
        self, user_id: int, task_id: int, reason: str | None = None
    ) -> ServiceResult:
        """
        Fail an in-progress session so it can be retried.

        Returns:
            ServiceResult with the failed completion
        """
        try:
            completion = await self.sessions.fail(user_id, task_id, reason)
        except TaskEngineError as e:
            return ServiceResult.from_error(e)
        return ServiceResult.ok(completion.to_dict())
