"""
TaskCompletion repository.

Data access layer for the per-(user, task) session ledger. State changes
are conditional single statements so that concurrent requests cannot
produce two active sessions or two rewards.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.models.enums import CompletionStatus
from taskengine.models.task_completion import TaskCompletion
from taskengine.repositories.base import BaseRepository

UNIQUE_USER_TASK = "uq_task_completion_user_task"


class TaskCompletionRepository(BaseRepository[TaskCompletion]):
    """TaskCompletion repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task completion repository."""
        super().__init__(TaskCompletion, session)

    async def get_for_user_task(
        self, user_id: int, task_id: int
    ) -> TaskCompletion | None:
        """
        Get the completion row for a (user, task) pair.

        Args:
            user_id: User ID
            task_id: Task ID

        Returns:
            Completion or None
        """
        return await self.get_by(user_id=user_id, task_id=task_id)

    async def list_for_user(self, user_id: int) -> list[TaskCompletion]:
        """Get all completion rows of a user."""
        stmt = select(TaskCompletion).where(TaskCompletion.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_completed_since(self, user_id: int, since: datetime) -> int:
        """
        Count completions finished at or after a moment.

        Args:
            user_id: User ID
            since: Lower bound (e.g. start of the local day)

        Returns:
            Number of rows with ``completed_at >= since``
        """
        stmt = select(func.count()).select_from(TaskCompletion).where(
            TaskCompletion.user_id == user_id,
            TaskCompletion.completed_at.is_not(None),
            TaskCompletion.completed_at >= since,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    def build_start_statement(self, user_id: int, task_id: int, now: datetime):
        """
        Build the start upsert.

        Inserts a fresh IN_PROGRESS row, or resets an existing row only
        when it is FAILED. Any other existing row is left untouched and
        nothing is returned.
        """
        stmt = pg_insert(TaskCompletion).values(
            user_id=user_id,
            task_id=task_id,
            status=CompletionStatus.IN_PROGRESS,
            progress=0,
            reward=Decimal("0"),
            started_at=now,
            completed_at=None,
        )
        return (
            stmt.on_conflict_do_update(
                constraint=UNIQUE_USER_TASK,
                set_={
                    "status": CompletionStatus.IN_PROGRESS,
                    "progress": 0,
                    "reward": Decimal("0"),
                    "notes": None,
                    "failure_reason": None,
                    "started_at": now,
                    "completed_at": None,
                },
                where=TaskCompletion.__table__.c.status == CompletionStatus.FAILED,
            )
            .returning(TaskCompletion)
            .execution_options(populate_existing=True)
        )

    async def upsert_start(
        self, user_id: int, task_id: int, now: datetime
    ) -> TaskCompletion | None:
        """
        Atomically start (or restart a FAILED) session.

        Args:
            user_id: User ID
            task_id: Task ID
            now: Start time

        Returns:
            The IN_PROGRESS row, or None when another non-FAILED row
            already exists (a concurrent start won)

        Raises:
            IntegrityError: On unique violation not covered by the upsert
        """
        result = await self.session.execute(
            self.build_start_statement(user_id, task_id, now)
        )
        return result.scalars().first()

    async def update_progress(
        self, completion_id: int, progress: int, notes: str | None = None
    ) -> TaskCompletion | None:
        """
        Record partial progress on an IN_PROGRESS session.

        Returns:
            Updated row, or None if the session is no longer IN_PROGRESS
        """
        values: dict = {"progress": progress}
        if notes is not None:
            values["notes"] = notes
        stmt = (
            update(TaskCompletion)
            .where(
                TaskCompletion.id == completion_id,
                TaskCompletion.status == CompletionStatus.IN_PROGRESS,
            )
            .values(**values)
            .returning(TaskCompletion)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def complete_if_in_progress(
        self,
        completion_id: int,
        progress: int,
        reward: Decimal,
        now: datetime,
        notes: str | None = None,
    ) -> TaskCompletion | None:
        """
        Compare-and-set IN_PROGRESS -> COMPLETED.

        Only one caller can win for a given session; the winner gets the
        row back and is the only one allowed to credit the reward.

        Returns:
            Completed row, or None if the session was not IN_PROGRESS
        """
        values: dict = {
            "status": CompletionStatus.COMPLETED,
            "progress": progress,
            "reward": reward,
            "completed_at": now,
        }
        if notes is not None:
            values["notes"] = notes
        stmt = (
            update(TaskCompletion)
            .where(
                TaskCompletion.id == completion_id,
                TaskCompletion.status == CompletionStatus.IN_PROGRESS,
            )
            .values(**values)
            .returning(TaskCompletion)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def fail_if_in_progress(
        self, completion_id: int, reason: str | None = None
    ) -> TaskCompletion | None:
        """
        Compare-and-set IN_PROGRESS -> FAILED.

        Stored notes are kept; the reason is written to ``failure_reason``.

        Returns:
            Failed row, or None if the session was not IN_PROGRESS
        """
        stmt = (
            update(TaskCompletion)
            .where(
                TaskCompletion.id == completion_id,
                TaskCompletion.status == CompletionStatus.IN_PROGRESS,
            )
            .values(status=CompletionStatus.FAILED, failure_reason=reason)
            .returning(TaskCompletion)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
