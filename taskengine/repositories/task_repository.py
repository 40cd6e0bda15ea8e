"""
Task repository.

Data access layer for Task model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.models.enums import TaskStatus
from taskengine.models.task import Task
from taskengine.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Task repository with catalogue queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task repository."""
        super().__init__(Task, session)

    async def get_active(self, task_id: int) -> Task | None:
        """
        Get task if it exists and is active.

        Args:
            task_id: Task ID

        Returns:
            Active task or None
        """
        task = await self.get_by_id(task_id)
        if task is None or task.status != TaskStatus.ACTIVE:
            return None
        return task

    async def list_active(
        self,
        page: int = 1,
        limit: int = 20,
        task_type: str | None = None,
        category: str | None = None,
    ) -> list[Task]:
        """
        Get a page of active tasks.

        Ordered by type, then newest first.

        Args:
            page: Page number (1-indexed)
            limit: Page size
            task_type: Optional type filter
            category: Optional category filter

        Returns:
            List of tasks
        """
        stmt = select(Task).where(Task.status == TaskStatus.ACTIVE)
        if task_type:
            stmt = stmt.where(Task.type == task_type)
        if category:
            stmt = stmt.where(Task.category == category)

        stmt = (
            stmt.order_by(Task.type.asc(), Task.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def increment_attempts(self, task_id: int) -> bool:
        """Count one more start of a task."""
        return await self.increment(task_id, attempts=1)

    async def increment_completions(self, task_id: int) -> bool:
        """Count one more completion of a task."""
        return await self.increment(task_id, completions=1)
