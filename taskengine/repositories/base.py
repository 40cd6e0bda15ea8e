"""
Base repository.

Generic data access operations shared by all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic operations.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class TaskRepository(BaseRepository[Task]):
            def __init__(self, session: AsyncSession):
                super().__init__(Task, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def increment(self, id: int, **deltas: Any) -> bool:
        """
        Atomically add to numeric columns of one row.

        The increment is done in SQL (``col = col + delta``) so concurrent
        writers never lose updates.

        Args:
            id: Entity ID
            **deltas: Column name -> amount to add

        Returns:
            True if a row was updated
        """
        if not deltas:
            return False

        values = {
            name: getattr(self.model, name) + delta
            for name, delta in deltas.items()
        }
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
