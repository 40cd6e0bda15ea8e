"""
Transaction repository.

Data access layer for the balance ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.models.enums import TransactionStatus, TransactionType
from taskengine.models.transaction import Transaction
from taskengine.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for ledger entries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Transaction, session)

    async def record_task_reward(
        self,
        user_id: int,
        task_id: int,
        completion_id: int,
        amount: Decimal,
        now: datetime,
        tracking: dict[str, Any] | None = None,
    ) -> Transaction:
        """
        Write the ledger entry for a task reward.

        Must run in the transaction that credits the balance. The row is
        flushed so its id is available to the caller.

        Args:
            user_id: Rewarded member
            task_id: Completed task
            completion_id: Completed session
            amount: Credited amount
            now: Completion time
            tracking: Verified tracking data, if any

        Returns:
            Created Transaction
        """
        entry = Transaction(
            user_id=user_id,
            type=TransactionType.TASK_REWARD,
            amount=amount,
            description=f"Task completion reward - Task ID: {task_id}",
            status=TransactionStatus.COMPLETED,
            completion_id=completion_id,
            extra_data={
                "taskId": task_id,
                "taskCompletionId": completion_id,
                "trackingData": tracking,
            },
            created_at=now,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry
