"""
User repository.

Data access layer for User model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.models.user import User
from taskengine.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_referral_plans(self, sponsor_id: int) -> list[str | None]:
        """
        Get plan names of a user's direct referrals.

        Always read from the database; referral state changes outside the
        task engine.

        Args:
            sponsor_id: Referring user ID

        Returns:
            One plan name (or None) per direct referral
        """
        stmt = select(User.membership_plan).where(User.sponsor_id == sponsor_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_rank(self, user_id: int, total_points: int) -> int:
        """
        Get leaderboard position by total points.

        Users without points are unranked (0).

        Args:
            user_id: User ID
            total_points: User's current points

        Returns:
            1-based rank, or 0 when unranked
        """
        if total_points <= 0:
            return 0
        stmt = select(func.count()).select_from(User).where(
            User.total_points > total_points, User.id != user_id
        )
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) + 1

    async def credit_task_reward(self, user_id: int, reward: Decimal) -> bool:
        """
        Credit a completed task's reward to the user's counters.

        Args:
            user_id: User ID
            reward: Reward amount

        Returns:
            True if the user row was updated
        """
        return await self.increment(
            user_id,
            balance=reward,
            total_earnings=reward,
            total_points=int(reward),
            tasks_completed=1,
        )

    async def add_pending_commission(self, user_id: int, amount: Decimal) -> bool:
        """
        Add to a sponsor's pending commission.

        Args:
            user_id: Sponsor user ID
            amount: Commission amount

        Returns:
            True if the sponsor row was updated
        """
        return await self.increment(user_id, pending_commission=amount)
