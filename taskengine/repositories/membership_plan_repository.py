"""
MembershipPlan repository.

Data access layer for MembershipPlan model.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskengine.models.membership_plan import MembershipPlan
from taskengine.repositories.base import BaseRepository


class MembershipPlanRepository(BaseRepository[MembershipPlan]):
    """MembershipPlan repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize membership plan repository."""
        super().__init__(MembershipPlan, session)

    async def find_by_name(self, name: str | None) -> MembershipPlan | None:
        """
        Find plan by upper-cased or exact name.

        Args:
            name: Plan name as stored on the user

        Returns:
            Plan row or None
        """
        if not name:
            return None
        normalized = name.strip().upper()
        stmt = (
            select(MembershipPlan)
            .where(or_(MembershipPlan.name == normalized, MembershipPlan.name == name))
            .order_by((MembershipPlan.name == normalized).desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
