"""
Membership plan model.

Reference data: how many tasks a plan allows per day and what it earns.
"""

from decimal import Decimal

from sqlalchemy import DECIMAL, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskengine.models.base import Base


class MembershipPlan(Base):
    """Membership plan reference row."""

    __tablename__ = "membership_plans"
    __table_args__ = (
        CheckConstraint(
            "tasks_per_day > 0", name="check_plan_tasks_per_day_positive"
        ),
        CheckConstraint(
            "daily_task_earning >= 0",
            name="check_plan_daily_task_earning_non_negative",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    price: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    tasks_per_day: Mapped[int] = mapped_column(
        Integer, default=5, nullable=False
    )
    daily_task_earning: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    max_earning_days: Mapped[int] = mapped_column(
        Integer, default=30, nullable=False
    )
    extended_earning_days: Mapped[int] = mapped_column(
        Integer, default=60, nullable=False
    )
