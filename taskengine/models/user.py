"""
User model.

Represents a registered platform member and their task earnings.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DECIMAL,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskengine.models.base import Base
from taskengine.models.enums import MembershipStatus


class User(Base):
    """User model - members who earn by completing tasks."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "balance >= 0", name="check_user_balance_non_negative"
        ),
        CheckConstraint(
            "total_earnings >= 0",
            name="check_user_total_earnings_non_negative",
        ),
        CheckConstraint(
            "tasks_completed >= 0",
            name="check_user_tasks_completed_non_negative",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Membership (written by the payment-confirmation collaborator)
    membership_status: Mapped[str] = mapped_column(
        String(20),
        default=MembershipStatus.INACTIVE,
        nullable=False,
        index=True,
    )
    membership_plan: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    membership_start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    membership_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    earnings_continue_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    tasks_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Referral (weak reference, no ownership)
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Aggregate counters (written only by the task engine)
    balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    total_points: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False, index=True
    )
    total_earnings: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    tasks_completed: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    pending_commission: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8),
        default=Decimal("0"),
        nullable=False,
        comment="Sponsor commission from referrals' task rewards",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    sponsor: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side=[id],
        back_populates="referrals",
        foreign_keys=[sponsor_id],
    )
    referrals: Mapped[list["User"]] = relationship(
        "User",
        back_populates="sponsor",
        foreign_keys=[sponsor_id],
    )

    @property
    def is_membership_active(self) -> bool:
        """Check if membership is active."""
        return self.membership_status == MembershipStatus.ACTIVE
