"""
Transaction model.

Balance ledger: one row per credit to a member's balance, written in the
same database transaction as the credit itself.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from taskengine.models.base import Base
from taskengine.models.enums import TransactionStatus


class Transaction(Base):
    """
    Transaction entity.

    Attributes:
        id: Primary key
        user_id: Member whose balance changed
        type: Entry type (TransactionType)
        amount: Credited amount
        description: Human-readable description
        status: Entry status (TransactionStatus)
        completion_id: Task session that produced the entry
        extra_data: Task id, tracking data and other context
        created_at: When the entry was written
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 8), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.COMPLETED, nullable=False
    )
    completion_id: Mapped[int | None] = mapped_column(
        ForeignKey("task_completions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Additional data as JSON (flexible storage)
    extra_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "amount": float(self.amount or 0),
            "status": self.status,
            "completionId": self.completion_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
