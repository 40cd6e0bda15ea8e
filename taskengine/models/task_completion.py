"""
Task completion model.

One row per (user, task): the session ledger used to count completions
today and to guard against restarting an active task.
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
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskengine.models.base import Base
from taskengine.models.enums import CompletionStatus


class TaskCompletion(Base):
    """User's progress on a single task."""

    __tablename__ = "task_completions"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", name="uq_task_completion_user_task"),
        Index("ix_task_completions_user_completed", "user_id", "completed_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[int] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=CompletionStatus.IN_PROGRESS, nullable=False
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reward: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_completed(self) -> bool:
        """Check if completion is terminal-success."""
        return self.status == CompletionStatus.COMPLETED

    def to_dict(self) -> dict:
        """Serialize completion for API responses."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "taskId": self.task_id,
            "status": self.status,
            "progress": self.progress,
            "reward": float(self.reward or 0),
            "notes": self.notes,
            "failureReason": self.failure_reason,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
