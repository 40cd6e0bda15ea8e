"""
Task model.

Catalogue of paid tasks. Created and archived by admins; read-only to the
task engine except for the attempts/completions counters.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskengine.config.constants import DEFAULT_TASK_TARGET
from taskengine.models.base import Base
from taskengine.models.enums import TaskStatus


class Task(Base):
    """Paid task definition."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_status_type_created", "status", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TaskStatus.ACTIVE, nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Base reward; replaced at read time by the reward policy
    reward: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), default=Decimal("0"), nullable=False
    )
    target: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_TASK_TARGET, nullable=False
    )

    # Counters
    completions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Content verification
    article_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    min_duration: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Minimum seconds on content"
    )
    require_scrolling: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    require_mouse_movement: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    min_scroll_percentage: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_ad_clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    @property
    def is_active(self) -> bool:
        """Check if task is available to members."""
        return self.status == TaskStatus.ACTIVE

    def to_dict(self) -> dict:
        """Serialize task fields for API responses."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "category": self.category,
            "difficulty": self.difficulty,
            "reward": float(self.reward or 0),
            "target": self.target,
            "completions": self.completions,
            "attempts": self.attempts,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "articleUrl": self.article_url,
            "minDuration": self.min_duration,
            "requireScrolling": self.require_scrolling,
            "requireMouseMovement": self.require_mouse_movement,
            "minScrollPercentage": self.min_scroll_percentage,
            "maxAttempts": self.max_attempts,
            "minAdClicks": self.min_ad_clicks,
        }
