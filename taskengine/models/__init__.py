"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from taskengine.models.base import Base
from taskengine.models.enums import (
    CompletionStatus,
    MembershipStatus,
    TaskStatus,
    TransactionStatus,
    TransactionType,
)
from taskengine.models.membership_plan import MembershipPlan
from taskengine.models.task import Task
from taskengine.models.task_completion import TaskCompletion
from taskengine.models.transaction import Transaction
from taskengine.models.user import User

__all__ = [
    "Base",
    "CompletionStatus",
    "MembershipPlan",
    "MembershipStatus",
    "Task",
    "TaskCompletion",
    "TaskStatus",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
]
