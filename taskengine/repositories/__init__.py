"""
Data access repositories.
"""

from taskengine.repositories.base import BaseRepository
from taskengine.repositories.membership_plan_repository import (
    MembershipPlanRepository,
)
from taskengine.repositories.task_completion_repository import (
    TaskCompletionRepository,
)
from taskengine.repositories.task_repository import TaskRepository
from taskengine.repositories.transaction_repository import TransactionRepository
from taskengine.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "MembershipPlanRepository",
    "TaskCompletionRepository",
    "TaskRepository",
    "TransactionRepository",
    "UserRepository",
]
