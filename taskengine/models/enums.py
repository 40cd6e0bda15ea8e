"""
Status constants shared by models and services.
"""


class MembershipStatus:
    """Membership status constants."""

    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"


class TaskStatus:
    """Task catalogue status constants."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CompletionStatus:
    """Task completion (session) status constants."""

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TransactionType:
    """Balance ledger entry types."""

    TASK_REWARD = "TASK_REWARD"


class TransactionStatus:
    """Balance ledger entry status constants."""

    COMPLETED = "COMPLETED"
