"""
Membership plan resolution.

Turns a user's plan name into the plan parameters the engine works with.
"""

from dataclasses import dataclass
from decimal import Decimal

from taskengine.config.constants import (
    BUILTIN_PLANS,
    DEFAULT_DAILY_TASK_EARNING,
    DEFAULT_MAX_EARNING_DAYS,
    DEFAULT_PLAN_NAME,
    DEFAULT_TASKS_PER_DAY,
)
from taskengine.models.membership_plan import MembershipPlan


@dataclass(frozen=True)
class ResolvedPlan:
    """
    Plan parameters after resolution.

    ``id`` is set only for plans loaded from the plans table. Built-in
    plans have no durable id and never drive plan-derived rewards.
    """

    name: str
    tasks_per_day: int
    daily_task_earning: Decimal
    max_earning_days: int
    extended_earning_days: int | None = None
    id: int | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @classmethod
    def from_model(cls, plan: MembershipPlan) -> "ResolvedPlan":
        return cls(
            id=plan.id,
            name=plan.name,
            tasks_per_day=plan.tasks_per_day,
            daily_task_earning=Decimal(plan.daily_task_earning or 0),
            max_earning_days=plan.max_earning_days,
            extended_earning_days=plan.extended_earning_days,
        )


DEFAULT_PLAN = ResolvedPlan(
    name=DEFAULT_PLAN_NAME,
    tasks_per_day=DEFAULT_TASKS_PER_DAY,
    daily_task_earning=DEFAULT_DAILY_TASK_EARNING,
    max_earning_days=DEFAULT_MAX_EARNING_DAYS,
)


def builtin_plan(name: str | None) -> ResolvedPlan | None:
    """Look up a built-in plan by case-insensitive name."""
    if not name:
        return None
    definition = BUILTIN_PLANS.get(name.upper())
    if definition is None:
        return None
    return ResolvedPlan(
        name=name.upper(),
        tasks_per_day=definition["tasks_per_day"],
        daily_task_earning=definition["daily_task_earning"],
        max_earning_days=definition["max_earning_days"],
        extended_earning_days=definition["extended_earning_days"],
    )


def resolve_plan(
    plan_name: str | None, persisted: MembershipPlan | None
) -> ResolvedPlan:
    """
    Resolve plan parameters.

    Order: persisted row, then built-in plan table, then DEFAULT.

    Args:
        plan_name: User's plan name (any case, may be None)
        persisted: Row found in the plans table for that name, if any

    Returns:
        ResolvedPlan (never None)
    """
    if persisted is not None:
        return ResolvedPlan.from_model(persisted)
    return builtin_plan(plan_name) or DEFAULT_PLAN
