"""
Reward calculator.

Computes the per-task reward from the platform override and the user's
plan. Pure and deterministic: the same inputs always give the same
amount, and nothing here is cached.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from taskengine.config.constants import FALLBACK_TASK_REWARD
from taskengine.services.reward.plans import ResolvedPlan


@dataclass(frozen=True)
class OverridePolicy:
    """Platform-wide amount set by an operator."""

    amount: int


@dataclass(frozen=True)
class PlanDerivedPolicy:
    """Daily plan earning spread over the plan's daily task quota."""

    plan: ResolvedPlan


@dataclass(frozen=True)
class FallbackPolicy:
    """Flat fallback reward."""


RewardPolicy = OverridePolicy | PlanDerivedPolicy | FallbackPolicy


def resolve_reward_policy(
    global_override: int | None, plan: ResolvedPlan | None
) -> RewardPolicy:
    """
    Pick the policy that prices a task.

    Precedence: positive override, then a persisted plan with a positive
    daily earning, then the fallback.
    """
    if global_override is not None and global_override > 0:
        return OverridePolicy(amount=global_override)
    if (
        plan is not None
        and plan.is_persisted
        and plan.daily_task_earning > 0
        and plan.tasks_per_day > 0
    ):
        return PlanDerivedPolicy(plan=plan)
    return FallbackPolicy()


def evaluate_policy(policy: RewardPolicy) -> int:
    """Turn a policy into a whole reward amount."""
    match policy:
        case OverridePolicy(amount=amount):
            return amount
        case PlanDerivedPolicy(plan=plan):
            per_task = plan.daily_task_earning / Decimal(plan.tasks_per_day)
            return int(per_task.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        case FallbackPolicy():
            return FALLBACK_TASK_REWARD
    raise TypeError(f"Unknown reward policy: {policy!r}")


def compute_reward(global_override: int | None, plan: ResolvedPlan | None) -> int:
    """
    Compute the reward for one task.

    Args:
        global_override: GLOBAL_TASK_AMOUNT value read for this request
        plan: User's resolved plan

    Returns:
        Reward amount (always > 0)
    """
    return evaluate_policy(resolve_reward_policy(global_override, plan))
