"""
Reward package: plan resolution and per-task reward pricing.
"""

from taskengine.services.reward.plans import (
    DEFAULT_PLAN,
    ResolvedPlan,
    builtin_plan,
    resolve_plan,
)
from taskengine.services.reward.reward_calculator import (
    FallbackPolicy,
    OverridePolicy,
    PlanDerivedPolicy,
    RewardPolicy,
    compute_reward,
    evaluate_policy,
    resolve_reward_policy,
)

__all__ = [
    "DEFAULT_PLAN",
    "FallbackPolicy",
    "OverridePolicy",
    "PlanDerivedPolicy",
    "ResolvedPlan",
    "RewardPolicy",
    "builtin_plan",
    "compute_reward",
    "evaluate_policy",
    "resolve_plan",
    "resolve_reward_policy",
]
