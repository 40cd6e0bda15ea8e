"""
Member context loading.

Gathers the fresh snapshot every task decision is made from: the user,
the resolved plan and the eligibility decision. Nothing here is cached.
"""

from dataclasses import dataclass
from datetime import datetime

from taskengine.models.user import User
from taskengine.repositories.membership_plan_repository import (
    MembershipPlanRepository,
)
from taskengine.repositories.user_repository import UserRepository
from taskengine.services.eligibility.resolver import (
    EligibilityDecision,
    resolve_eligibility,
)
from taskengine.services.reward.plans import ResolvedPlan, resolve_plan
from taskengine.services.reward.reward_calculator import compute_reward
from taskengine.utils.exceptions import UserNotFoundError


@dataclass(frozen=True)
class MemberContext:
    """Snapshot of a member for one request."""

    user: User
    plan: ResolvedPlan
    eligibility: EligibilityDecision
    reward: int


async def load_member_context(
    users: UserRepository,
    plans: MembershipPlanRepository,
    user_id: int,
    now: datetime,
    global_override: int | None,
) -> MemberContext:
    """
    Load user, plan, eligibility and per-task reward.

    Referral plans are only read for active members with tasks enabled;
    for anyone else the decision is already terminal.

    Raises:
        UserNotFoundError: If the user does not exist
    """
    user = await users.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError("User not found", userId=user_id)

    persisted = await plans.find_by_name(user.membership_plan)
    plan = resolve_plan(user.membership_plan, persisted)

    referral_plans: list[str | None] = []
    if user.is_membership_active and user.tasks_enabled:
        referral_plans = await users.get_referral_plans(user.id)

    eligibility = resolve_eligibility(user, user.membership_plan, referral_plans, now)
    return MemberContext(
        user=user,
        plan=plan,
        eligibility=eligibility,
        reward=compute_reward(global_override, plan),
    )
