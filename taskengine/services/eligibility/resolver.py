"""
Eligibility resolver.

Decides whether a member may act on tasks right now. The decision is a pure
function over a snapshot of the user, the plan and the user's direct
referrals; callers must load referrals fresh for every evaluation.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from taskengine.config.constants import TRIAL_PERIOD_DAYS
from taskengine.models.enums import MembershipStatus
from taskengine.models.user import User
from taskengine.services.eligibility.referral_rules import has_qualifying_referral
from taskengine.utils.datetime_utils import ensure_aware


class EligibilityReason:
    """Why a member is not eligible."""

    MEMBERSHIP_INACTIVE = "MEMBERSHIP_INACTIVE"
    TASKS_DISABLED = "TASKS_DISABLED"
    TRIAL_EXPIRED_NO_QUALIFYING_REFERRAL = "TRIAL_EXPIRED_NO_QUALIFYING_REFERRAL"


@dataclass(frozen=True)
class EligibilityDecision:
    """Outcome of an eligibility check."""

    eligible: bool
    reason: str | None = None
    within_trial: bool = False
    trial_ends_at: datetime | None = None
    referral_qualified: bool = False

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "reason": self.reason,
            "withinTrial": self.within_trial,
            "trialEndsAt": self.trial_ends_at.isoformat() if self.trial_ends_at else None,
            "referralQualified": self.referral_qualified,
        }


def trial_end_for(user: User, now: datetime) -> datetime:
    """
    End of the member's trial window.

    Counted from membership start, or account creation when no start
    date is recorded, or ``now`` when neither exists.
    """
    anchor = user.membership_start_date or user.created_at or now
    return ensure_aware(anchor) + timedelta(days=TRIAL_PERIOD_DAYS)


def resolve_eligibility(
    user: User,
    plan_name: str | None,
    referral_plans: Sequence[str | None],
    now: datetime,
) -> EligibilityDecision:
    """
    Resolve task eligibility.

    Args:
        user: Member snapshot
        plan_name: Member's plan name (as stored on the user)
        referral_plans: Plan names of direct referrals, loaded fresh
        now: Evaluation time (timezone-aware)

    Returns:
        EligibilityDecision
    """
    if user.membership_status != MembershipStatus.ACTIVE:
        return EligibilityDecision(
            eligible=False, reason=EligibilityReason.MEMBERSHIP_INACTIVE
        )
    if not user.tasks_enabled:
        return EligibilityDecision(
            eligible=False, reason=EligibilityReason.TASKS_DISABLED
        )

    now = ensure_aware(now)
    trial_end = trial_end_for(user, now)
    within_trial = now <= trial_end

    if within_trial:
        return EligibilityDecision(
            eligible=True, within_trial=True, trial_ends_at=trial_end
        )

    qualified = has_qualifying_referral(plan_name, referral_plans)
    return EligibilityDecision(
        eligible=qualified,
        reason=None if qualified else EligibilityReason.TRIAL_EXPIRED_NO_QUALIFYING_REFERRAL,
        within_trial=False,
        trial_ends_at=trial_end,
        referral_qualified=qualified,
    )
