"""
Referral-tier qualification rules.

After the trial window a member keeps earning only with a direct referral
whose plan meets the member's own plan tier.
"""

from collections.abc import Callable, Sequence

ReferralRule = Callable[[list[str]], bool]


def _any_referral(referral_plans: list[str]) -> bool:
    return len(referral_plans) >= 1


def _any_of(*plans: str) -> ReferralRule:
    def rule(referral_plans: list[str]) -> bool:
        return any(plan in plans for plan in referral_plans)

    return rule


# Member plan (upper-cased) -> rule over referral plans (upper-cased)
REFERRAL_RULES: dict[str, ReferralRule] = {
    "BASIC": _any_referral,
    "STANDARD": _any_of("STANDARD", "PREMIUM"),
    "PREMIUM": _any_of("PREMIUM"),
}

# Unknown or missing plan
DEFAULT_REFERRAL_RULE: ReferralRule = _any_referral


def normalize_plan_name(name: str | None) -> str:
    """Upper-case a plan name, treating None as empty."""
    return (name or "").strip().upper()


def has_qualifying_referral(
    plan_name: str | None, referral_plans: Sequence[str | None]
) -> bool:
    """
    Check the referral-tier rule for a member's plan.

    Args:
        plan_name: Member's own plan name
        referral_plans: Plan names of the member's direct referrals
            (one entry per referral, None for referrals without a plan)

    Returns:
        True if the referrals satisfy the plan's rule
    """
    normalized = [normalize_plan_name(plan) for plan in referral_plans]
    rule = REFERRAL_RULES.get(normalize_plan_name(plan_name), DEFAULT_REFERRAL_RULE)
    return rule(normalized)
