"""
Eligibility package.
"""

from taskengine.services.eligibility.referral_rules import (
    REFERRAL_RULES,
    has_qualifying_referral,
    normalize_plan_name,
)
from taskengine.services.eligibility.resolver import (
    EligibilityDecision,
    EligibilityReason,
    resolve_eligibility,
    trial_end_for,
)

__all__ = [
    "REFERRAL_RULES",
    "EligibilityDecision",
    "EligibilityReason",
    "has_qualifying_referral",
    "normalize_plan_name",
    "resolve_eligibility",
    "trial_end_for",
]
