"""
Application constants.

Centralized constants for the task engine.
"""

from decimal import Decimal

# ========================================================================
# MEMBERSHIP & TASK CONSTANTS
# ========================================================================

# Reward paid per task when neither an override nor a persisted plan applies
FALLBACK_TASK_REWARD = 30

# Days after membership start during which tasks need no referrals
TRIAL_PERIOD_DAYS = 30

# Environment variable holding the platform-wide per-task reward
GLOBAL_TASK_AMOUNT_ENV = "GLOBAL_TASK_AMOUNT"

# Display currency for task rewards
TASK_CURRENCY = "PKR"

# Progress value a task needs when the task row does not define one
DEFAULT_TASK_TARGET = 100

# Sponsor share of each task reward
TASK_COMMISSION_RATE = 0.10

# Plan used when a user has no plan or the plan name is unknown
DEFAULT_PLAN_NAME = "DEFAULT"
DEFAULT_TASKS_PER_DAY = 5
DEFAULT_DAILY_TASK_EARNING = Decimal("0")
DEFAULT_MAX_EARNING_DAYS = 365

# Built-in plan definitions used when the plans table has no matching row.
# These carry no durable id, so rewards derived from them fall back to
# FALLBACK_TASK_REWARD.
BUILTIN_PLANS: dict[str, dict] = {
    "BASIC": {
        "display_name": "Basic Plan",
        "price": Decimal("1000"),
        "tasks_per_day": 5,
        "daily_task_earning": Decimal("50"),
        "max_earning_days": 30,
        "extended_earning_days": 60,
    },
    "STANDARD": {
        "display_name": "Standard Plan",
        "price": Decimal("3000"),
        "tasks_per_day": 5,
        "daily_task_earning": Decimal("150"),
        "max_earning_days": 30,
        "extended_earning_days": 60,
    },
    "PREMIUM": {
        "display_name": "Premium Plan",
        "price": Decimal("8000"),
        "tasks_per_day": 5,
        "daily_task_earning": Decimal("400"),
        "max_earning_days": 30,
        "extended_earning_days": 60,
    },
}

# ========================================================================
# PAGINATION
# ========================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# ========================================================================
# CONTENT VERIFICATION
# ========================================================================

DEFAULT_MIN_DURATION_SECONDS = 45
DEFAULT_MIN_SCROLL_PERCENTAGE = 50
MIN_MOUSE_MOVEMENTS = 10
SUSPICIOUS_MIN_SECONDS = 30
SUSPICIOUS_MIN_MOUSE_MOVEMENTS = 5

# ========================================================================
# COUNTRY RESTRICTION
# ========================================================================

DEFAULT_BLOCKED_COUNTRIES = ("IN", "PK", "BD")

# ========================================================================
# RATE LIMITING (milliseconds)
# ========================================================================

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Capacity and idle TTL of the in-memory timestamp store
RATE_LIMIT_STORE_MAX_KEYS = 1000
RATE_LIMIT_STORE_TTL_MS = HOUR_MS

# ========================================================================
# CACHE (seconds)
# ========================================================================

CACHE_DEFAULT_MAX_SIZE = 500
CACHE_DEFAULT_TTL = 5 * 60
