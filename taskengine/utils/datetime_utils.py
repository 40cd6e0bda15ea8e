"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime, timedelta, tzinfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def start_of_local_day(now: datetime, tz: tzinfo) -> datetime:
    """
    Get local midnight of the day containing ``now``.

    Args:
        now: Reference moment (naive values are treated as UTC)
        tz: Timezone whose calendar day is used

    Returns:
        Timezone-aware datetime of local midnight
    """
    local = ensure_aware(now).astimezone(tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_local_week(now: datetime, tz: tzinfo) -> datetime:
    """
    Get local midnight of the Sunday starting the week containing ``now``.

    Args:
        now: Reference moment (naive values are treated as UTC)
        tz: Timezone whose calendar is used

    Returns:
        Timezone-aware datetime of the week start
    """
    day_start = start_of_local_day(now, tz)
    # weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (day_start.weekday() + 1) % 7
    return day_start - timedelta(days=days_since_sunday)


def next_local_midnight(now: datetime, tz: tzinfo) -> datetime:
    """Get the moment the daily quota resets."""
    return start_of_local_day(now, tz) + timedelta(days=1)
