"""
UTC datetime helpers for history timestamps.

History records are stamped at capture time in UTC. Use these helpers
instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone (SQLite drops tzinfo on read)
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def days_ago_utc(days: int, now: datetime | None = None) -> datetime:
    """
    Return the UTC instant `days` days before `now` (default: current time).

    Args:
        days: Number of days to look back
        now: Optional reference instant (naive values are treated as UTC)

    Returns:
        UTC-aware datetime
    """
    reference = ensure_utc(now) or utc_now()
    return reference - timedelta(days=days)
