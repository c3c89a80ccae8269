"""
DateTime utilities for consistent timezone handling.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get the current UTC time with timezone awareness.

    Returns:
        datetime: Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def seconds_until(moment: datetime, now: datetime) -> float:
    """Seconds from ``now`` until ``moment`` (negative when already past)."""
    return (moment - now).total_seconds()
