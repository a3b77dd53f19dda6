"""
Business-hours helpers for delayed notifications.
"""

from datetime import datetime, timedelta

SATURDAY = 5


def is_night_time(now: datetime, night_start_hour: int = 22, night_end_hour: int = 7) -> bool:
    """
    Check whether ``now`` falls in the night window.

    The window wraps midnight: 22-07 means 22:00 <= t or t < 07:00.
    """
    if night_start_hour <= night_end_hour:
        return night_start_hour <= now.hour < night_end_hour
    return now.hour >= night_start_hour or now.hour < night_end_hour


def next_business_time(now: datetime, business_start_hour: int = 8) -> datetime:
    """
    Next weekday instant at ``business_start_hour``.

    Returns today's opening if it is still ahead, otherwise the next
    weekday's.
    """
    candidate = now.replace(hour=business_start_hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    while candidate.weekday() >= SATURDAY:
        candidate += timedelta(days=1)
    return candidate
