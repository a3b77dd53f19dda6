"""
Expiry policy for pending bookings.

A booking that nobody accepts expires at a deadline that depends on how far
ahead of its due time it was created.
"""

from datetime import datetime, timedelta

# Thresholds in minutes between creation and due time
SHORT_NOTICE_MINUTES = 90
ONE_DAY_MINUTES = 1440
THREE_DAYS_MINUTES = 4320


def will_expire_at(due: datetime, created_at: datetime) -> datetime:
    """
    Compute the expiry deadline of a booking.

    - up to 90 minutes of notice: expires at the due time
    - up to 24 hours: 90 minutes after creation
    - up to 72 hours: 16 hours after creation
    - otherwise: 48 hours before the due time

    Args:
        due: When the session starts
        created_at: When the booking was (re)opened

    Returns:
        Expiry deadline
    """
    minutes = int(abs((due - created_at).total_seconds()) // 60)

    if minutes <= SHORT_NOTICE_MINUTES:
        return due
    if minutes <= ONE_DAY_MINUTES:
        return created_at + timedelta(minutes=90)
    if minutes <= THREE_DAYS_MINUTES:
        return created_at + timedelta(hours=16)
    return due - timedelta(hours=48)
