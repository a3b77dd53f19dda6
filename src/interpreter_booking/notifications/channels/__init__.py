"""
Notification delivery channels.
"""

from interpreter_booking.notifications.channels.http import HttpNotificationChannel

__all__ = ["HttpNotificationChannel"]
