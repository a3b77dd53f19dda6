"""
Notification delivery for booking events.

Usage:
    from interpreter_booking.notifications import NotificationDispatcher, NotificationHandler

    dispatcher = NotificationDispatcher(channel, directory, matcher, clock)
    handler = NotificationHandler(dispatcher, directory)
    await handler.handle(event)
"""

from interpreter_booking.notifications.config import (
    NotificationSettings,
    get_notification_settings,
)
from interpreter_booking.notifications.dispatcher import (
    DeliveryFailure,
    DispatchReport,
    NotificationDispatcher,
)
from interpreter_booking.notifications.handler import NotificationHandler

__all__ = [
    "DeliveryFailure",
    "DispatchReport",
    "NotificationDispatcher",
    "NotificationHandler",
    "NotificationSettings",
    "get_notification_settings",
]
