"""
Request dependencies: the acting user and the booking service.
"""

from fastapi import Header

from interpreter_booking.booking.service import BookingService, build_booking_service
from interpreter_booking.core.models import ActingUser, UserRole
from interpreter_booking.notifications.channels import HttpNotificationChannel
from interpreter_booking.storage import get_directory, get_job_store

# Global service instance
_service: BookingService | None = None
_channel: HttpNotificationChannel | None = None


async def get_service() -> BookingService:
    """
    Get the global booking service.

    Connects to the database and builds the service on first use.
    """
    global _service, _channel

    if _service is None:
        _channel = HttpNotificationChannel()
        _service = build_booking_service(
            await get_job_store(), await get_directory(), _channel
        )

    return _service


async def close_service() -> None:
    """Release the notification channel's HTTP client."""
    global _service, _channel

    if _channel is not None:
        await _channel.close()
    _service = None
    _channel = None


def get_acting_user(
    x_user_id: int = Header(..., description="Id of the user making the request"),
    x_user_role: UserRole = Header(..., description="Role of the user making the request"),
) -> ActingUser:
    """Identity of the caller, as asserted by the upstream gateway."""
    return ActingUser(id=x_user_id, role=x_user_role)
