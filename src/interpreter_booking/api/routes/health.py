"""
Health check endpoints.
"""

from fastapi import APIRouter
from sqlalchemy import text

from interpreter_booking import __version__
from interpreter_booking.core.exceptions import BookingError
from interpreter_booking.notifications.config import get_notification_settings
from interpreter_booking.storage import get_connection

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    Check overall API health.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": "interpreter-booking",
        "version": __version__,
    }


@router.get("/health/database")
async def database_health():
    """
    Check that the booking database answers queries.

    Returns:
        Database status
    """
    try:
        connection = await get_connection()
        async with connection.session() as session:
            await session.execute(text("SELECT 1"))
    except BookingError as e:
        return {"database": "error", "message": e.message}

    return {"database": "ok", "host": connection.settings.database_host}


@router.get("/health/notifications")
async def notifications_health():
    """
    Report which notification channels are configured.

    Returns:
        Configured flag per channel
    """
    settings = get_notification_settings()
    return {
        "push": settings.is_enabled,
        "sms": bool(settings.sms_api_url),
        "email": bool(settings.mail_api_url),
    }
