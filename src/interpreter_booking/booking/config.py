"""
Booking rule settings.

Business constants of the lifecycle engine, overridable through
environment variables with the ``BOOKING_`` prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class BookingSettings(BaseSettings):
    """
    Configuration for the lifecycle engine.

    Passed to the engine at construction; nothing in the engine reads the
    environment directly.
    """

    # Immediate bookings are due this many minutes after creation
    immediate_job_minutes: int = 5

    # Customer withdrawals at least this far ahead are "withdrawbefore24"
    withdraw_notice_hours: int = 24

    # Translators may only give a job back more than this far ahead
    translator_cancel_notice_hours: int = 24

    # Timezone of all stored timestamps
    timezone: str = "Europe/Stockholm"

    # Shown to translators who try to cancel too late
    support_phone: str = "+46 73 75 86 865"

    class Config:
        env_prefix = "BOOKING_"
        case_sensitive = False
        extra = "ignore"


@lru_cache
def get_booking_settings() -> BookingSettings:
    """Get cached booking settings instance."""
    return BookingSettings()
