"""
Booking lifecycle: matching, expiry, creation rules and the state machine.

``BookingService`` (in ``interpreter_booking.booking.service``) wraps the
engine and delivers notifications for the events it returns.
"""

from interpreter_booking.booking.config import BookingSettings, get_booking_settings
from interpreter_booking.booking.creation import CreateJobRequest
from interpreter_booking.booking.engine import DistanceFeedRequest, JobLifecycleEngine
from interpreter_booking.booking.expiry import will_expire_at
from interpreter_booking.booking.matching import EligibilityMatcher, is_eligible
from interpreter_booking.booking.transitions import UpdateJobRequest

__all__ = [
    "BookingSettings",
    "CreateJobRequest",
    "DistanceFeedRequest",
    "EligibilityMatcher",
    "JobLifecycleEngine",
    "UpdateJobRequest",
    "get_booking_settings",
    "is_eligible",
    "will_expire_at",
]
