"""Core module containing domain models, events and collaborator contracts."""

from interpreter_booking.core.clock import Clock, SystemClock
from interpreter_booking.core.contracts import (
    JobStore,
    NotificationChannel,
    TranslatorDirectory,
)
from interpreter_booking.core.exceptions import (
    BookingError,
    ConfigurationError,
    JobNotFoundError,
    NotFoundError,
    NotificationError,
    StoreUnavailableError,
    TranslatorNotFoundError,
)
from interpreter_booking.core.models import (
    ActingUser,
    Certification,
    ConsumerType,
    CustomerProfile,
    Distance,
    Gender,
    Job,
    JobStatus,
    JobType,
    Recipient,
    TranslatorAssignment,
    TranslatorLevel,
    TranslatorProfile,
    TranslatorType,
    UserRole,
)
from interpreter_booking.core.results import BookingResult

__all__ = [
    "ActingUser",
    "BookingResult",
    "Certification",
    "Clock",
    "ConsumerType",
    "CustomerProfile",
    "Distance",
    "Gender",
    "Job",
    "JobStatus",
    "JobStore",
    "JobType",
    "NotificationChannel",
    "Recipient",
    "SystemClock",
    "TranslatorAssignment",
    "TranslatorDirectory",
    "TranslatorLevel",
    "TranslatorProfile",
    "TranslatorType",
    "UserRole",
    "BookingError",
    "ConfigurationError",
    "JobNotFoundError",
    "NotFoundError",
    "NotificationError",
    "StoreUnavailableError",
    "TranslatorNotFoundError",
]
