"""
Domain events returned by lifecycle operations.

The engine never sends notifications itself. Every operation returns the
events it produced inside its ``BookingResult``; the booking service hands
them to the notification handler after the state change is persisted.
"""

from datetime import datetime

from pydantic import BaseModel

from interpreter_booking.core.models import Job


class DomainEvent(BaseModel):
    """Base class for all booking events. ``job`` is the post-change snapshot."""

    job: Job

    @property
    def name(self) -> str:
        return type(self).__name__


class JobCreated(DomainEvent):
    """A bookable job exists; eligible translators should be told."""

    exclude_user_id: int | None = None
    offer_translators: bool = True


class BookingReceived(DomainEvent):
    """Customer confirmation that the booking was registered."""


class BookingConfirmed(DomainEvent):
    """A translator now holds the job."""

    translator_id: int
    push_requester: bool = False
    notify_translator: bool = False
    send_reminders: bool = False


class BookingCancelled(DomainEvent):
    """The booking was withdrawn or cancelled for the customer."""

    translator_id: int | None = None
    notify_requester: bool = False
    notify_translator: bool = False


class JobReleased(DomainEvent):
    """The assigned translator gave the job back; it is pending again."""

    translator_id: int


class SessionEnded(DomainEvent):
    """The interpretation session is over."""

    translator_id: int | None = None
    session_time: str
    ended_by: int | None = None
    push_counterpart: bool = True


class JobReopened(DomainEvent):
    """A job went back to pending and must be offered again."""

    notify_requester: bool = False
    original_job_id: int | None = None


class JobRescheduled(DomainEvent):
    old_due: datetime
    translator_id: int | None = None


class TranslatorReplaced(DomainEvent):
    old_translator_id: int | None = None
    new_translator_id: int


class LanguageChanged(DomainEvent):
    old_language_id: int
    translator_id: int | None = None


class JobExpired(DomainEvent):
    """Nobody accepted the booking before it expired."""
