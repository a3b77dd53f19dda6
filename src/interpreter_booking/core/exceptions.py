"""
Exception hierarchy for the booking engine.

Business-rule rejections and validation failures are NOT exceptions - they are
returned as ``BookingResult`` values. The classes below cover the cases that
callers cannot treat as a normal outcome: missing records, infrastructure
faults and notification delivery errors.
"""


class BookingError(Exception):
    """Base class for all booking engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    """A referenced record does not exist."""


class JobNotFoundError(NotFoundError):
    """Raised when a job id cannot be resolved."""

    def __init__(self, job_id: int) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class TranslatorNotFoundError(NotFoundError):
    """Raised when a translator id or e-mail cannot be resolved."""

    def __init__(self, reference: int | str) -> None:
        super().__init__(f"Translator not found: {reference}")
        self.reference = reference


class StoreUnavailableError(BookingError):
    """
    The job store or translator directory could not be reached.

    Propagated to the request layer, which decides the retry policy.
    """


class NotificationError(BookingError):
    """
    A notification channel failed to deliver a message.

    Channels raise this; the dispatcher catches it per recipient and reports
    it as a delivery failure.
    """

    def __init__(self, channel: str, message: str, recipient: str | None = None) -> None:
        super().__init__(f"[{channel}] {message}")
        self.channel = channel
        self.recipient = recipient


class ConfigurationError(BookingError):
    """A required setting is missing or invalid."""
