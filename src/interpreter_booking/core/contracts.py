"""
Collaborator contracts consumed by the booking core.

The engine only talks to these abstract interfaces. Concrete implementations
live in ``interpreter_booking.storage`` (PostgreSQL) and
``interpreter_booking.notifications.channels`` (HTTP).
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from interpreter_booking.core.exceptions import JobNotFoundError
from interpreter_booking.core.models import (
    CustomerProfile,
    Job,
    JobStatus,
    Recipient,
    TranslatorAssignment,
    TranslatorProfile,
)


class JobStore(ABC):
    """
    Persistence contract for jobs and their assignment history.

    Every method must be atomic at record granularity.
    """

    @abstractmethod
    async def find(self, job_id: int) -> Job | None:
        """Return the job or None."""
        ...

    async def find_or_fail(self, job_id: int) -> Job:
        """
        Return the job.

        Raises:
            JobNotFoundError: If the id does not exist
        """
        job = await self.find(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    @abstractmethod
    async def create(self, fields: dict[str, Any]) -> Job:
        """Insert a new job and return it with its id."""
        ...

    @abstractmethod
    async def update(
        self,
        job_id: int,
        fields: dict[str, Any],
        expected_status: JobStatus | None = None,
    ) -> bool:
        """
        Write ``fields`` to the job.

        When ``expected_status`` is given the write only happens if the stored
        status still equals it (compare-and-set).

        Returns:
            True if a row was written
        """
        ...

    @abstractmethod
    async def insert_assignment_if_absent(
        self, job_id: int, translator_id: int, assigned_at: datetime
    ) -> TranslatorAssignment | None:
        """
        Create an open assignment unless the job already has one.

        Returns:
            The new assignment, or None if another translator holds the job
        """
        ...

    @abstractmethod
    async def create_assignment(
        self,
        job_id: int,
        translator_id: int,
        assigned_at: datetime,
        cancel_at: datetime | None = None,
    ) -> TranslatorAssignment:
        """Append an assignment record unconditionally (admin reassignment)."""
        ...

    @abstractmethod
    async def assignments(self, job_id: int) -> list[TranslatorAssignment]:
        """All assignment records of a job, oldest first."""
        ...

    async def current_assignment(self, job_id: int) -> TranslatorAssignment | None:
        """The open assignment of a job, if any."""
        for assignment in reversed(await self.assignments(job_id)):
            if assignment.is_open:
                return assignment
        return None

    @abstractmethod
    async def close_assignment(
        self,
        assignment_id: int,
        *,
        cancel_at: datetime | None = None,
        completed_at: datetime | None = None,
        completed_by: int | None = None,
    ) -> None:
        """Set cancel_at or completed_at on an assignment."""
        ...

    @abstractmethod
    async def cancel_open_assignments(self, job_id: int, cancel_at: datetime) -> int:
        """Cancel every open assignment of a job. Returns the number closed."""
        ...

    @abstractmethod
    async def reset_to_pending(
        self,
        job_id: int,
        fields: dict[str, Any],
        expected_status: JobStatus,
        cancel_at: datetime,
    ) -> bool:
        """
        Put a job back to pending and cancel its open assignments atomically.

        ``fields`` must set the status to pending. Nothing is written unless
        the stored status still equals ``expected_status``, and no accept can
        land between the status write and the cancellation.

        Returns:
            True if the job was reset
        """
        ...

    @abstractmethod
    async def jobs_assigned_to(self, translator_id: int) -> list[Job]:
        """Jobs on which the translator holds an open assignment."""
        ...

    @abstractmethod
    async def list_by_status(self, statuses: Iterable[JobStatus]) -> list[Job]:
        """Jobs in any of the given states, ordered by due date."""
        ...

    @abstractmethod
    async def list_expired(self, now: datetime) -> list[Job]:
        """Pending jobs whose will_expire_at has passed and are not ignored."""
        ...

    @abstractmethod
    async def update_distance(self, job_id: int, fields: dict[str, Any]) -> bool:
        """Write distance/time for a job. Returns True if a record was written."""
        ...


class TranslatorDirectory(ABC):
    """Read-only view of the user-identity subsystem."""

    @abstractmethod
    async def list_active(self) -> list[TranslatorProfile]:
        ...

    @abstractmethod
    async def profile(self, user_id: int) -> TranslatorProfile | None:
        ...

    async def languages_of(self, user_id: int) -> set[int]:
        profile = await self.profile(user_id)
        return set(profile.languages) if profile else set()

    @abstractmethod
    async def blacklist_of(self, customer_id: int) -> set[int]:
        """Translator ids the customer does not want to work with."""
        ...

    @abstractmethod
    async def customer(self, user_id: int) -> CustomerProfile | None:
        ...

    @abstractmethod
    async def find_translator_by_email(self, email: str) -> TranslatorProfile | None:
        ...

    @abstractmethod
    async def language_name(self, language_id: int) -> str:
        ...


class NotificationChannel(ABC):
    """
    Outbound delivery channel.

    Implementations raise ``NotificationError`` when a message could not be
    delivered and must bound every call with a timeout.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel name for logging."""
        ...

    @abstractmethod
    async def send_email(
        self, to: Recipient, subject: str, template: str, data: dict[str, Any]
    ) -> None:
        ...

    @abstractmethod
    async def send_push(
        self,
        recipients: list[Recipient],
        payload: dict[str, Any],
        send_after: datetime | None = None,
    ) -> None:
        ...

    @abstractmethod
    async def send_sms(self, to: str, message: str) -> None:
        ...
