"""
Pytest configuration and shared fixtures.

The booking engine runs against in-memory fakes of its collaborators: a job
store with the same conditional-write semantics as the PostgreSQL one, a
translator directory, a channel that records what it was asked to send, and
a clock frozen at a known instant.
"""

import asyncio
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

import pytest

from interpreter_booking.booking.config import BookingSettings
from interpreter_booking.booking.engine import JobLifecycleEngine
from interpreter_booking.booking.matching import EligibilityMatcher
from interpreter_booking.booking.service import BookingService, build_booking_service
from interpreter_booking.core.clock import Clock
from interpreter_booking.core.contracts import JobStore, NotificationChannel, TranslatorDirectory
from interpreter_booking.core.exceptions import NotificationError
from interpreter_booking.core.models import (
    ActingUser,
    ConsumerType,
    CustomerProfile,
    Gender,
    Job,
    JobStatus,
    Recipient,
    TranslatorAssignment,
    TranslatorLevel,
    TranslatorProfile,
    TranslatorType,
    UserRole,
)
from interpreter_booking.notifications.config import NotificationSettings
from interpreter_booking.notifications.dispatcher import NotificationDispatcher
from interpreter_booking.notifications.handler import NotificationHandler

# Wednesday, mid-day
NOW = datetime(2026, 6, 10, 12, 0, 0)

ARABIC = 3
SWEDISH = 7


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-db",
        action="store_true",
        default=False,
        help="Run integration tests against the PostgreSQL database in DATABASE_URL",
    )


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "db: marks tests that need a live PostgreSQL database")


def pytest_collection_modifyitems(config, items):
    """Skip database tests unless --run-db is specified."""
    if config.getoption("--run-db"):
        return

    skip_db = pytest.mark.skip(reason="Need --run-db option to run")
    for item in items:
        if "db" in item.keywords:
            item.add_marker(skip_db)


# =============================================================================
# Fakes
# =============================================================================


class FrozenClock(Clock):
    def __init__(self, now: datetime = NOW) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: Any) -> None:
        self.current += timedelta(**kwargs)


class InMemoryJobStore(JobStore):
    """
    Dict-backed job store.

    Reads yield to the event loop so concurrent operations interleave the
    way they would against a database. The assignment insert, the
    conditional update and the reset to pending do not yield, which makes
    them atomic.
    """

    def __init__(self) -> None:
        self.jobs: dict[int, Job] = {}
        self.assignment_records: dict[int, TranslatorAssignment] = {}
        self.distances: dict[int, dict[str, Any]] = {}
        self._job_ids = 0
        self._assignment_ids = 0

    def add_job(self, **fields: Any) -> Job:
        """Insert a job synchronously with sensible defaults."""
        self._job_ids += 1
        data: dict[str, Any] = {
            "user_id": 1,
            "from_language_id": ARABIC,
            "due": NOW + timedelta(days=3),
            "duration": 60,
            "created_at": NOW - timedelta(hours=1),
            "customer_phone_type": True,
        }
        data.update(fields)
        data["id"] = self._job_ids
        job = Job.model_validate(data)
        self.jobs[job.id] = job
        return job

    def add_assignment(self, job_id: int, translator_id: int, **fields: Any) -> TranslatorAssignment:
        self._assignment_ids += 1
        assignment = TranslatorAssignment(
            id=self._assignment_ids,
            job_id=job_id,
            translator_id=translator_id,
            assigned_at=fields.pop("assigned_at", NOW - timedelta(hours=1)),
            **fields,
        )
        self.assignment_records[assignment.id] = assignment
        return assignment

    def open_assignments(self, job_id: int) -> list[TranslatorAssignment]:
        return [
            a for a in self.assignment_records.values() if a.job_id == job_id and a.is_open
        ]

    async def find(self, job_id: int) -> Job | None:
        await asyncio.sleep(0)
        return self.jobs.get(job_id)

    async def create(self, fields: dict[str, Any]) -> Job:
        fields = {key: value for key, value in fields.items() if key != "id"}
        return self.add_job(**fields)

    async def update(
        self,
        job_id: int,
        fields: dict[str, Any],
        expected_status: JobStatus | None = None,
    ) -> bool:
        job = self.jobs.get(job_id)
        if job is None:
            return False
        if expected_status is not None and job.status != expected_status:
            return False
        self.jobs[job_id] = Job.model_validate({**job.model_dump(), **fields})
        return True

    async def insert_assignment_if_absent(
        self, job_id: int, translator_id: int, assigned_at: datetime
    ) -> TranslatorAssignment | None:
        if self.open_assignments(job_id):
            return None
        return self.add_assignment(job_id, translator_id, assigned_at=assigned_at)

    async def create_assignment(
        self,
        job_id: int,
        translator_id: int,
        assigned_at: datetime,
        cancel_at: datetime | None = None,
    ) -> TranslatorAssignment:
        return self.add_assignment(
            job_id, translator_id, assigned_at=assigned_at, cancel_at=cancel_at
        )

    async def assignments(self, job_id: int) -> list[TranslatorAssignment]:
        await asyncio.sleep(0)
        return sorted(
            (a for a in self.assignment_records.values() if a.job_id == job_id),
            key=lambda a: a.id,
        )

    async def close_assignment(
        self,
        assignment_id: int,
        *,
        cancel_at: datetime | None = None,
        completed_at: datetime | None = None,
        completed_by: int | None = None,
    ) -> None:
        values = {
            key: value
            for key, value in {
                "cancel_at": cancel_at,
                "completed_at": completed_at,
                "completed_by": completed_by,
            }.items()
            if value is not None
        }
        record = self.assignment_records[assignment_id]
        self.assignment_records[assignment_id] = record.model_copy(update=values)

    async def cancel_open_assignments(self, job_id: int, cancel_at: datetime) -> int:
        closed = 0
        for assignment in self.open_assignments(job_id):
            await self.close_assignment(assignment.id, cancel_at=cancel_at)
            closed += 1
        return closed

    async def reset_to_pending(
        self,
        job_id: int,
        fields: dict[str, Any],
        expected_status: JobStatus,
        cancel_at: datetime,
    ) -> bool:
        if not await self.update(job_id, fields, expected_status=expected_status):
            return False
        await self.cancel_open_assignments(job_id, cancel_at)
        return True

    async def jobs_assigned_to(self, translator_id: int) -> list[Job]:
        await asyncio.sleep(0)
        job_ids = {
            a.job_id
            for a in self.assignment_records.values()
            if a.translator_id == translator_id and a.is_open
        }
        return sorted((self.jobs[i] for i in job_ids), key=lambda j: j.due)

    async def list_by_status(self, statuses: Iterable[JobStatus]) -> list[Job]:
        wanted = set(statuses)
        return sorted((j for j in self.jobs.values() if j.status in wanted), key=lambda j: j.due)

    async def list_expired(self, now: datetime) -> list[Job]:
        return sorted(
            (
                j
                for j in self.jobs.values()
                if j.status == JobStatus.PENDING
                and j.will_expire_at is not None
                and j.will_expire_at <= now
                and not j.ignore_expired
            ),
            key=lambda j: j.will_expire_at or now,
        )

    async def update_distance(self, job_id: int, fields: dict[str, Any]) -> bool:
        self.distances[job_id] = {**self.distances.get(job_id, {}), **fields}
        return True


class InMemoryDirectory(TranslatorDirectory):
    def __init__(self) -> None:
        self.translators: dict[int, TranslatorProfile] = {}
        self.customers: dict[int, CustomerProfile] = {}
        self.blacklists: dict[int, set[int]] = {}
        self.languages: dict[int, str] = {ARABIC: "Arabiska", SWEDISH: "Svenska"}

    def add_translator(self, user_id: int, **fields: Any) -> TranslatorProfile:
        data: dict[str, Any] = {
            "user_id": user_id,
            "name": f"Tolk {user_id}",
            "email": f"tolk{user_id}@example.se",
            "mobile": f"+4670000{user_id:04d}",
            "translator_type": TranslatorType.PROFESSIONAL,
            "languages": {ARABIC},
            "levels": {TranslatorLevel.CERTIFIED},
            "towns": {"Stockholm"},
        }
        data.update(fields)
        profile = TranslatorProfile.model_validate(data)
        self.translators[user_id] = profile
        return profile

    def add_customer(self, user_id: int, **fields: Any) -> CustomerProfile:
        data: dict[str, Any] = {
            "user_id": user_id,
            "name": f"Kund {user_id}",
            "email": f"kund{user_id}@example.se",
            "city": "Stockholm",
            "customer_type": "Kommun",
            "towns": {"Stockholm"},
        }
        data.update(fields)
        profile = CustomerProfile.model_validate(data)
        self.customers[user_id] = profile
        return profile

    async def list_active(self) -> list[TranslatorProfile]:
        return [t for t in self.translators.values() if t.active]

    async def profile(self, user_id: int) -> TranslatorProfile | None:
        return self.translators.get(user_id)

    async def blacklist_of(self, customer_id: int) -> set[int]:
        return set(self.blacklists.get(customer_id, set()))

    async def customer(self, user_id: int) -> CustomerProfile | None:
        return self.customers.get(user_id)

    async def find_translator_by_email(self, email: str) -> TranslatorProfile | None:
        for translator in self.translators.values():
            if translator.email == email:
                return translator
        return None

    async def language_name(self, language_id: int) -> str:
        return self.languages.get(language_id, "")


class RecordingChannel(NotificationChannel):
    """Channel that records messages and fails for configured addresses."""

    def __init__(self) -> None:
        self.emails: list[dict[str, Any]] = []
        self.pushes: list[dict[str, Any]] = []
        self.sms: list[tuple[str, str]] = []
        self.failing: set[str] = set()

    @property
    def name(self) -> str:
        return "recording"

    def _check(self, channel: str, address: str) -> None:
        if address in self.failing:
            raise NotificationError(channel, "gateway unavailable", address)

    async def send_email(
        self, to: Recipient, subject: str, template: str, data: dict[str, Any]
    ) -> None:
        self._check("email", to.email)
        self.emails.append({"to": to, "subject": subject, "template": template, "data": data})

    async def send_push(
        self,
        recipients: list[Recipient],
        payload: dict[str, Any],
        send_after: datetime | None = None,
    ) -> None:
        for recipient in recipients:
            self._check("push", recipient.email)
        self.pushes.append(
            {"recipients": recipients, "payload": payload, "send_after": send_after}
        )

    async def send_sms(self, to: str, message: str) -> None:
        self._check("sms", to)
        self.sms.append((to, message))

    def templates_for(self, email: str) -> list[str]:
        return [m["template"] for m in self.emails if m["to"].email == email]

    def push_types(self) -> list[str]:
        return [p["payload"]["data"]["notification_type"] for p in self.pushes]

    def pushed_user_ids(self, notification_type: str | None = None) -> list[int]:
        return [
            r.user_id
            for p in self.pushes
            if notification_type is None
            or p["payload"]["data"]["notification_type"] == notification_type
            for r in p["recipients"]
        ]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def directory() -> InMemoryDirectory:
    """Directory with one customer and three Arabic translators."""
    directory = InMemoryDirectory()
    directory.add_customer(1)
    directory.add_customer(2, consumer_type=ConsumerType.NGO)
    directory.add_translator(10, gender=Gender.MALE)
    directory.add_translator(11, gender=Gender.FEMALE, levels={TranslatorLevel.LAYMAN})
    directory.add_translator(12, gender=Gender.FEMALE, towns={"Göteborg"})
    return directory


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def booking_settings() -> BookingSettings:
    return BookingSettings(
        immediate_job_minutes=5,
        withdraw_notice_hours=24,
        translator_cancel_notice_hours=24,
        support_phone="+46 8 000 00 00",
    )


@pytest.fixture
def notification_settings() -> NotificationSettings:
    return NotificationSettings(night_start_hour=22, night_end_hour=7, business_start_hour=8)


@pytest.fixture
def matcher(directory, store) -> EligibilityMatcher:
    return EligibilityMatcher(directory, store)


@pytest.fixture
def engine(store, directory, matcher, clock, booking_settings) -> JobLifecycleEngine:
    return JobLifecycleEngine(store, directory, matcher, clock=clock, settings=booking_settings)


@pytest.fixture
def dispatcher(channel, directory, matcher, clock, notification_settings) -> NotificationDispatcher:
    return NotificationDispatcher(channel, directory, matcher, clock, settings=notification_settings)


@pytest.fixture
def handler(dispatcher, directory) -> NotificationHandler:
    return NotificationHandler(dispatcher, directory)


@pytest.fixture
def service(
    store, directory, channel, clock, booking_settings, notification_settings
) -> BookingService:
    return build_booking_service(
        store,
        directory,
        channel,
        clock=clock,
        booking_settings=booking_settings,
        notification_settings=notification_settings,
    )


@pytest.fixture
def customer() -> ActingUser:
    return ActingUser(id=1, role=UserRole.CUSTOMER)


@pytest.fixture
def translator() -> ActingUser:
    return ActingUser(id=10, role=UserRole.TRANSLATOR)


@pytest.fixture
def admin() -> ActingUser:
    return ActingUser(id=99, role=UserRole.ADMIN)
