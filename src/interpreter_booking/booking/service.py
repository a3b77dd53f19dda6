"""
Booking service.

Runs lifecycle operations and publishes the resulting domain events to the
notification handler once the state change has been persisted. Delivery
problems are logged and never undo a booking change.
"""

import logging
from typing import Any

from interpreter_booking.booking.config import BookingSettings, get_booking_settings
from interpreter_booking.booking.creation import CreateJobRequest
from interpreter_booking.booking.engine import DistanceFeedRequest, JobLifecycleEngine
from interpreter_booking.booking.matching import EligibilityMatcher
from interpreter_booking.booking.transitions import UpdateJobRequest
from interpreter_booking.core.clock import Clock, SystemClock
from interpreter_booking.core.contracts import JobStore, NotificationChannel, TranslatorDirectory
from interpreter_booking.core.events import DomainEvent
from interpreter_booking.core.models import ActingUser, Job
from interpreter_booking.core.results import BookingResult
from interpreter_booking.notifications.config import NotificationSettings
from interpreter_booking.notifications.dispatcher import DispatchReport, NotificationDispatcher
from interpreter_booking.notifications.handler import NotificationHandler

logger = logging.getLogger(__name__)


class BookingService:
    """
    Entry point used by the API and the CLI.

    Usage:
        service = build_booking_service(store, directory, channel)
        result = await service.accept_job(user, job_id)
    """

    def __init__(
        self,
        engine: JobLifecycleEngine,
        handler: NotificationHandler,
        dispatcher: NotificationDispatcher,
    ):
        self.engine = engine
        self.handler = handler
        self.dispatcher = dispatcher

    @property
    def store(self) -> JobStore:
        return self.engine.store

    async def publish(self, events: list[DomainEvent]) -> None:
        """Hand events to the notification handler, logging any failure."""
        for event in events:
            try:
                await self.handler.handle(event)
            except Exception as e:
                logger.error(f"Notifications for {event.name} on job {event.job.id} failed: {e}")

    async def _publish_result(self, result: BookingResult) -> BookingResult:
        if result.ok:
            await self.publish(result.events)
        return result

    # -------------------------------------------------------------------------
    # Lifecycle operations
    # -------------------------------------------------------------------------

    async def create_job(
        self, user: ActingUser, request: CreateJobRequest | dict[str, Any]
    ) -> BookingResult:
        return await self._publish_result(await self.engine.create_job(user, request))

    async def store_job_email(self, user: ActingUser, job_id: int, **fields: Any) -> BookingResult:
        return await self._publish_result(
            await self.engine.store_job_email(user, job_id, **fields)
        )

    async def accept_job(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self._publish_result(await self.engine.accept_job(user, job_id))

    async def cancel_job(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self._publish_result(await self.engine.cancel_job(user, job_id))

    async def end_job(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self._publish_result(await self.engine.end_job(user, job_id))

    async def customer_not_call(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self._publish_result(await self.engine.customer_not_call(user, job_id))

    async def reopen(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self._publish_result(await self.engine.reopen(user, job_id))

    async def update_job(
        self, user: ActingUser, job_id: int, request: UpdateJobRequest | dict[str, Any]
    ) -> BookingResult:
        return await self._publish_result(await self.engine.update_job(user, job_id, request))

    async def distance_feed(
        self, user: ActingUser, job_id: int, request: DistanceFeedRequest | dict[str, Any]
    ) -> BookingResult:
        return await self.engine.distance_feed(user, job_id, request)

    async def ignore_expiring(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self.engine.ignore_expiring(user, job_id)

    async def ignore_expired(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self.engine.ignore_expired(user, job_id)

    async def expire_job(self, user: ActingUser, job_id: int) -> BookingResult:
        return await self._publish_result(await self.engine.expire_job(user, job_id))

    async def expire_due_jobs(self, user: ActingUser) -> list[BookingResult]:
        """Time out every pending booking past its deadline."""
        results = []
        for job in await self.engine.expired_jobs():
            results.append(await self.expire_job(user, job.id))
        return results

    async def expired_jobs(self) -> list[Job]:
        return await self.engine.expired_jobs()

    async def potential_jobs(self, user: ActingUser) -> list[Job]:
        return await self.engine.potential_jobs(user)

    # -------------------------------------------------------------------------
    # Manual notification resend
    # -------------------------------------------------------------------------

    async def resend_notifications(self, job_id: int) -> DispatchReport:
        """Offer a booking to all eligible translators again by push."""
        job = await self.store.find_or_fail(job_id)
        return await self.dispatcher.notify_eligible_translators(job)

    async def resend_sms_notifications(self, job_id: int) -> DispatchReport:
        """Text all eligible translators about a booking again."""
        job = await self.store.find_or_fail(job_id)
        return await self.dispatcher.notify_sms(job)


def build_booking_service(
    store: JobStore,
    directory: TranslatorDirectory,
    channel: NotificationChannel,
    *,
    clock: Clock | None = None,
    booking_settings: BookingSettings | None = None,
    notification_settings: NotificationSettings | None = None,
    logger: logging.Logger | None = None,
) -> BookingService:
    """Wire the engine, matcher, dispatcher and handler around the given adapters."""
    booking_settings = booking_settings or get_booking_settings()
    clock = clock or SystemClock(booking_settings.timezone)
    matcher = EligibilityMatcher(directory, store)
    dispatcher = NotificationDispatcher(
        channel, directory, matcher, clock, settings=notification_settings
    )
    engine = JobLifecycleEngine(
        store, directory, matcher, clock=clock, settings=booking_settings, logger=logger
    )
    return BookingService(engine, NotificationHandler(dispatcher, directory), dispatcher)
