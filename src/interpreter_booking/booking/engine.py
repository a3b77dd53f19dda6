"""
Job lifecycle engine.

Owns every state change of a booking: creation, acceptance, cancellation,
session end, reopening, administrative updates and expiry. Operations
persist through the ``JobStore`` and return a ``BookingResult`` carrying the
domain events they produced; sending notifications for those events is the
caller's job (see ``BookingService``).
"""

import logging
from datetime import timedelta
from typing import Any

from pydantic import BaseModel

from interpreter_booking.booking.config import BookingSettings, get_booking_settings
from interpreter_booking.booking.creation import (
    CreateJobRequest,
    InvalidBookingRequest,
    build_job_fields,
    job_for_labels,
)
from interpreter_booking.booking.expiry import will_expire_at
from interpreter_booking.booking.matching import EligibilityMatcher
from interpreter_booking.booking.transitions import UpdateJobRequest, plan_status_change
from interpreter_booking.core.clock import Clock, SystemClock
from interpreter_booking.core.contracts import JobStore, TranslatorDirectory
from interpreter_booking.core.events import (
    BookingCancelled,
    BookingConfirmed,
    BookingReceived,
    DomainEvent,
    JobCreated,
    JobExpired,
    JobReleased,
    JobReopened,
    JobRescheduled,
    LanguageChanged,
    SessionEnded,
    TranslatorReplaced,
)
from interpreter_booking.core.exceptions import TranslatorNotFoundError
from interpreter_booking.core.models import (
    ActingUser,
    Job,
    JobStatus,
    TranslatorAssignment,
    TranslatorProfile,
    UserRole,
)
from interpreter_booking.core.results import BookingResult
from interpreter_booking.notifications import messages

audit_logger = logging.getLogger("interpreter_booking.audit")

# Fields never copied when a timed-out booking is reopened as a new record
REOPEN_RESET_FIELDS = {"id", "end_at", "withdraw_at", "session_time"}


class DistanceFeedRequest(BaseModel):
    """Travel and bookkeeping data an administrator records for a booking."""

    distance: str | None = None
    time: str | None = None
    session_time: str | None = None
    admin_comments: str | None = None
    flagged: bool = False
    manually_handled: bool = False
    by_admin: bool = False


def format_session_time(elapsed: timedelta) -> str:
    """Format a duration as H:MM:SS with total hours (days are not dropped)."""
    total = int(abs(elapsed.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def intervals_overlap(a: Job, b: Job) -> bool:
    """Check whether two bookings' [due, due + duration) intervals overlap."""
    a_end = a.due + timedelta(minutes=a.duration)
    b_end = b.due + timedelta(minutes=b.duration)
    return a.due < b_end and b.due < a_end


class JobLifecycleEngine:
    """
    State machine for interpreter bookings.

    Usage:
        engine = JobLifecycleEngine(store, directory, matcher)
        result = await engine.accept_job(translator, job_id)
        if result.ok:
            ...
    """

    def __init__(
        self,
        store: JobStore,
        directory: TranslatorDirectory,
        matcher: EligibilityMatcher,
        clock: Clock | None = None,
        settings: BookingSettings | None = None,
        logger: logging.Logger | None = None,
    ):
        self.store = store
        self.directory = directory
        self.matcher = matcher
        self.settings = settings or get_booking_settings()
        self.clock = clock or SystemClock(self.settings.timezone)
        self.logger = logger or logging.getLogger(__name__)

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_job(
        self, user: ActingUser, request: CreateJobRequest | dict[str, Any]
    ) -> BookingResult:
        """
        Create a booking for a customer.

        Args:
            user: Acting user, must be a customer
            request: Booking form

        Returns:
            BookingResult with the new job, or a fail naming the bad field
        """
        if user.role != UserRole.CUSTOMER:
            return BookingResult.fail(messages.TRANSLATOR_CANNOT_BOOK)

        if not isinstance(request, CreateJobRequest):
            request = CreateJobRequest.model_validate(request)

        customer = await self.directory.customer(user.id)
        if customer is None:
            return BookingResult.fail(messages.CUSTOMER_NOT_FOUND, field_name="user_id")

        try:
            fields = build_job_fields(request, customer, self.clock.now(), self.settings)
        except InvalidBookingRequest as e:
            self.logger.debug(f"Rejected booking from user {user.id}: {e}")
            return BookingResult.fail(e.message, field_name=e.field_name)

        job = await self.store.create(fields)
        self.logger.info(f"Job {job.id} created by user {user.id} (due {job.due})")

        # Translators get the offer from store_job_email, once contact details exist
        return BookingResult.success(
            job=job,
            events=[JobCreated(job=job, offer_translators=False)],
            id=job.id,
            type="immediate" if job.immediate else "regular",
            customer_physical_type="yes" if job.customer_physical_type else "no",
            job_for=job_for_labels(job),
            customer_town=customer.city,
            customer_type=customer.customer_type,
        )

    async def store_job_email(
        self,
        user: ActingUser,
        job_id: int,
        *,
        user_email: str | None = None,
        reference: str | None = None,
        address: str | None = None,
        instructions: str | None = None,
        town: str | None = None,
    ) -> BookingResult:
        """
        Record the contact e-mail and location details of a new booking.

        Empty location fields fall back to the requester's profile. Sends the
        booking confirmation and offers the job to translators.
        """
        job = await self.store.find_or_fail(job_id)
        fields: dict[str, Any] = {"user_email": user_email, "reference": reference or ""}

        if address is not None:
            customer = await self.directory.customer(job.user_id)
            fields["address"] = address or (customer.address if customer else None)
            fields["instructions"] = instructions or (customer.instructions if customer else None)
            fields["town"] = town or (customer.city if customer else None)

        await self.store.update(job.id, fields)
        job = await self.store.find_or_fail(job.id)

        return BookingResult.success(
            job=job,
            events=[BookingReceived(job=job), JobCreated(job=job)],
            type=user.role.value,
        )

    # =========================================================================
    # Acceptance
    # =========================================================================

    async def _is_already_booked(self, translator_id: int, job: Job) -> bool:
        for other in await self.store.jobs_assigned_to(translator_id):
            if other.id != job.id and intervals_overlap(other, job):
                return True
        return False

    async def accept_job(self, user: ActingUser, job_id: int) -> BookingResult:
        """
        Let a translator take a pending booking.

        At most one translator wins when several accept at once: the
        assignment insert is conditional and the status write is a
        compare-and-set on ``pending``.
        """
        if user.role != UserRole.TRANSLATOR:
            return BookingResult.fail(messages.ONLY_TRANSLATORS_ACCEPT)

        job = await self.store.find_or_fail(job_id)

        if await self._is_already_booked(user.id, job):
            return BookingResult.fail(messages.already_booked(job.due))

        if job.status != JobStatus.PENDING:
            return BookingResult.fail(messages.ALREADY_TAKEN)

        now = self.clock.now()
        assignment = await self.store.insert_assignment_if_absent(job.id, user.id, now)
        if assignment is None:
            self.logger.info(f"Job {job.id}: translator {user.id} lost the race")
            return BookingResult.fail(messages.ALREADY_TAKEN)

        if not await self.store.update(
            job.id, {"status": JobStatus.ASSIGNED}, expected_status=JobStatus.PENDING
        ):
            await self.store.close_assignment(assignment.id, cancel_at=now)
            return BookingResult.fail(messages.ALREADY_TAKEN)

        job = await self.store.find_or_fail(job.id)
        language = await self.directory.language_name(job.from_language_id)
        self.logger.info(f"Job {job.id} accepted by translator {user.id}")

        return BookingResult.success(
            messages.accepted(language, job),
            job=job,
            events=[BookingConfirmed(job=job, translator_id=user.id, push_requester=True)],
        )

    # =========================================================================
    # Cancellation
    # =========================================================================

    async def cancel_job(self, user: ActingUser, job_id: int) -> BookingResult:
        """
        Withdraw a booking (customer) or give it back (translator).

        Customers may withdraw pending or assigned bookings at any time; the
        outcome status records whether it happened at least 24 hours ahead.
        Translators may only give a booking back more than 24 hours ahead.
        """
        job = await self.store.find_or_fail(job_id)
        if user.role == UserRole.CUSTOMER:
            return await self._withdraw(user, job)
        return await self._release(user, job)

    async def _withdraw(self, user: ActingUser, job: Job) -> BookingResult:
        if job.user_id != user.id:
            return BookingResult.fail(messages.NOT_YOUR_BOOKING)
        if job.status not in (JobStatus.PENDING, JobStatus.ASSIGNED):
            return BookingResult.fail(messages.CANNOT_WITHDRAW)

        now = self.clock.now()
        notice = timedelta(hours=self.settings.withdraw_notice_hours)
        status = (
            JobStatus.WITHDRAW_BEFORE_24
            if job.due - now >= notice
            else JobStatus.WITHDRAW_AFTER_24
        )

        if not await self.store.update(
            job.id, {"status": status, "withdraw_at": now}, expected_status=job.status
        ):
            return BookingResult.fail(messages.TRY_AGAIN)

        assignment = await self.store.current_assignment(job.id)
        if assignment is not None:
            await self.store.close_assignment(assignment.id, cancel_at=now)

        job = await self.store.find_or_fail(job.id)
        self.logger.info(f"Job {job.id} withdrawn by customer {user.id}: {status.value}")

        return BookingResult.success(
            job=job,
            events=[
                BookingCancelled(
                    job=job,
                    translator_id=assignment.translator_id if assignment else None,
                    notify_translator=assignment is not None,
                )
            ],
            jobstatus="success",
        )

    async def _release(self, user: ActingUser, job: Job) -> BookingResult:
        assignment = await self.store.current_assignment(job.id)
        if assignment is None:
            return BookingResult.fail(messages.NO_ASSIGNMENT)
        if not user.role.is_admin and assignment.translator_id != user.id:
            return BookingResult.fail(messages.NOT_YOUR_BOOKING)
        if job.status != JobStatus.ASSIGNED:
            return BookingResult.fail(messages.CANNOT_WITHDRAW)

        now = self.clock.now()
        notice = timedelta(hours=self.settings.translator_cancel_notice_hours)
        if job.due - now <= notice:
            return BookingResult.fail(messages.late_cancellation(self.settings.support_phone))

        if not await self.store.reset_to_pending(
            job.id,
            {
                "status": JobStatus.PENDING,
                "created_at": now,
                "will_expire_at": will_expire_at(job.due, now),
            },
            expected_status=JobStatus.ASSIGNED,
            cancel_at=now,
        ):
            return BookingResult.fail(messages.TRY_AGAIN)

        job = await self.store.find_or_fail(job.id)
        self.logger.info(f"Job {job.id} released by translator {assignment.translator_id}")

        return BookingResult.success(
            job=job,
            events=[JobReleased(job=job, translator_id=assignment.translator_id)],
        )

    # =========================================================================
    # Session end
    # =========================================================================

    async def end_job(self, user: ActingUser, job_id: int) -> BookingResult:
        """
        Mark a started session as completed.

        The session time is measured from the booked due time, not from the
        actual start. Jobs that are not started are left untouched.
        """
        job = await self.store.find_or_fail(job_id)
        if job.status != JobStatus.STARTED:
            return BookingResult.success(job=job)

        now = self.clock.now()
        session_time = format_session_time(now - job.due)

        if not await self.store.update(
            job.id,
            {"status": JobStatus.COMPLETED, "end_at": now, "session_time": session_time},
            expected_status=JobStatus.STARTED,
        ):
            return BookingResult.fail(messages.TRY_AGAIN)

        assignment = await self.store.current_assignment(job.id)
        if assignment is not None:
            await self.store.close_assignment(
                assignment.id, completed_at=now, completed_by=user.id
            )

        job = await self.store.find_or_fail(job.id)
        self.logger.info(f"Job {job.id} ended by user {user.id}, session {session_time}")

        return BookingResult.success(
            job=job,
            events=[
                SessionEnded(
                    job=job,
                    translator_id=assignment.translator_id if assignment else None,
                    session_time=session_time,
                    ended_by=user.id,
                )
            ],
        )

    async def customer_not_call(self, user: ActingUser, job_id: int) -> BookingResult:
        """Record that the customer never showed up for the session."""
        job = await self.store.find_or_fail(job_id)
        assignment = await self.store.current_assignment(job.id)
        if assignment is None:
            return BookingResult.fail(messages.NO_ASSIGNMENT)

        now = self.clock.now()
        if not await self.store.update(
            job.id,
            {"status": JobStatus.NOT_CARRIED_OUT_CUSTOMER, "end_at": now},
            expected_status=job.status,
        ):
            return BookingResult.fail(messages.TRY_AGAIN)

        await self.store.close_assignment(
            assignment.id, completed_at=now, completed_by=assignment.translator_id
        )
        job = await self.store.find_or_fail(job.id)
        self.logger.info(f"Job {job.id} not carried out by customer (reported by {user.id})")
        return BookingResult.success(job=job)

    # =========================================================================
    # Reopening
    # =========================================================================

    async def reopen(self, user: ActingUser, job_id: int) -> BookingResult:
        """
        Put a booking back on the market.

        A timed-out booking is copied into a new pending booking; any other
        booking is reset to pending in place. Open assignments are cancelled.
        """
        job = await self.store.find_or_fail(job_id)
        now = self.clock.now()
        expiry = will_expire_at(job.due, now)

        if job.status != JobStatus.TIMEDOUT:
            written = await self.store.reset_to_pending(
                job.id,
                {"status": JobStatus.PENDING, "created_at": now, "will_expire_at": expiry},
                expected_status=job.status,
                cancel_at=now,
            )
            if not written:
                return BookingResult.fail(messages.TRY_AGAIN)
            reopened_id = job.id
        else:
            await self.store.cancel_open_assignments(job.id, now)
            fields = job.model_dump(exclude=REOPEN_RESET_FIELDS)
            fields.update(
                status=JobStatus.PENDING,
                created_at=now,
                will_expire_at=expiry,
                admin_comments=messages.reopening_comment(job.id),
            )
            reopened_id = (await self.store.create(fields)).id

        await self.store.create_assignment(job.id, user.id, now, cancel_at=now)

        reopened = await self.store.find_or_fail(reopened_id)
        self.logger.info(f"Job {job.id} reopened as {reopened.id} by user {user.id}")

        return BookingResult.success(
            messages.REOPENED,
            job=reopened,
            events=[
                JobReopened(
                    job=reopened,
                    original_job_id=job.id if reopened.id != job.id else None,
                )
            ],
        )

    # =========================================================================
    # Administrative updates
    # =========================================================================

    async def _resolve_new_translator(
        self, request: UpdateJobRequest, current: TranslatorAssignment | None
    ) -> TranslatorProfile | None:
        current_id = current.translator_id if current else None

        if request.translator is not None:
            if request.translator == current_id:
                return None
            profile = await self.directory.profile(request.translator)
            if profile is None:
                raise InvalidBookingRequest("translator", messages.TRANSLATOR_NOT_FOUND)
            return profile

        if request.translator_email:
            profile = await self.directory.find_translator_by_email(request.translator_email)
            if profile is None:
                raise InvalidBookingRequest("translator_email", messages.TRANSLATOR_NOT_FOUND)
            if profile.user_id == current_id:
                return None
            return profile

        return None

    def _audit_change(self, user: ActingUser, job: Job, field: str, old: Any, new: Any) -> None:
        audit_logger.info(
            f"Job {job.id}: {field} changed by {user.id}",
            extra={"job_id": job.id, "user_id": user.id, "field": field, "old": old, "new": new},
        )

    async def update_job(
        self, user: ActingUser, job_id: int, request: UpdateJobRequest | dict[str, Any]
    ) -> BookingResult:
        """
        Apply an administrator's changes to a booking.

        Every sub-change (translator, due, language, status) is validated
        before anything is written. Change notifications are only sent when
        the booking is still in the future; status side effects always are.

        Args:
            user: Acting administrator
            job_id: Booking to change
            request: Submitted changes

        Returns:
            BookingResult; a fail names the field that blocked the update
        """
        if not user.role.is_admin:
            return BookingResult.fail(messages.ADMIN_ONLY)

        if not isinstance(request, UpdateJobRequest):
            request = UpdateJobRequest.model_validate(request)

        job = await self.store.find_or_fail(job_id)
        current = await self.store.current_assignment(job.id)
        current_id = current.translator_id if current else None
        now = self.clock.now()

        try:
            new_translator = await self._resolve_new_translator(request, current)
            status_change = plan_status_change(
                job,
                request,
                acting_user_id=user.id,
                current_translator_id=current_id,
                new_translator_id=new_translator.user_id if new_translator else None,
                now=now,
            )
        except InvalidBookingRequest as e:
            return BookingResult.fail(e.message, field_name=e.field_name)

        due_changed = request.due is not None and request.due != job.due
        language_changed = (
            request.from_language_id is not None
            and request.from_language_id != job.from_language_id
        )

        fields: dict[str, Any] = {}
        for name in ("admin_comments", "reference"):
            if name in request.model_fields_set:
                fields[name] = getattr(request, name)
        if due_changed:
            fields["due"] = request.due
        if language_changed:
            fields["from_language_id"] = request.from_language_id
        if status_change is not None:
            fields.update(status_change.fields)

        if fields and not await self.store.update(job.id, fields, expected_status=job.status):
            return BookingResult.fail(messages.TRY_AGAIN)

        if new_translator is not None:
            if current is not None:
                await self.store.close_assignment(current.id, cancel_at=now)
            current = await self.store.create_assignment(job.id, new_translator.user_id, now)
            self._audit_change(user, job, "translator", current_id, new_translator.user_id)

        if status_change is not None and current is not None:
            if status_change.assignment_action == "cancel":
                await self.store.close_assignment(current.id, cancel_at=now)
            elif status_change.assignment_action == "complete":
                await self.store.close_assignment(
                    current.id, completed_at=now, completed_by=user.id
                )

        if due_changed:
            self._audit_change(user, job, "due", job.due, request.due)
        if language_changed:
            self._audit_change(
                user, job, "from_language_id", job.from_language_id, request.from_language_id
            )
        if status_change is not None:
            self._audit_change(user, job, "status", job.status, status_change.new_status)

        updated = await self.store.find_or_fail(job.id)
        events: list[DomainEvent] = []
        if status_change is not None:
            events.extend(status_change.events(updated))

        if updated.due > now:
            assignee = new_translator.user_id if new_translator else current_id
            if due_changed:
                events.append(
                    JobRescheduled(job=updated, old_due=job.due, translator_id=assignee)
                )
            if new_translator is not None:
                events.append(
                    TranslatorReplaced(
                        job=updated,
                        old_translator_id=current_id,
                        new_translator_id=new_translator.user_id,
                    )
                )
            if language_changed:
                events.append(
                    LanguageChanged(
                        job=updated,
                        old_language_id=job.from_language_id,
                        translator_id=assignee,
                    )
                )

        return BookingResult.success(messages.UPDATED, job=updated, events=events)

    async def distance_feed(
        self, user: ActingUser, job_id: int, request: DistanceFeedRequest | dict[str, Any]
    ) -> BookingResult:
        """Record travel distance and time plus bookkeeping flags for a booking."""
        if not user.role.is_admin:
            return BookingResult.fail(messages.ADMIN_ONLY)

        if not isinstance(request, DistanceFeedRequest):
            request = DistanceFeedRequest.model_validate(request)

        job = await self.store.find_or_fail(job_id)

        if request.distance or request.time:
            await self.store.update_distance(
                job.id, {"distance": request.distance, "time": request.time}
            )

        fields: dict[str, Any] = {
            "flagged": request.flagged,
            "manually_handled": request.manually_handled,
            "by_admin": request.by_admin,
        }
        if request.admin_comments:
            fields["admin_comments"] = request.admin_comments
        if request.session_time:
            fields["session_time"] = request.session_time
        await self.store.update(job.id, fields)

        return BookingResult.success(
            messages.RECORD_UPDATED, job=await self.store.find_or_fail(job.id)
        )

    async def ignore_expiring(self, user: ActingUser, job_id: int) -> BookingResult:
        """Hide a booking from the expiring-soon list."""
        return await self._set_flag(user, job_id, "ignore")

    async def ignore_expired(self, user: ActingUser, job_id: int) -> BookingResult:
        """Hide a booking from the expired list and the expiry sweep."""
        return await self._set_flag(user, job_id, "ignore_expired")

    async def _set_flag(self, user: ActingUser, job_id: int, flag: str) -> BookingResult:
        if not user.role.is_admin:
            return BookingResult.fail(messages.ADMIN_ONLY)
        job = await self.store.find_or_fail(job_id)
        await self.store.update(job.id, {flag: True})
        return BookingResult.success(
            messages.CHANGES_SAVED, job=await self.store.find_or_fail(job.id)
        )

    # =========================================================================
    # Expiry
    # =========================================================================

    async def expire_job(self, user: ActingUser, job_id: int) -> BookingResult:
        """Time out a pending booking whose expiry deadline has passed."""
        job = await self.store.find_or_fail(job_id)
        now = self.clock.now()

        if (
            job.status != JobStatus.PENDING
            or job.will_expire_at is None
            or job.will_expire_at > now
        ):
            return BookingResult.fail(messages.NOT_EXPIRED)

        if not await self.store.update(
            job.id, {"status": JobStatus.TIMEDOUT}, expected_status=JobStatus.PENDING
        ):
            return BookingResult.fail(messages.TRY_AGAIN)

        job = await self.store.find_or_fail(job.id)
        self.logger.info(f"Job {job.id} expired (deadline {job.will_expire_at})")
        return BookingResult.success(job=job, events=[JobExpired(job=job)])

    async def expired_jobs(self) -> list[Job]:
        """Pending bookings past their expiry deadline."""
        return await self.store.list_expired(self.clock.now())

    # =========================================================================
    # Queries
    # =========================================================================

    async def potential_jobs(self, user: ActingUser) -> list[Job]:
        """
        Pending bookings a translator may accept.

        Raises:
            TranslatorNotFoundError: If the user has no translator profile
        """
        if await self.directory.profile(user.id) is None:
            raise TranslatorNotFoundError(user.id)
        return await self.matcher.find_potential_jobs(user.id)
