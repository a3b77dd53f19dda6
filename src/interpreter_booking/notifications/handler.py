"""
Domain event to notification mapping.

Turns the events returned by lifecycle operations into e-mails and pushes.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from interpreter_booking.core.contracts import TranslatorDirectory
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
from interpreter_booking.core.models import Job, Recipient
from interpreter_booking.notifications import messages
from interpreter_booking.notifications.dispatcher import DispatchReport, NotificationDispatcher

logger = logging.getLogger(__name__)


class NotificationHandler:
    """
    Delivers the notifications belonging to each domain event.

    Usage:
        handler = NotificationHandler(dispatcher, directory)
        reports = await handler.handle(event)
    """

    def __init__(self, dispatcher: NotificationDispatcher, directory: TranslatorDirectory) -> None:
        self.dispatcher = dispatcher
        self.directory = directory
        self._handlers: dict[type[DomainEvent], Callable[[Any], Awaitable[list[DispatchReport]]]] = {
            JobCreated: self._on_job_created,
            BookingReceived: self._on_booking_received,
            BookingConfirmed: self._on_booking_confirmed,
            BookingCancelled: self._on_booking_cancelled,
            JobReleased: self._on_job_released,
            SessionEnded: self._on_session_ended,
            JobReopened: self._on_job_reopened,
            JobRescheduled: self._on_job_rescheduled,
            TranslatorReplaced: self._on_translator_replaced,
            LanguageChanged: self._on_language_changed,
            JobExpired: self._on_job_expired,
        }

    async def handle(self, event: DomainEvent) -> list[DispatchReport]:
        """Send everything an event calls for. Unknown events are ignored."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug(f"No notifications for {event.name}")
            return []
        logger.debug(f"Handling {event.name} for job {event.job.id}")
        return await handler(event)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def _requester(self, job: Job) -> Recipient | None:
        customer = await self.directory.customer(job.user_id)
        if customer is None:
            logger.warning(f"Job {job.id}: requester {job.user_id} not found")
            return None
        return customer.as_recipient(email_override=job.user_email)

    async def _translator(self, translator_id: int | None) -> Recipient | None:
        if translator_id is None:
            return None
        profile = await self.directory.profile(translator_id)
        if profile is None:
            logger.warning(f"Translator {translator_id} not found")
            return None
        return profile.as_recipient()

    def _mail_data(self, job: Job, recipient: Recipient, **extra: Any) -> dict[str, Any]:
        return {
            "user": {"id": recipient.user_id, "name": recipient.name, "email": recipient.email},
            "job": job.model_dump(mode="json"),
            **extra,
        }

    async def _email(
        self,
        recipient: Recipient | None,
        job: Job,
        subject: str,
        template: str,
        **extra: Any,
    ) -> list[DispatchReport]:
        if recipient is None:
            return []
        report = await self.dispatcher.send_email(
            recipient, subject, template, self._mail_data(job, recipient, **extra), job_id=job.id
        )
        return [report]

    async def _push(
        self,
        recipient: Recipient | None,
        job: Job,
        message: str,
        notification_type: str,
    ) -> list[DispatchReport]:
        if recipient is None:
            return []
        return [
            await self.dispatcher.notify(
                [recipient], job, message, notification_type=notification_type
            )
        ]

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    async def _on_job_created(self, event: JobCreated) -> list[DispatchReport]:
        if not event.offer_translators:
            return []
        return [
            await self.dispatcher.notify_eligible_translators(
                event.job, exclude_user_id=event.exclude_user_id
            )
        ]

    async def _on_booking_received(self, event: BookingReceived) -> list[DispatchReport]:
        job = event.job
        return await self._email(
            await self._requester(job),
            job,
            messages.subject_received(job.id),
            messages.TEMPLATE_JOB_CREATED,
        )

    async def _on_booking_confirmed(self, event: BookingConfirmed) -> list[DispatchReport]:
        job = event.job
        requester = await self._requester(job)
        translator = await self._translator(event.translator_id)
        subject = messages.subject_accepted(job.id)

        reports = await self._email(requester, job, subject, messages.TEMPLATE_JOB_ACCEPTED)
        if event.notify_translator:
            reports += await self._email(
                translator, job, subject, messages.TEMPLATE_CHANGED_TRANSLATOR_NEW
            )

        if event.push_requester or event.send_reminders:
            language = await self.directory.language_name(job.from_language_id)
            if event.push_requester:
                reports += await self._push(
                    requester, job, messages.job_accepted(language, job), "job_accepted"
                )
            if event.send_reminders:
                for recipient in (requester, translator):
                    if recipient is not None:
                        reports.append(
                            await self.dispatcher.send_session_reminder(recipient, job, language)
                        )
        return reports

    async def _on_booking_cancelled(self, event: BookingCancelled) -> list[DispatchReport]:
        job = event.job
        subject = messages.subject_cancelled(job.id)
        reports: list[DispatchReport] = []

        if event.notify_requester:
            reports += await self._email(
                await self._requester(job), job, subject, messages.TEMPLATE_CANCELLED_CUSTOMER
            )

        if event.notify_translator:
            translator = await self._translator(event.translator_id)
            language = await self.directory.language_name(job.from_language_id)
            reports += await self._email(
                translator, job, subject, messages.TEMPLATE_CANCELLED_TRANSLATOR
            )
            reports += await self._push(
                translator, job, messages.job_withdrawn(language, job), "job_cancelled"
            )
        return reports

    async def _on_job_released(self, event: JobReleased) -> list[DispatchReport]:
        job = event.job
        language = await self.directory.language_name(job.from_language_id)
        reports = await self._push(
            await self._requester(job),
            job,
            messages.translator_cancelled(language, job),
            "job_cancelled",
        )
        reports.append(
            await self.dispatcher.notify_eligible_translators(
                job, exclude_user_id=event.translator_id
            )
        )
        return reports

    async def _on_session_ended(self, event: SessionEnded) -> list[DispatchReport]:
        job = event.job
        requester = await self._requester(job)
        translator = await self._translator(event.translator_id)
        subject = messages.subject_session_ended(job.id)
        session_time = messages.session_time_text(event.session_time)

        reports = await self._email(
            requester,
            job,
            subject,
            messages.TEMPLATE_SESSION_ENDED,
            session_time=session_time,
            for_text=messages.FOR_TEXT_REQUESTER,
        )
        reports += await self._email(
            translator,
            job,
            subject,
            messages.TEMPLATE_SESSION_ENDED,
            session_time=session_time,
            for_text=messages.FOR_TEXT_TRANSLATOR,
        )

        if event.push_counterpart:
            counterpart = translator if event.ended_by == job.user_id else requester
            reports += await self._push(
                counterpart, job, messages.session_ended(job), "session_ended"
            )
        return reports

    async def _on_job_reopened(self, event: JobReopened) -> list[DispatchReport]:
        job = event.job
        reports: list[DispatchReport] = []
        if event.notify_requester:
            language = await self.directory.language_name(job.from_language_id)
            reports += await self._email(
                await self._requester(job),
                job,
                messages.subject_reopened(language, job.id),
                messages.TEMPLATE_STATUS_TO_CUSTOMER,
            )
        reports.append(await self.dispatcher.notify_eligible_translators(job))
        return reports

    async def _on_job_rescheduled(self, event: JobRescheduled) -> list[DispatchReport]:
        job = event.job
        subject = messages.subject_changed_booking(job.id)
        old_time = event.old_due.strftime(messages.DUE_FORMAT)

        reports = await self._email(
            await self._requester(job), job, subject, messages.TEMPLATE_CHANGED_DATE, old_time=old_time
        )
        reports += await self._email(
            await self._translator(event.translator_id),
            job,
            subject,
            messages.TEMPLATE_CHANGED_DATE,
            old_time=old_time,
        )
        return reports

    async def _on_translator_replaced(self, event: TranslatorReplaced) -> list[DispatchReport]:
        job = event.job
        subject = messages.subject_changed_translator(job.id)

        reports = await self._email(
            await self._requester(job), job, subject, messages.TEMPLATE_CHANGED_TRANSLATOR_CUSTOMER
        )
        reports += await self._email(
            await self._translator(event.old_translator_id),
            job,
            subject,
            messages.TEMPLATE_CHANGED_TRANSLATOR_OLD,
        )
        reports += await self._email(
            await self._translator(event.new_translator_id),
            job,
            subject,
            messages.TEMPLATE_CHANGED_TRANSLATOR_NEW,
        )
        return reports

    async def _on_language_changed(self, event: LanguageChanged) -> list[DispatchReport]:
        job = event.job
        subject = messages.subject_changed_booking(job.id)
        old_lang = await self.directory.language_name(event.old_language_id)

        reports = await self._email(
            await self._requester(job),
            job,
            subject,
            messages.TEMPLATE_CHANGED_LANGUAGE,
            old_lang=old_lang,
        )
        reports += await self._email(
            await self._translator(event.translator_id),
            job,
            subject,
            messages.TEMPLATE_CHANGED_LANGUAGE,
            old_lang=old_lang,
        )
        return reports

    async def _on_job_expired(self, event: JobExpired) -> list[DispatchReport]:
        job = event.job
        language = await self.directory.language_name(job.from_language_id)
        return await self._push(
            await self._requester(job), job, messages.job_expired(language, job), "job_expired"
        )
