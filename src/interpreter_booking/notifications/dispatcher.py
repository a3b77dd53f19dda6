"""
Notification dispatcher.

Sends push, SMS and e-mail to one or many recipients. Every recipient is
attempted independently: a failing recipient never blocks the others and
never raises to the caller. Outcomes are returned as a ``DispatchReport``
and written to the audit log.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from interpreter_booking.booking.matching import EligibilityMatcher
from interpreter_booking.core.clock import Clock
from interpreter_booking.core.contracts import NotificationChannel, TranslatorDirectory
from interpreter_booking.core.exceptions import NotificationError
from interpreter_booking.core.models import Job, Recipient
from interpreter_booking.notifications import messages
from interpreter_booking.notifications.config import (
    NotificationSettings,
    get_notification_settings,
)
from interpreter_booking.notifications.schedule import is_night_time, next_business_time

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("interpreter_booking.audit")


class DeliveryFailure(BaseModel):
    """One recipient that could not be reached."""

    channel: str
    recipient: str
    error: str


class DispatchReport(BaseModel):
    """Per-dispatch delivery outcome."""

    channel: str
    job_id: int | None = None
    sent: int = 0
    delayed: int = 0
    skipped: list[int] = Field(default_factory=list)
    failures: list[DeliveryFailure] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


class NotificationDispatcher:
    """
    Multi-channel notification sender with the night-time delay policy.

    A push is delayed to the next business-hours window when it is night
    AND the recipient opted out of night-time notifications. Recipients who
    opted out of notifications entirely are skipped silently.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        directory: TranslatorDirectory,
        matcher: EligibilityMatcher,
        clock: Clock,
        settings: NotificationSettings | None = None,
    ) -> None:
        self.channel = channel
        self.directory = directory
        self.matcher = matcher
        self.clock = clock
        self.settings = settings or get_notification_settings()

    # -------------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------------

    def should_send(self, recipient: Recipient) -> bool:
        return not recipient.not_get_notification

    def should_delay(self, recipient: Recipient) -> bool:
        if not is_night_time(
            self.clock.now(),
            self.settings.night_start_hour,
            self.settings.night_end_hour,
        ):
            return False
        return recipient.not_get_nighttime

    # -------------------------------------------------------------------------
    # Push
    # -------------------------------------------------------------------------

    async def notify(
        self,
        recipients: list[Recipient],
        job: Job,
        message: str,
        *,
        notification_type: str = "general",
        data: dict[str, Any] | None = None,
        delay: bool | None = None,
    ) -> DispatchReport:
        """
        Send a push message to each recipient.

        Args:
            recipients: Targets
            job: Job the message is about
            message: Push text
            notification_type: Client-side notification category
            data: Extra payload data
            delay: Force (True) or suppress (False) delaying; None applies
                the night-time policy per recipient

        Returns:
            DispatchReport with sent, delayed, skipped and failed recipients
        """
        report = DispatchReport(channel="push", job_id=job.id)
        payload = self._push_payload(job, message, notification_type, data)
        now = self.clock.now()

        for recipient in recipients:
            if not self.should_send(recipient):
                report.skipped.append(recipient.user_id)
                continue

            delayed = self.should_delay(recipient) if delay is None else delay
            send_after = (
                next_business_time(now, self.settings.business_start_hour)
                if delayed
                else None
            )
            try:
                await self.channel.send_push([recipient], payload, send_after=send_after)
            except NotificationError as e:
                logger.warning(f"Push to user {recipient.user_id} failed for job {job.id}: {e}")
                report.failures.append(
                    DeliveryFailure(
                        channel="push", recipient=str(recipient.user_id), error=str(e)
                    )
                )
                continue

            report.sent += 1
            if delayed:
                report.delayed += 1

        audit_logger.info(
            f"Push send for job {job.id}",
            extra={
                "job_id": job.id,
                "recipients": [r.user_id for r in recipients],
                "text": message,
                "notification_type": notification_type,
                "sent": report.sent,
                "delayed": report.delayed,
                "failed": report.failed,
                "sent_at": now.isoformat(),
            },
        )
        return report

    def _push_payload(
        self,
        job: Job,
        message: str,
        notification_type: str,
        data: dict[str, Any] | None,
    ) -> dict[str, Any]:
        android_sound = "default"
        ios_sound = "default"
        if notification_type == "suitable_job":
            if job.immediate:
                android_sound = "emergency_booking"
                ios_sound = "emergency_booking.mp3"
            else:
                android_sound = "normal_booking"
                ios_sound = "normal_booking.mp3"

        return {
            "data": {
                **(data or {}),
                "job_id": job.id,
                "notification_type": notification_type,
            },
            "contents": {"en": message},
            "android_sound": android_sound,
            "ios_sound": ios_sound,
        }

    async def notify_eligible_translators(
        self, job: Job, exclude_user_id: int | None = None
    ) -> DispatchReport:
        """
        Offer a job to every eligible translator.

        Translators who opted out of emergency bookings are left out for
        immediate jobs.
        """
        translators = await self.matcher.find_eligible(job)
        recipients = [
            translator.as_recipient()
            for translator in translators
            if translator.user_id != exclude_user_id
            and not (job.immediate and translator.not_get_emergency)
        ]
        language = await self.directory.language_name(job.from_language_id)

        return await self.notify(
            recipients,
            job,
            messages.suitable_job(language, job),
            notification_type="suitable_job",
            data={
                "language": language,
                "immediate": "yes" if job.immediate else "no",
                "duration": job.duration,
                "due": job.due.strftime(messages.DUE_FORMAT),
            },
        )

    async def send_session_reminder(
        self, recipient: Recipient, job: Job, language: str
    ) -> DispatchReport:
        return await self.notify(
            [recipient],
            job,
            messages.session_reminder(language, job),
            notification_type="session_start_remind",
        )

    # -------------------------------------------------------------------------
    # SMS
    # -------------------------------------------------------------------------

    async def notify_sms(self, job: Job) -> DispatchReport:
        """
        Text every eligible translator about a job.

        Returns:
            DispatchReport; ``sent`` is the number of SMS delivered
        """
        report = DispatchReport(channel="sms", job_id=job.id)
        translators = await self.matcher.find_eligible(job)
        customer = await self.directory.customer(job.user_id)

        now = self.clock.now()
        date = now.strftime("%d.%m.%Y")
        time = now.strftime("%H:%M")
        duration = messages.convert_to_hours_mins(job.duration)
        city = job.town or (customer.city if customer else None) or ""

        if job.is_physical_only:
            message = messages.sms_physical_job(date, time, city, duration, job.id)
        else:
            message = messages.sms_phone_job(date, time, duration, job.id)

        for translator in translators:
            if not translator.mobile:
                report.skipped.append(translator.user_id)
                continue
            try:
                await self.channel.send_sms(translator.mobile, message)
            except NotificationError as e:
                logger.warning(
                    f"SMS to {translator.email} ({translator.mobile}) failed: {e}"
                )
                report.failures.append(
                    DeliveryFailure(channel="sms", recipient=translator.mobile, error=str(e))
                )
                continue
            logger.info(f"Send SMS to {translator.email} ({translator.mobile}), status: sent")
            report.sent += 1

        audit_logger.info(
            f"SMS send for job {job.id}",
            extra={
                "job_id": job.id,
                "recipients": [t.user_id for t in translators],
                "text": message,
                "sent": report.sent,
                "failed": report.failed,
                "sent_at": now.isoformat(),
            },
        )
        return report

    # -------------------------------------------------------------------------
    # E-mail
    # -------------------------------------------------------------------------

    async def send_email(
        self,
        recipient: Recipient,
        subject: str,
        template: str,
        data: dict[str, Any],
        job_id: int | None = None,
    ) -> DispatchReport:
        report = DispatchReport(channel="email", job_id=job_id)
        try:
            await self.channel.send_email(recipient, subject, template, data)
            report.sent = 1
        except NotificationError as e:
            logger.warning(f"E-mail to {recipient.email} failed: {e}")
            report.failures.append(
                DeliveryFailure(channel="email", recipient=recipient.email, error=str(e))
            )

        audit_logger.info(
            f"Mail send for job {job_id}",
            extra={
                "job_id": job_id,
                "recipients": [recipient.email],
                "subject": subject,
                "template": template,
                "sent": report.sent,
                "sent_at": self.clock.now().isoformat(),
            },
        )
        return report
