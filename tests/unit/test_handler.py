"""
Unit tests for the event to notification mapping.
"""

from datetime import datetime, timedelta

import pytest

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
from interpreter_booking.core.models import JobStatus
from interpreter_booking.notifications import messages

NOW = datetime(2026, 6, 10, 12, 0, 0)
SWEDISH = 7

CUSTOMER_EMAIL = "kund1@example.se"


class TestOffers:
    """Tests for events that offer a job to translators."""

    @pytest.mark.asyncio
    async def test_job_created_offers(self, handler, channel, store):
        """Test that a created job is pushed to eligible translators."""
        job = store.add_job()

        reports = await handler.handle(JobCreated(job=job))

        assert len(reports) == 1
        assert channel.pushed_user_ids("suitable_job") == [10, 11, 12]

    @pytest.mark.asyncio
    async def test_job_created_without_offer(self, handler, channel, store):
        """Test that the offer can be held back until contact details exist."""
        job = store.add_job()

        reports = await handler.handle(JobCreated(job=job, offer_translators=False))

        assert reports == []
        assert channel.pushes == []

    @pytest.mark.asyncio
    async def test_released_job_tells_requester_and_reoffers(self, handler, channel, store):
        """Test that a translator cancellation reaches the customer and the pool."""
        job = store.add_job()

        await handler.handle(JobReleased(job=job, translator_id=10))

        assert channel.pushed_user_ids("job_cancelled") == [1]
        assert channel.pushed_user_ids("suitable_job") == [11, 12]

    @pytest.mark.asyncio
    async def test_reopened_emails_requester(self, handler, channel, store):
        """Test that a reopened job is offered again and the customer told."""
        job = store.add_job()

        await handler.handle(JobReopened(job=job, notify_requester=True))

        assert channel.templates_for(CUSTOMER_EMAIL) == [messages.TEMPLATE_STATUS_TO_CUSTOMER]
        assert channel.emails[0]["subject"] == messages.subject_reopened("Arabiska", job.id)
        assert channel.pushed_user_ids("suitable_job") == [10, 11, 12]


class TestBookingMails:
    """Tests for confirmation and cancellation notifications."""

    @pytest.mark.asyncio
    async def test_booking_received(self, handler, channel, store):
        """Test that the confirmation goes to the booking's contact address."""
        job = store.add_job(user_email="bestallare@example.se")

        await handler.handle(BookingReceived(job=job))

        [mail] = channel.emails
        assert mail["to"].email == "bestallare@example.se"
        assert mail["template"] == messages.TEMPLATE_JOB_CREATED
        assert mail["data"]["job"]["id"] == job.id

    @pytest.mark.asyncio
    async def test_accepted_by_translator(self, handler, channel, store):
        """Test the mails and push after a translator accepts."""
        job = store.add_job(status=JobStatus.ASSIGNED)

        await handler.handle(BookingConfirmed(job=job, translator_id=10, push_requester=True))

        assert channel.templates_for(CUSTOMER_EMAIL) == [messages.TEMPLATE_JOB_ACCEPTED]
        assert channel.templates_for("tolk10@example.se") == []
        assert channel.push_types() == ["job_accepted"]
        assert channel.pushed_user_ids() == [1]

    @pytest.mark.asyncio
    async def test_assigned_by_admin(self, handler, channel, store):
        """Test that an admin assignment mails the translator and sends reminders."""
        job = store.add_job(status=JobStatus.ASSIGNED)

        await handler.handle(
            BookingConfirmed(
                job=job, translator_id=10, notify_translator=True, send_reminders=True
            )
        )

        assert channel.templates_for("tolk10@example.se") == [
            messages.TEMPLATE_CHANGED_TRANSLATOR_NEW
        ]
        assert channel.push_types() == ["session_start_remind", "session_start_remind"]
        assert channel.pushed_user_ids() == [1, 10]

    @pytest.mark.asyncio
    async def test_cancelled(self, handler, channel, store):
        """Test that a withdrawal reaches both the customer and the translator."""
        job = store.add_job(status=JobStatus.WITHDRAW_BEFORE_24)

        await handler.handle(
            BookingCancelled(
                job=job, translator_id=10, notify_requester=True, notify_translator=True
            )
        )

        assert channel.templates_for(CUSTOMER_EMAIL) == [messages.TEMPLATE_CANCELLED_CUSTOMER]
        assert channel.templates_for("tolk10@example.se") == [
            messages.TEMPLATE_CANCELLED_TRANSLATOR
        ]
        assert channel.pushed_user_ids("job_cancelled") == [10]

    @pytest.mark.asyncio
    async def test_cancelled_without_translator(self, handler, channel, store):
        """Test that a pending withdrawal sends nothing to translators."""
        job = store.add_job(status=JobStatus.WITHDRAW_BEFORE_24)

        await handler.handle(BookingCancelled(job=job, notify_requester=True))

        assert len(channel.emails) == 1
        assert channel.pushes == []

    @pytest.mark.asyncio
    async def test_expired(self, handler, channel, store):
        """Test that the customer is told when nobody took the booking."""
        job = store.add_job(status=JobStatus.TIMEDOUT)

        await handler.handle(JobExpired(job=job))

        assert channel.push_types() == ["job_expired"]
        assert channel.pushed_user_ids() == [1]


class TestSessionEnded:
    """Tests for session end notifications."""

    @pytest.mark.asyncio
    async def test_mails_both_parties(self, handler, channel, store):
        """Test that both sides get the session summary with their own wording."""
        job = store.add_job(status=JobStatus.COMPLETED)

        await handler.handle(
            SessionEnded(job=job, translator_id=10, session_time="1:30:00", ended_by=10)
        )

        by_recipient = {mail["to"].email: mail["data"] for mail in channel.emails}
        assert by_recipient[CUSTOMER_EMAIL]["for_text"] == messages.FOR_TEXT_REQUESTER
        assert by_recipient["tolk10@example.se"]["for_text"] == messages.FOR_TEXT_TRANSLATOR
        assert by_recipient[CUSTOMER_EMAIL]["session_time"] == messages.session_time_text(
            "1:30:00"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ended_by,pushed", [(10, [1]), (1, [10])])
    async def test_pushes_the_other_side(self, handler, channel, store, ended_by, pushed):
        """Test that the party who did not end the session gets the push."""
        job = store.add_job(status=JobStatus.COMPLETED)

        await handler.handle(
            SessionEnded(job=job, translator_id=10, session_time="0:30:00", ended_by=ended_by)
        )

        assert channel.pushed_user_ids("session_ended") == pushed

    @pytest.mark.asyncio
    async def test_no_push_when_completed_by_admin(self, handler, channel, store):
        """Test that admin completion only sends mails."""
        job = store.add_job(status=JobStatus.COMPLETED)

        await handler.handle(
            SessionEnded(
                job=job,
                translator_id=10,
                session_time="0:30:00",
                ended_by=99,
                push_counterpart=False,
            )
        )

        assert len(channel.emails) == 2
        assert channel.pushes == []


class TestChangeMails:
    """Tests for notifications about administrative changes."""

    @pytest.mark.asyncio
    async def test_rescheduled(self, handler, channel, store):
        """Test that both parties learn the previous time."""
        old_due = NOW + timedelta(days=1)
        job = store.add_job(due=NOW + timedelta(days=2))

        await handler.handle(JobRescheduled(job=job, old_due=old_due, translator_id=10))

        assert [m["template"] for m in channel.emails] == [
            messages.TEMPLATE_CHANGED_DATE,
            messages.TEMPLATE_CHANGED_DATE,
        ]
        assert all(m["data"]["old_time"] == "2026-06-11 12:00:00" for m in channel.emails)

    @pytest.mark.asyncio
    async def test_translator_replaced(self, handler, channel, store):
        """Test that customer, old and new translator each get their own mail."""
        job = store.add_job(status=JobStatus.ASSIGNED)

        await handler.handle(
            TranslatorReplaced(job=job, old_translator_id=10, new_translator_id=12)
        )

        assert channel.templates_for(CUSTOMER_EMAIL) == [
            messages.TEMPLATE_CHANGED_TRANSLATOR_CUSTOMER
        ]
        assert channel.templates_for("tolk10@example.se") == [
            messages.TEMPLATE_CHANGED_TRANSLATOR_OLD
        ]
        assert channel.templates_for("tolk12@example.se") == [
            messages.TEMPLATE_CHANGED_TRANSLATOR_NEW
        ]

    @pytest.mark.asyncio
    async def test_language_changed(self, handler, channel, store):
        """Test that the mails name the previous language."""
        job = store.add_job(from_language_id=SWEDISH)

        await handler.handle(LanguageChanged(job=job, old_language_id=3))

        [mail] = channel.emails
        assert mail["template"] == messages.TEMPLATE_CHANGED_LANGUAGE
        assert mail["data"]["old_lang"] == "Arabiska"


class TestRobustness:
    """Tests for missing parties and failing channels."""

    @pytest.mark.asyncio
    async def test_unknown_event_ignored(self, handler, store):
        """Test that events without notifications return no reports."""
        job = store.add_job()

        assert await handler.handle(DomainEvent(job=job)) == []

    @pytest.mark.asyncio
    async def test_missing_requester(self, handler, channel, store):
        """Test that a job whose customer is gone sends nothing to them."""
        job = store.add_job(user_id=404)

        reports = await handler.handle(BookingReceived(job=job))

        assert reports == []
        assert channel.emails == []

    @pytest.mark.asyncio
    async def test_failing_channel_is_reported(self, handler, channel, store):
        """Test that a delivery failure comes back in the report instead of raising."""
        channel.failing.add(CUSTOMER_EMAIL)
        job = store.add_job(status=JobStatus.TIMEDOUT)

        [report] = await handler.handle(JobExpired(job=job))

        assert report.failed == 1
        assert report.sent == 0
