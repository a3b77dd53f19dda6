"""
Unit tests for the booking service: operations plus notification delivery.
"""

import logging
from datetime import datetime, timedelta

import pytest

from interpreter_booking.core.exceptions import JobNotFoundError
from interpreter_booking.core.models import JobStatus
from interpreter_booking.notifications import messages

NOW = datetime(2026, 6, 10, 12, 0, 0)

CUSTOMER_EMAIL = "kund1@example.se"


def booking_form(**overrides):
    form = {
        "from_language_id": 3,
        "due_date": "06/15/2026",
        "due_time": "10:00",
        "customer_phone_type": True,
        "duration": 45,
        "job_for": [],
    }
    form.update(overrides)
    return form


class TestBookingFlow:
    """Tests for a booking from creation to acceptance."""

    @pytest.mark.asyncio
    async def test_offer_sent_once_contact_details_stored(self, service, customer, channel):
        """Test that translators are offered the booking after the e-mail step only."""
        created = await service.create_job(customer, booking_form())

        assert created.ok
        assert channel.pushes == []
        assert channel.emails == []

        stored = await service.store_job_email(
            customer, created.job.id, user_email="bestallare@example.se"
        )

        assert stored.ok
        assert channel.templates_for("bestallare@example.se") == [messages.TEMPLATE_JOB_CREATED]
        assert channel.pushed_user_ids("suitable_job") == [10, 11, 12]

    @pytest.mark.asyncio
    async def test_accept_notifies_requester(self, service, translator, store, channel):
        """Test that an accepted booking mails and pushes the customer."""
        job = store.add_job()

        result = await service.accept_job(translator, job.id)

        assert result.ok
        assert channel.templates_for(CUSTOMER_EMAIL) == [messages.TEMPLATE_JOB_ACCEPTED]
        assert channel.pushed_user_ids("job_accepted") == [1]

    @pytest.mark.asyncio
    async def test_failed_operation_publishes_nothing(self, service, customer, store, channel):
        """Test that a rejected operation sends no notifications."""
        job = store.add_job()

        result = await service.accept_job(customer, job.id)

        assert not result.ok
        assert channel.emails == []
        assert channel.pushes == []


class TestPublish:
    """Tests for event publishing."""

    @pytest.mark.asyncio
    async def test_handler_error_does_not_undo_change(
        self, service, translator, store, monkeypatch, caplog
    ):
        """Test that a crashing handler is logged and the booking still stands."""

        async def explode(event):
            raise RuntimeError("template missing")

        monkeypatch.setattr(service.handler, "handle", explode)
        job = store.add_job()

        with caplog.at_level(logging.ERROR):
            result = await service.accept_job(translator, job.id)

        assert result.ok
        assert store.jobs[job.id].status == JobStatus.ASSIGNED
        assert "template missing" in caplog.text

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_undo_change(
        self, service, translator, store, channel
    ):
        """Test that an unreachable customer does not block the acceptance."""
        channel.failing.add(CUSTOMER_EMAIL)
        job = store.add_job()

        result = await service.accept_job(translator, job.id)

        assert result.ok
        assert store.jobs[job.id].status == JobStatus.ASSIGNED


class TestExpireDueJobs:
    """Tests for the expiry sweep."""

    @pytest.mark.asyncio
    async def test_sweep(self, service, admin, store, channel):
        """Test that every overdue pending booking is timed out and reported."""
        first = store.add_job(will_expire_at=NOW - timedelta(hours=1))
        second = store.add_job(will_expire_at=NOW - timedelta(minutes=1))
        future = store.add_job(will_expire_at=NOW + timedelta(hours=1))
        ignored = store.add_job(will_expire_at=NOW - timedelta(hours=2), ignore_expired=True)

        results = await service.expire_due_jobs(admin)

        assert [r.job.id for r in results] == [first.id, second.id]
        assert all(r.ok for r in results)
        assert store.jobs[first.id].status == JobStatus.TIMEDOUT
        assert store.jobs[future.id].status == JobStatus.PENDING
        assert store.jobs[ignored.id].status == JobStatus.PENDING
        assert channel.push_types() == ["job_expired", "job_expired"]

    @pytest.mark.asyncio
    async def test_nothing_to_expire(self, service, admin, store):
        """Test an empty sweep."""
        store.add_job(will_expire_at=NOW + timedelta(days=1))

        assert await service.expire_due_jobs(admin) == []


class TestResend:
    """Tests for manual notification resends."""

    @pytest.mark.asyncio
    async def test_resend_push(self, service, store, channel):
        """Test that a resend offers the booking to every eligible translator."""
        job = store.add_job()

        report = await service.resend_notifications(job.id)

        assert report.sent == 3
        assert channel.pushed_user_ids("suitable_job") == [10, 11, 12]

    @pytest.mark.asyncio
    async def test_resend_sms(self, service, store, channel):
        """Test that an SMS resend texts every eligible translator."""
        job = store.add_job()

        report = await service.resend_sms_notifications(job.id)

        assert report.channel == "sms"
        assert len(channel.sms) == 3

    @pytest.mark.asyncio
    async def test_resend_unknown_job(self, service):
        """Test that resending for a missing booking raises."""
        with pytest.raises(JobNotFoundError):
            await service.resend_notifications(404)
