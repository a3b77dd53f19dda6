"""
Unit tests for withdrawing and releasing bookings.
"""

from datetime import datetime, timedelta

import pytest

from interpreter_booking.booking.expiry import will_expire_at
from interpreter_booking.core.events import BookingCancelled, JobReleased
from interpreter_booking.core.models import ActingUser, JobStatus, UserRole
from interpreter_booking.notifications import messages

NOW = datetime(2026, 6, 10, 12, 0, 0)


class TestCustomerWithdraw:
    """Tests for cancel_job called by the requester."""

    @pytest.mark.asyncio
    async def test_exactly_24_hours_is_before24(self, engine, customer, store):
        """Test that a full day of notice counts as in time."""
        job = store.add_job(due=NOW + timedelta(hours=24))

        result = await engine.cancel_job(customer, job.id)

        assert result.ok
        assert result.data["jobstatus"] == "success"
        assert store.jobs[job.id].status == JobStatus.WITHDRAW_BEFORE_24
        assert store.jobs[job.id].withdraw_at == NOW

    @pytest.mark.asyncio
    async def test_under_24_hours_is_after24(self, engine, customer, store):
        """Test that one minute short of a day is a late withdrawal."""
        job = store.add_job(due=NOW + timedelta(hours=23, minutes=59))

        await engine.cancel_job(customer, job.id)

        assert store.jobs[job.id].status == JobStatus.WITHDRAW_AFTER_24

    @pytest.mark.asyncio
    async def test_assigned_booking_notifies_translator(self, engine, customer, store):
        """Test that withdrawing an assigned booking closes the assignment."""
        job = store.add_job(status=JobStatus.ASSIGNED)
        assignment = store.add_assignment(job.id, 10)

        result = await engine.cancel_job(customer, job.id)

        assert store.assignment_records[assignment.id].cancel_at == NOW
        [event] = result.events
        assert isinstance(event, BookingCancelled)
        assert event.translator_id == 10
        assert event.notify_translator is True

    @pytest.mark.asyncio
    async def test_pending_booking_has_no_translator(self, engine, customer, store):
        """Test that a pending withdrawal does not target a translator."""
        job = store.add_job()

        result = await engine.cancel_job(customer, job.id)

        assert result.events[0].notify_translator is False
        assert result.events[0].translator_id is None

    @pytest.mark.asyncio
    async def test_other_customers_booking(self, engine, store):
        """Test that customers can only withdraw their own bookings."""
        job = store.add_job(user_id=1)
        other = ActingUser(id=2, role=UserRole.CUSTOMER)

        result = await engine.cancel_job(other, job.id)

        assert not result.ok
        assert store.jobs[job.id].status == JobStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [JobStatus.STARTED, JobStatus.COMPLETED, JobStatus.TIMEDOUT]
    )
    async def test_only_pending_or_assigned(self, engine, customer, store, status):
        """Test that later states cannot be withdrawn."""
        job = store.add_job(status=status)

        result = await engine.cancel_job(customer, job.id)

        assert not result.ok
        assert result.message == messages.CANNOT_WITHDRAW
        assert store.jobs[job.id].status == status


class TestTranslatorRelease:
    """Tests for cancel_job called by the assigned translator."""

    @pytest.mark.asyncio
    async def test_release_returns_job_to_pending(self, engine, translator, store):
        """Test that an early release reopens the booking with a new expiry."""
        due = NOW + timedelta(days=3)
        job = store.add_job(due=due, status=JobStatus.ASSIGNED)
        assignment = store.add_assignment(job.id, translator.id)

        result = await engine.cancel_job(translator, job.id)

        assert result.ok
        updated = store.jobs[job.id]
        assert updated.status == JobStatus.PENDING
        assert updated.created_at == NOW
        assert updated.will_expire_at == will_expire_at(due, NOW)
        assert store.assignment_records[assignment.id].cancel_at == NOW

    @pytest.mark.asyncio
    async def test_release_event_excludes_translator(self, engine, translator, store):
        """Test that the release event names the translator to leave out."""
        job = store.add_job(status=JobStatus.ASSIGNED)
        store.add_assignment(job.id, translator.id)

        result = await engine.cancel_job(translator, job.id)

        [event] = result.events
        assert isinstance(event, JobReleased)
        assert event.translator_id == translator.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "notice", [timedelta(hours=24), timedelta(hours=2), timedelta(minutes=-30)]
    )
    async def test_late_release_rejected(
        self, engine, translator, store, booking_settings, notice
    ):
        """Test that translators must call in to cancel within 24 hours."""
        job = store.add_job(due=NOW + notice, status=JobStatus.ASSIGNED)
        assignment = store.add_assignment(job.id, translator.id)

        result = await engine.cancel_job(translator, job.id)

        assert not result.ok
        assert result.message == messages.late_cancellation(booking_settings.support_phone)
        assert store.jobs[job.id].status == JobStatus.ASSIGNED
        assert store.assignment_records[assignment.id].is_open

    @pytest.mark.asyncio
    async def test_other_translator_rejected(self, engine, store):
        """Test that a translator cannot release someone else's booking."""
        job = store.add_job(status=JobStatus.ASSIGNED)
        store.add_assignment(job.id, 10)

        result = await engine.cancel_job(ActingUser(id=11, role=UserRole.TRANSLATOR), job.id)

        assert not result.ok
        assert result.message == messages.NOT_YOUR_BOOKING

    @pytest.mark.asyncio
    async def test_admin_may_release(self, engine, admin, store):
        """Test that administrators can release on the translator's behalf."""
        job = store.add_job(status=JobStatus.ASSIGNED)
        store.add_assignment(job.id, 10)

        result = await engine.cancel_job(admin, job.id)

        assert result.ok
        assert result.events[0].translator_id == 10

    @pytest.mark.asyncio
    async def test_without_assignment(self, engine, translator, store):
        """Test that a booking nobody holds cannot be released."""
        job = store.add_job()

        result = await engine.cancel_job(translator, job.id)

        assert not result.ok
        assert result.message == messages.NO_ASSIGNMENT


class TestReleaseRace:
    """Tests for accepts that land while a booking is being released."""

    @pytest.mark.asyncio
    async def test_accept_right_after_release(self, engine, translator, store, monkeypatch):
        """Test that a pending booking from a release can be taken at once."""
        job = store.add_job(status=JobStatus.ASSIGNED)
        store.add_assignment(job.id, translator.id)
        other = ActingUser(id=11, role=UserRole.TRANSLATOR)
        accepted = []
        reset = store.reset_to_pending

        async def reset_then_accept(*args, **kwargs):
            written = await reset(*args, **kwargs)
            accepted.append(await engine.accept_job(other, job.id))
            return written

        monkeypatch.setattr(store, "reset_to_pending", reset_then_accept)

        result = await engine.cancel_job(translator, job.id)

        assert result.ok
        assert accepted[0].ok
        assert store.jobs[job.id].status == JobStatus.ASSIGNED
        assert [a.translator_id for a in store.open_assignments(job.id)] == [11]

    @pytest.mark.asyncio
    async def test_stale_release_writes_nothing(self, engine, translator, store, monkeypatch):
        """Test that a release losing the status check leaves the assignment open."""
        job = store.add_job(status=JobStatus.ASSIGNED)
        assignment = store.add_assignment(job.id, translator.id)
        find = store.find

        async def find_then_start(job_id):
            found = await find(job_id)
            store.jobs[job_id] = found.model_copy(update={"status": JobStatus.STARTED})
            return found

        monkeypatch.setattr(store, "find", find_then_start)

        result = await engine.cancel_job(translator, job.id)

        assert not result.ok
        assert result.message == messages.TRY_AGAIN
        assert store.assignment_records[assignment.id].is_open
