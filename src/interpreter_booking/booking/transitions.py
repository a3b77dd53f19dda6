"""
Administrative status changes.

Which status an administrator may move a booking to depends on its current
status. Each rule may require an admin comment or a session time and may
produce side effects (notifications, assignment changes). Rules are
evaluated before anything is written, so a rejected change leaves the
booking untouched.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from interpreter_booking.booking.creation import InvalidBookingRequest
from interpreter_booking.booking.expiry import will_expire_at
from interpreter_booking.core.events import (
    BookingCancelled,
    BookingConfirmed,
    DomainEvent,
    JobReopened,
    SessionEnded,
)
from interpreter_booking.core.models import Job, JobStatus
from interpreter_booking.notifications import messages

WITHDRAWN_STATUSES = (JobStatus.WITHDRAW_BEFORE_24, JobStatus.WITHDRAW_AFTER_24)


class UpdateJobRequest(BaseModel):
    """Changes an administrator submits for one booking."""

    translator: int | None = Field(default=None, description="New translator user id")
    translator_email: str | None = None
    due: datetime | None = None
    from_language_id: int | None = None
    status: JobStatus | None = None
    admin_comments: str | None = None
    session_time: str | None = Field(default=None, description="H:MM:SS")
    reference: str | None = None


class StatusChange(BaseModel):
    """A validated status change, ready to apply."""

    new_status: JobStatus
    fields: dict[str, Any] = Field(default_factory=dict)
    assignment_action: Literal["cancel", "complete"] | None = None
    event_specs: list[tuple[type[DomainEvent], dict[str, Any]]] = Field(default_factory=list)

    def events(self, job: Job) -> list[DomainEvent]:
        return [event_type(job=job, **kwargs) for event_type, kwargs in self.event_specs]


def _require_comment(request: UpdateJobRequest) -> None:
    if not (request.admin_comments and request.admin_comments.strip()):
        raise InvalidBookingRequest("admin_comments", messages.ADMIN_COMMENT_REQUIRED)


def plan_status_change(
    job: Job,
    request: UpdateJobRequest,
    *,
    acting_user_id: int,
    current_translator_id: int | None,
    new_translator_id: int | None,
    now: datetime,
) -> StatusChange | None:
    """
    Validate an administrative status change.

    Args:
        job: Booking before the change
        request: Submitted changes; ``request.status`` is the target
        acting_user_id: Administrator making the change
        current_translator_id: Translator holding the booking, if any
        new_translator_id: Translator assigned by the same update, if any
        now: Current local time

    Returns:
        The change to apply, or None when the transition is not allowed
        from the current status (the status is then left unchanged)

    Raises:
        InvalidBookingRequest: When a required admin comment or session
            time is missing
    """
    new = request.status
    if new is None or new == job.status:
        return None

    translator_changed = new_translator_id is not None
    translator_id = new_translator_id or current_translator_id
    change = StatusChange(new_status=new, fields={"status": new})

    if job.status == JobStatus.TIMEDOUT:
        if new == JobStatus.PENDING:
            change.fields.update(
                created_at=now,
                will_expire_at=will_expire_at(job.due, now),
            )
            change.event_specs.append((JobReopened, {"notify_requester": True}))
        elif translator_changed:
            change.event_specs.append((BookingConfirmed, {"translator_id": new_translator_id}))
        else:
            return None
        return change

    if job.status == JobStatus.COMPLETED:
        if new != JobStatus.TIMEDOUT:
            return None
        _require_comment(request)
        return change

    if job.status == JobStatus.STARTED:
        _require_comment(request)
        if new == JobStatus.COMPLETED:
            if not request.session_time:
                raise InvalidBookingRequest("session_time", messages.SESSION_TIME_REQUIRED)
            change.fields.update(end_at=now, session_time=request.session_time)
            change.assignment_action = "complete"
            change.event_specs.append(
                (
                    SessionEnded,
                    {
                        "translator_id": translator_id,
                        "session_time": request.session_time,
                        "ended_by": acting_user_id,
                        "push_counterpart": False,
                    },
                )
            )
        return change

    if job.status == JobStatus.PENDING:
        if new == JobStatus.ASSIGNED:
            if not translator_changed:
                raise InvalidBookingRequest("translator", messages.TRANSLATOR_REQUIRED)
            change.event_specs.append(
                (
                    BookingConfirmed,
                    {
                        "translator_id": new_translator_id,
                        "notify_translator": True,
                        "send_reminders": True,
                    },
                )
            )
            return change
        if new == JobStatus.TIMEDOUT:
            _require_comment(request)
        change.event_specs.append((BookingCancelled, {"notify_requester": True}))
        return change

    if job.status == JobStatus.WITHDRAW_AFTER_24:
        if new != JobStatus.TIMEDOUT:
            return None
        _require_comment(request)
        return change

    if job.status == JobStatus.ASSIGNED:
        if new not in (*WITHDRAWN_STATUSES, JobStatus.TIMEDOUT):
            return None
        if new == JobStatus.TIMEDOUT:
            _require_comment(request)
            return change
        change.fields["withdraw_at"] = now
        change.assignment_action = "cancel"
        change.event_specs.append(
            (
                BookingCancelled,
                {
                    "translator_id": translator_id,
                    "notify_requester": True,
                    "notify_translator": translator_id is not None,
                },
            )
        )
        return change

    return None
