"""
Booking creation request and derivation rules.

Turns a customer's booking form into the stored fields of a new job:
due time, contact mode, gender and certification requirement, job type and
expiry deadline.
"""

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from interpreter_booking.booking.config import BookingSettings
from interpreter_booking.booking.expiry import will_expire_at
from interpreter_booking.core.models import (
    Certification,
    ConsumerType,
    CustomerProfile,
    Gender,
    Job,
    JobStatus,
    JobType,
)
from interpreter_booking.notifications import messages

DUE_INPUT_FORMAT = "%m/%d/%Y %H:%M"

GENDER_OPTIONS: dict[str, Gender] = {
    "male": Gender.MALE,
    "female": Gender.FEMALE,
}

# Every accepted combination of certification options
CERTIFICATION_OPTIONS: dict[frozenset[str], Certification | None] = {
    frozenset(): None,
    frozenset({"normal"}): Certification.NORMAL,
    frozenset({"certified"}): Certification.YES,
    frozenset({"certified_in_law"}): Certification.LAW,
    frozenset({"certified_in_helth"}): Certification.HEALTH,
    frozenset({"certified_in_health"}): Certification.HEALTH,
    frozenset({"normal", "certified"}): Certification.BOTH,
    frozenset({"normal", "certified_in_law"}): Certification.N_LAW,
    frozenset({"normal", "certified_in_helth"}): Certification.N_HEALTH,
    frozenset({"normal", "certified_in_health"}): Certification.N_HEALTH,
}

JOB_TYPE_FOR_CONSUMER: dict[ConsumerType, JobType] = {
    ConsumerType.RWS_CONSUMER: JobType.RWS,
    ConsumerType.NGO: JobType.UNPAID,
    ConsumerType.PAID: JobType.PAID,
}


class InvalidBookingRequest(ValueError):
    """A booking form field failed validation."""

    def __init__(self, field_name: str, message: str) -> None:
        self.field_name = field_name
        self.message = message
        super().__init__(f"{field_name}: {message}")


class CreateJobRequest(BaseModel):
    """Booking form submitted by a customer."""

    from_language_id: int | None = None
    immediate: bool = False
    due_date: str | None = Field(default=None, description="Date as m/d/Y")
    due_time: str | None = Field(default=None, description="Time as H:M")
    customer_phone_type: bool = False
    customer_physical_type: bool = False
    duration: int | None = Field(default=None, ge=0, description="Minutes")
    job_for: list[str] = Field(default_factory=list)
    by_admin: bool = False
    address: str | None = None
    instructions: str | None = None
    town: str | None = None


def derive_requirements(job_for: list[str]) -> tuple[Gender | None, Certification | None]:
    """
    Map the ``job_for`` options to a gender and certification requirement.

    Raises:
        InvalidBookingRequest: For contradictory or unknown combinations
    """
    options = {option.strip().lower() for option in job_for if option}

    genders = {GENDER_OPTIONS[o] for o in options if o in GENDER_OPTIONS}
    if len(genders) > 1:
        raise InvalidBookingRequest("job_for", messages.INVALID_JOB_FOR)
    gender = genders.pop() if genders else None

    key = frozenset(options - GENDER_OPTIONS.keys())
    if key not in CERTIFICATION_OPTIONS:
        raise InvalidBookingRequest("job_for", messages.INVALID_JOB_FOR)

    return gender, CERTIFICATION_OPTIONS[key]


def job_for_labels(job: Job) -> list[str]:
    """Readable requirement labels shown back to the customer."""
    labels: list[str] = []
    if job.gender == Gender.MALE:
        labels.append("Man")
    elif job.gender == Gender.FEMALE:
        labels.append("Kvinna")

    if job.certified == Certification.BOTH:
        labels.extend(["normal", "certified"])
    elif job.certified == Certification.YES:
        labels.append("certified")
    elif job.certified is not None:
        labels.append(job.certified.value)
    return labels


def _parse_due(request: CreateJobRequest, now: datetime) -> datetime:
    if not request.due_date:
        raise InvalidBookingRequest("due_date", messages.FILL_ALL_FIELDS)
    if not request.due_time:
        raise InvalidBookingRequest("due_time", messages.FILL_ALL_FIELDS)

    try:
        due = datetime.strptime(f"{request.due_date} {request.due_time}", DUE_INPUT_FORMAT)
    except ValueError as e:
        raise InvalidBookingRequest("due_date", messages.INVALID_DUE) from e

    if due <= now:
        raise InvalidBookingRequest("due_date", messages.BOOKING_IN_PAST)
    return due


def build_job_fields(
    request: CreateJobRequest,
    customer: CustomerProfile,
    now: datetime,
    settings: BookingSettings,
) -> dict[str, Any]:
    """
    Validate a booking form and compute the fields of the new job.

    Args:
        request: Submitted form
        customer: Requesting customer
        now: Current local time
        settings: Booking rules

    Returns:
        Field dict ready for ``JobStore.create``

    Raises:
        InvalidBookingRequest: On the first invalid field
    """
    if request.from_language_id is None:
        raise InvalidBookingRequest("from_language_id", messages.FILL_ALL_FIELDS)

    phone = request.customer_phone_type
    if request.immediate:
        if request.duration is None:
            raise InvalidBookingRequest("duration", messages.FILL_ALL_FIELDS)
        due = now + timedelta(minutes=settings.immediate_job_minutes)
        phone = True
    else:
        if not request.due_date:
            raise InvalidBookingRequest("due_date", messages.FILL_ALL_FIELDS)
        if not request.due_time:
            raise InvalidBookingRequest("due_time", messages.FILL_ALL_FIELDS)
        if not (request.customer_phone_type or request.customer_physical_type):
            raise InvalidBookingRequest("customer_phone_type", messages.MAKE_A_CHOICE)
        if request.duration is None:
            raise InvalidBookingRequest("duration", messages.FILL_ALL_FIELDS)
        due = _parse_due(request, now)

    gender, certified = derive_requirements(request.job_for)

    return {
        "user_id": customer.user_id,
        "from_language_id": request.from_language_id,
        "due": due,
        "duration": request.duration,
        "immediate": request.immediate,
        "status": JobStatus.PENDING,
        "gender": gender,
        "certified": certified,
        "job_type": JOB_TYPE_FOR_CONSUMER[customer.consumer_type],
        "customer_phone_type": phone,
        "customer_physical_type": request.customer_physical_type,
        "address": request.address,
        "instructions": request.instructions,
        "town": request.town,
        "by_admin": request.by_admin,
        "created_at": now,
        "will_expire_at": will_expire_at(due, now),
    }
