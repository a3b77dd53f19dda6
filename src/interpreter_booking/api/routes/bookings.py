"""
Booking lifecycle endpoints.

Business-rule rejections come back as a ``BookingResult`` with
``status == "fail"`` and HTTP 200. Only missing records and infrastructure
faults are turned into HTTP errors.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from interpreter_booking.api.dependencies import get_acting_user, get_service
from interpreter_booking.booking.creation import CreateJobRequest
from interpreter_booking.booking.engine import DistanceFeedRequest
from interpreter_booking.booking.service import BookingService
from interpreter_booking.booking.transitions import UpdateJobRequest
from interpreter_booking.core.exceptions import (
    ConfigurationError,
    NotFoundError,
    StoreUnavailableError,
)
from interpreter_booking.core.models import ActingUser, Job
from interpreter_booking.core.results import BookingResult
from interpreter_booking.notifications.dispatcher import DispatchReport

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# =============================================================================
# Request Models
# =============================================================================


class StoreJobEmailRequest(BaseModel):
    """Contact and location details sent after a booking is created."""

    user_email: str | None = Field(default=None, description="E-mail for booking receipts")
    reference: str | None = Field(default=None, description="Customer's own reference")
    address: str | None = None
    instructions: str | None = None
    town: str | None = None


# =============================================================================
# Error Mapping
# =============================================================================


@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except (StoreUnavailableError, ConfigurationError) as e:
        raise HTTPException(status_code=503, detail=e.message) from e


# =============================================================================
# Creation
# =============================================================================


@router.post("", response_model=BookingResult)
async def create_booking(
    request: CreateJobRequest,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """
    Create a booking for the calling customer.

    Validation failures return ``status: fail`` with the offending
    ``field_name``.
    """
    with service_errors():
        return await service.create_job(user, request)


@router.post("/{job_id}/email", response_model=BookingResult)
async def store_booking_email(
    job_id: int,
    request: StoreJobEmailRequest,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """Store contact details and send the booking receipt and offers."""
    with service_errors():
        return await service.store_job_email(user, job_id, **request.model_dump())


# =============================================================================
# Queries
# =============================================================================


@router.get("/expired", response_model=list[Job])
async def list_expired(
    service: BookingService = Depends(get_service),
) -> list[Job]:
    """Pending bookings past their acceptance deadline."""
    with service_errors():
        return await service.expired_jobs()


@router.get("/potential", response_model=list[Job])
async def list_potential(
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> list[Job]:
    """Pending bookings the calling translator could accept, by due date."""
    with service_errors():
        return await service.potential_jobs(user)


@router.get("/{job_id}", response_model=Job)
async def get_booking(
    job_id: int,
    service: BookingService = Depends(get_service),
) -> Job:
    with service_errors():
        return await service.store.find_or_fail(job_id)


# =============================================================================
# Lifecycle
# =============================================================================


@router.post("/{job_id}/accept", response_model=BookingResult)
async def accept_booking(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """Accept a pending booking. At most one translator wins a race."""
    with service_errors():
        return await service.accept_job(user, job_id)


@router.post("/{job_id}/cancel", response_model=BookingResult)
async def cancel_booking(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """
    Withdraw a booking (customer) or release an assignment (translator/admin).
    """
    with service_errors():
        return await service.cancel_job(user, job_id)


@router.post("/{job_id}/end", response_model=BookingResult)
async def end_booking(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    with service_errors():
        return await service.end_job(user, job_id)


@router.post("/{job_id}/customer-not-call", response_model=BookingResult)
async def customer_not_call(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """Record that the customer never called in."""
    with service_errors():
        return await service.customer_not_call(user, job_id)


@router.post("/{job_id}/reopen", response_model=BookingResult)
async def reopen_booking(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    with service_errors():
        return await service.reopen(user, job_id)


@router.put("/{job_id}", response_model=BookingResult)
async def update_booking(
    job_id: int,
    request: UpdateJobRequest,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """
    Administrative update of a booking.

    Handles status transitions, translator replacement, rescheduling and
    language changes in one call. Only the fields present in the body are
    applied.
    """
    with service_errors():
        return await service.update_job(user, job_id, request)


@router.post("/{job_id}/expire", response_model=BookingResult)
async def expire_booking(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    with service_errors():
        return await service.expire_job(user, job_id)


# =============================================================================
# Administration
# =============================================================================


@router.post("/{job_id}/distance", response_model=BookingResult)
async def distance_feed(
    job_id: int,
    request: DistanceFeedRequest,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    """Record travel distance, session time and bookkeeping flags."""
    with service_errors():
        return await service.distance_feed(user, job_id, request)


@router.post("/{job_id}/ignore-expiring", response_model=BookingResult)
async def ignore_expiring(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    with service_errors():
        return await service.ignore_expiring(user, job_id)


@router.post("/{job_id}/ignore-expired", response_model=BookingResult)
async def ignore_expired(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> BookingResult:
    with service_errors():
        return await service.ignore_expired(user, job_id)


@router.post("/{job_id}/resend-notifications", response_model=DispatchReport)
async def resend_notifications(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> DispatchReport:
    """Push the booking offer to all eligible translators again."""
    _require_admin(user)
    with service_errors():
        return await service.resend_notifications(job_id)


@router.post("/{job_id}/resend-sms", response_model=DispatchReport)
async def resend_sms(
    job_id: int,
    user: ActingUser = Depends(get_acting_user),
    service: BookingService = Depends(get_service),
) -> DispatchReport:
    """Text the booking offer to all eligible translators again."""
    _require_admin(user)
    with service_errors():
        return await service.resend_sms_notifications(job_id)


def _require_admin(user: ActingUser) -> None:
    if not user.role.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
