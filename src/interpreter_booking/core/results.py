"""
Structured operation results.

Every lifecycle operation returns a ``BookingResult``. Expected outcomes,
including validation failures and business-rule rejections, are values of
this type so the request layer never needs exception handling for them.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from interpreter_booking.core.events import DomainEvent
from interpreter_booking.core.models import Job


class BookingResult(BaseModel):
    """Outcome of a lifecycle operation."""

    status: Literal["success", "fail"]
    message: str | None = None
    field_name: str | None = Field(
        default=None, description="Offending input field for validation failures"
    )
    job: Job | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    events: list[DomainEvent] = Field(default_factory=list, exclude=True)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(
        cls,
        message: str | None = None,
        *,
        job: Job | None = None,
        events: list[DomainEvent] | None = None,
        **data: Any,
    ) -> "BookingResult":
        return cls(
            status="success",
            message=message,
            job=job,
            events=events or [],
            data=data,
        )

    @classmethod
    def fail(
        cls, message: str, *, field_name: str | None = None, **data: Any
    ) -> "BookingResult":
        return cls(status="fail", message=message, field_name=field_name, data=data)
