"""
Domain models for interpreter bookings.

Plain pydantic models shared by the engine, the adapters and the request
layer. They carry no persistence or transport logic.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class JobStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"
    TIMEDOUT = "timedout"
    WITHDRAW_BEFORE_24 = "withdrawbefore24"
    WITHDRAW_AFTER_24 = "withdrawafter24"
    NOT_CARRIED_OUT_CUSTOMER = "not_carried_out_customer"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        JobStatus.COMPLETED,
        JobStatus.WITHDRAW_BEFORE_24,
        JobStatus.WITHDRAW_AFTER_24,
        JobStatus.NOT_CARRIED_OUT_CUSTOMER,
    }
)


class JobType(str, Enum):
    """Commercial type of a booking, derived from the requester."""

    PAID = "paid"
    UNPAID = "unpaid"
    RWS = "rws"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Certification(str, Enum):
    """
    Certification requirement of a booking.

    ``both`` and ``normal`` accept a layman. The ``n_*`` variants accept
    the matching specialist level only.
    """

    YES = "yes"
    BOTH = "both"
    LAW = "law"
    N_LAW = "n_law"
    HEALTH = "health"
    N_HEALTH = "n_health"
    NORMAL = "normal"


class TranslatorType(str, Enum):
    PROFESSIONAL = "professional"
    RWS_TRANSLATOR = "rwstranslator"
    VOLUNTEER = "volunteer"


class TranslatorLevel(str, Enum):
    CERTIFIED = "Certified"
    CERTIFIED_LAW = "Certified with specialisation in law"
    CERTIFIED_HEALTH = "Certified with specialisation in health care"
    LAYMAN = "Layman"
    READ_COURSES = "Read Translation courses"


class ConsumerType(str, Enum):
    """Customer account type, decides the job type of new bookings."""

    PAID = "paid"
    NGO = "ngo"
    RWS_CONSUMER = "rwsconsumer"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    TRANSLATOR = "translator"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.SUPERADMIN)


# =============================================================================
# Records
# =============================================================================


class Job(BaseModel):
    """
    A single interpreter booking.

    Jobs are never deleted; terminal states are kept for history.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int = Field(..., description="Requester (customer) user id")
    from_language_id: int
    due: datetime
    duration: int = Field(..., ge=0, description="Booked duration in minutes")
    immediate: bool = False
    status: JobStatus = JobStatus.PENDING

    gender: Gender | None = None
    certified: Certification | None = None
    job_type: JobType = JobType.PAID

    customer_phone_type: bool = False
    customer_physical_type: bool = False

    address: str | None = None
    instructions: str | None = None
    town: str | None = None
    user_email: str | None = None
    reference: str | None = None
    admin_comments: str | None = None

    created_at: datetime
    will_expire_at: datetime | None = None
    end_at: datetime | None = None
    withdraw_at: datetime | None = None
    session_time: str | None = None

    ignore: bool = False
    ignore_expired: bool = False
    by_admin: bool = False
    flagged: bool = False
    manually_handled: bool = False

    @property
    def is_physical_only(self) -> bool:
        """On-site booking where the customer cannot be reached by phone."""
        return self.customer_physical_type and not self.customer_phone_type


class TranslatorAssignment(BaseModel):
    """One translator's claim on a job (current or historical)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    translator_id: int
    assigned_at: datetime
    cancel_at: datetime | None = None
    completed_at: datetime | None = None
    completed_by: int | None = None

    @property
    def is_open(self) -> bool:
        return self.cancel_at is None and self.completed_at is None


class Recipient(BaseModel):
    """Notification target with its delivery preferences."""

    user_id: int
    name: str
    email: str
    mobile: str | None = None
    not_get_notification: bool = False
    not_get_nighttime: bool = False


class TranslatorProfile(BaseModel):
    """Matching attributes of a translator, owned by the identity subsystem."""

    user_id: int
    name: str
    email: str
    mobile: str | None = None
    translator_type: TranslatorType
    languages: set[int] = Field(default_factory=set)
    gender: Gender | None = None
    levels: set[TranslatorLevel] = Field(default_factory=set)
    towns: set[str] = Field(default_factory=set)
    not_get_emergency: bool = False
    not_get_nighttime: bool = False
    not_get_notification: bool = False
    active: bool = True

    def as_recipient(self) -> Recipient:
        return Recipient(
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            mobile=self.mobile,
            not_get_notification=self.not_get_notification,
            not_get_nighttime=self.not_get_nighttime,
        )


class CustomerProfile(BaseModel):
    """Requester attributes read from the identity subsystem."""

    user_id: int
    name: str
    email: str
    mobile: str | None = None
    consumer_type: ConsumerType = ConsumerType.PAID
    customer_type: str | None = None
    city: str | None = None
    address: str | None = None
    instructions: str | None = None
    towns: set[str] = Field(default_factory=set)
    not_get_notification: bool = False
    not_get_nighttime: bool = False

    def as_recipient(self, email_override: str | None = None) -> Recipient:
        return Recipient(
            user_id=self.user_id,
            name=self.name,
            email=email_override or self.email,
            mobile=self.mobile,
            not_get_notification=self.not_get_notification,
            not_get_nighttime=self.not_get_nighttime,
        )


class Distance(BaseModel):
    """Per-job travel distance and time, maintained by administrators."""

    model_config = ConfigDict(from_attributes=True)

    job_id: int
    distance: str | None = None
    time: str | None = None


class ActingUser(BaseModel):
    """Identity of the user invoking a lifecycle operation."""

    id: int
    role: UserRole
