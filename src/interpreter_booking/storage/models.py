"""
SQLAlchemy ORM models for bookings and the user directory.

Timestamps are naive local time (see ``BookingSettings.timezone``). Enum
values are stored as their string values.
"""

from datetime import datetime

from sqlalchemy import ARRAY, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):  # type: ignore
    """SQLAlchemy declarative base."""

    pass


# =============================================================================
# Bookings
# =============================================================================


class JobRecord(Base):
    """One interpreter booking."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    from_language_id: Mapped[int] = mapped_column(Integer, nullable=False)
    due: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    immediate: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False)

    # === Requirements ===
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    certified: Mapped[str | None] = mapped_column(String(20), nullable=True)
    job_type: Mapped[str] = mapped_column(String(20), default="paid", nullable=False)
    customer_phone_type: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    customer_physical_type: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # === Contact and location ===
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    town: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    admin_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # === Timestamps ===
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    will_expire_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    withdraw_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    session_time: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # === Admin flags ===
    ignore: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ignore_expired: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    by_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manually_handled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<JobRecord(id={self.id}, status={self.status}, due={self.due})>"


class AssignmentRecord(Base):
    """
    A translator's claim on a booking.

    At most one row per job may be open (no cancel_at, no completed_at);
    a partial unique index enforces it.
    """

    __tablename__ = "translator_job_rel"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(Integer, ForeignKey("jobs.id"), nullable=False)
    translator_id: Mapped[int] = mapped_column("user_id", Integer, nullable=False)
    assigned_at: Mapped[datetime] = mapped_column("created_at", DateTime, nullable=False)
    cancel_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)


class DistanceRecord(Base):
    __tablename__ = "distances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jobs.id"), unique=True, nullable=False
    )
    distance: Mapped[str | None] = mapped_column(String(50), nullable=True)
    time: Mapped[str | None] = mapped_column(String(50), nullable=True)


# =============================================================================
# User directory
# =============================================================================


class UserRecord(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    mobile: Mapped[str | None] = mapped_column(String(50), nullable=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class UserMetaRecord(Base):
    """Role-specific attributes of a user."""

    __tablename__ = "user_meta"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)

    # === Customer ===
    consumer_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    customer_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    # === Translator ===
    translator_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    translator_levels: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)

    # === Notification preferences ===
    not_get_emergency: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    not_get_nighttime: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    not_get_notification: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class UserLanguageRecord(Base):
    __tablename__ = "user_languages"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    lang_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class UserTownRecord(Base):
    __tablename__ = "user_towns"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    town: Mapped[str] = mapped_column(String(255), primary_key=True)


class BlacklistRecord(Base):
    """Translator a customer does not want to work with."""

    __tablename__ = "users_blacklist"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    translator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )


class LanguageRecord(Base):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    language: Mapped[str] = mapped_column(String(100), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
