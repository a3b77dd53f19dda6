"""
Job repository for database operations.

PostgreSQL implementation of ``JobStore``. Acceptance races are settled by
the database: the open-assignment insert relies on a partial unique index
and status writes are conditional on the expected current status.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert

from interpreter_booking.core.contracts import JobStore
from interpreter_booking.core.models import Job, JobStatus, TranslatorAssignment
from interpreter_booking.storage.connection import DatabaseConnection, get_connection
from interpreter_booking.storage.models import AssignmentRecord, DistanceRecord, JobRecord

logger = logging.getLogger(__name__)

OPEN_ASSIGNMENT = AssignmentRecord.cancel_at.is_(None) & AssignmentRecord.completed_at.is_(
    None
)


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert enum values to the strings stored in the database."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in fields.items()
    }


class SqlJobStore(JobStore):
    """
    Job store backed by PostgreSQL.

    Usage:
        store = SqlJobStore(connection)
        job = await store.find_or_fail(42)
    """

    def __init__(self, connection: DatabaseConnection) -> None:
        """
        Initialize repository with database connection.

        Args:
            connection: Active database connection
        """
        self._connection = connection

    @property
    def connection(self) -> DatabaseConnection:
        return self._connection

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    async def find(self, job_id: int) -> Job | None:
        async with self._connection.session() as session:
            record = await session.get(JobRecord, job_id)
            return Job.model_validate(record) if record else None

    async def create(self, fields: dict[str, Any]) -> Job:
        async with self._connection.session() as session:
            record = JobRecord(**_to_columns(fields))
            session.add(record)
            await session.flush()
            await session.refresh(record)
            logger.debug(f"Inserted job {record.id}")
            return Job.model_validate(record)

    async def update(
        self,
        job_id: int,
        fields: dict[str, Any],
        expected_status: JobStatus | None = None,
    ) -> bool:
        if not fields:
            return await self.find(job_id) is not None

        stmt = update(JobRecord).where(JobRecord.id == job_id).values(**_to_columns(fields))
        if expected_status is not None:
            stmt = stmt.where(JobRecord.status == expected_status.value)

        async with self._connection.session() as session:
            result = await session.execute(stmt.execution_options(synchronize_session=False))
            written = result.rowcount > 0  # type: ignore[attr-defined]

        if not written and expected_status is not None:
            logger.debug(f"Job {job_id}: status no longer {expected_status.value}, not written")
        return written

    async def list_by_status(self, statuses: Iterable[JobStatus]) -> list[Job]:
        values = [status.value for status in statuses]
        async with self._connection.session() as session:
            result = await session.execute(
                select(JobRecord).where(JobRecord.status.in_(values)).order_by(JobRecord.due)
            )
            return [Job.model_validate(record) for record in result.scalars().all()]

    async def list_expired(self, now: datetime) -> list[Job]:
        async with self._connection.session() as session:
            result = await session.execute(
                select(JobRecord)
                .where(
                    (JobRecord.status == JobStatus.PENDING.value)
                    & (JobRecord.will_expire_at <= now)
                    & JobRecord.ignore_expired.is_(False)
                )
                .order_by(JobRecord.will_expire_at)
            )
            return [Job.model_validate(record) for record in result.scalars().all()]

    async def jobs_assigned_to(self, translator_id: int) -> list[Job]:
        async with self._connection.session() as session:
            result = await session.execute(
                select(JobRecord)
                .join(AssignmentRecord, AssignmentRecord.job_id == JobRecord.id)
                .where((AssignmentRecord.translator_id == translator_id) & OPEN_ASSIGNMENT)
                .order_by(JobRecord.due)
            )
            return [Job.model_validate(record) for record in result.scalars().all()]

    # -------------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------------

    async def insert_assignment_if_absent(
        self, job_id: int, translator_id: int, assigned_at: datetime
    ) -> TranslatorAssignment | None:
        stmt = (
            insert(AssignmentRecord)
            .values(
                {
                    AssignmentRecord.job_id: job_id,
                    AssignmentRecord.translator_id: translator_id,
                    AssignmentRecord.assigned_at: assigned_at,
                }
            )
            .on_conflict_do_nothing(index_elements=["job_id"], index_where=OPEN_ASSIGNMENT)
            .returning(AssignmentRecord.id)
        )
        async with self._connection.session() as session:
            result = await session.execute(stmt)
            assignment_id = result.scalar_one_or_none()

        if assignment_id is None:
            logger.debug(f"Job {job_id} already has an open assignment")
            return None
        return TranslatorAssignment(
            id=assignment_id,
            job_id=job_id,
            translator_id=translator_id,
            assigned_at=assigned_at,
        )

    async def create_assignment(
        self,
        job_id: int,
        translator_id: int,
        assigned_at: datetime,
        cancel_at: datetime | None = None,
    ) -> TranslatorAssignment:
        async with self._connection.session() as session:
            record = AssignmentRecord(
                job_id=job_id,
                translator_id=translator_id,
                assigned_at=assigned_at,
                cancel_at=cancel_at,
            )
            session.add(record)
            await session.flush()
            await session.refresh(record)
            return TranslatorAssignment.model_validate(record)

    async def assignments(self, job_id: int) -> list[TranslatorAssignment]:
        async with self._connection.session() as session:
            result = await session.execute(
                select(AssignmentRecord)
                .where(AssignmentRecord.job_id == job_id)
                .order_by(AssignmentRecord.id)
            )
            return [TranslatorAssignment.model_validate(r) for r in result.scalars().all()]

    async def close_assignment(
        self,
        assignment_id: int,
        *,
        cancel_at: datetime | None = None,
        completed_at: datetime | None = None,
        completed_by: int | None = None,
    ) -> None:
        values = {
            key: value
            for key, value in {
                "cancel_at": cancel_at,
                "completed_at": completed_at,
                "completed_by": completed_by,
            }.items()
            if value is not None
        }
        if not values:
            return

        async with self._connection.session() as session:
            await session.execute(
                update(AssignmentRecord)
                .where(AssignmentRecord.id == assignment_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )

    async def cancel_open_assignments(self, job_id: int, cancel_at: datetime) -> int:
        async with self._connection.session() as session:
            result = await session.execute(
                update(AssignmentRecord)
                .where((AssignmentRecord.job_id == job_id) & OPEN_ASSIGNMENT)
                .values(cancel_at=cancel_at)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0  # type: ignore[attr-defined]

    async def reset_to_pending(
        self,
        job_id: int,
        fields: dict[str, Any],
        expected_status: JobStatus,
        cancel_at: datetime,
    ) -> bool:
        # One transaction: the job row lock taken by the status write is held
        # until the assignments are cancelled.
        async with self._connection.session() as session:
            result = await session.execute(
                update(JobRecord)
                .where(JobRecord.id == job_id)
                .where(JobRecord.status == expected_status.value)
                .values(**_to_columns(fields))
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:  # type: ignore[attr-defined]
                logger.debug(
                    f"Job {job_id}: status no longer {expected_status.value}, not reset"
                )
                return False

            await session.execute(
                update(AssignmentRecord)
                .where((AssignmentRecord.job_id == job_id) & OPEN_ASSIGNMENT)
                .values(cancel_at=cancel_at)
                .execution_options(synchronize_session=False)
            )
            return True

    # -------------------------------------------------------------------------
    # Distances
    # -------------------------------------------------------------------------

    async def update_distance(self, job_id: int, fields: dict[str, Any]) -> bool:
        stmt = insert(DistanceRecord).values(job_id=job_id, **fields)
        stmt = stmt.on_conflict_do_update(index_elements=["job_id"], set_=fields)
        async with self._connection.session() as session:
            result = await session.execute(stmt)
            return result.rowcount > 0  # type: ignore[attr-defined]


# Global repository instance
_store: SqlJobStore | None = None


async def get_job_store() -> SqlJobStore:
    """
    Get the global job store.

    Creates connection and repository if not already done.

    Returns:
        SqlJobStore: Connected store instance
    """
    global _store

    if _store is None or not _store.connection.is_connected:
        connection = await get_connection()
        _store = SqlJobStore(connection)

    return _store
