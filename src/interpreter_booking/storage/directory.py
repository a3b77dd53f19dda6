"""
Translator and customer directory backed by the user tables.

Read-only: the booking engine never writes user data.
"""

import logging

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession

from interpreter_booking.core.contracts import TranslatorDirectory
from interpreter_booking.core.models import (
    ConsumerType,
    CustomerProfile,
    TranslatorProfile,
    UserRole,
)
from interpreter_booking.storage.connection import DatabaseConnection, get_connection
from interpreter_booking.storage.models import (
    BlacklistRecord,
    LanguageRecord,
    UserLanguageRecord,
    UserMetaRecord,
    UserRecord,
    UserTownRecord,
)

logger = logging.getLogger(__name__)


class SqlTranslatorDirectory(TranslatorDirectory):
    """
    User directory over the ``users`` / ``user_meta`` tables.

    Usage:
        directory = SqlTranslatorDirectory(connection)
        translators = await directory.list_active()
    """

    def __init__(self, connection: DatabaseConnection) -> None:
        self._connection = connection

    @property
    def connection(self) -> DatabaseConnection:
        return self._connection

    async def _languages(self, session: AsyncSession, user_ids: list[int]) -> dict[int, set[int]]:
        languages: dict[int, set[int]] = {user_id: set() for user_id in user_ids}
        result = await session.execute(
            select(UserLanguageRecord).where(UserLanguageRecord.user_id.in_(user_ids))
        )
        for row in result.scalars().all():
            languages[row.user_id].add(row.lang_id)
        return languages

    async def _towns(self, session: AsyncSession, user_ids: list[int]) -> dict[int, set[str]]:
        towns: dict[int, set[str]] = {user_id: set() for user_id in user_ids}
        result = await session.execute(
            select(UserTownRecord).where(UserTownRecord.user_id.in_(user_ids))
        )
        for row in result.scalars().all():
            towns[row.user_id].add(row.town)
        return towns

    async def _translators(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> list[TranslatorProfile]:
        result = await session.execute(
            select(UserRecord, UserMetaRecord)
            .join(UserMetaRecord, UserMetaRecord.user_id == UserRecord.id)
            .where(UserRecord.user_type == UserRole.TRANSLATOR.value, *conditions)
            .order_by(UserRecord.id)
        )
        rows = result.all()
        user_ids = [user.id for user, _ in rows]
        if not user_ids:
            return []

        languages = await self._languages(session, user_ids)
        towns = await self._towns(session, user_ids)

        profiles = []
        for user, meta in rows:
            if not meta.translator_type:
                logger.warning(f"Translator {user.id} has no translator type, skipped")
                continue
            profiles.append(
                TranslatorProfile(
                    user_id=user.id,
                    name=user.name,
                    email=user.email,
                    mobile=user.mobile,
                    translator_type=meta.translator_type,
                    languages=languages[user.id],
                    gender=meta.gender,
                    levels=set(meta.translator_levels or []),
                    towns=towns[user.id],
                    not_get_emergency=meta.not_get_emergency,
                    not_get_nighttime=meta.not_get_nighttime,
                    not_get_notification=meta.not_get_notification,
                    active=user.active,
                )
            )
        return profiles

    async def list_active(self) -> list[TranslatorProfile]:
        async with self._connection.session() as session:
            return await self._translators(session, UserRecord.active.is_(True))

    async def profile(self, user_id: int) -> TranslatorProfile | None:
        async with self._connection.session() as session:
            profiles = await self._translators(session, UserRecord.id == user_id)
        return profiles[0] if profiles else None

    async def find_translator_by_email(self, email: str) -> TranslatorProfile | None:
        async with self._connection.session() as session:
            profiles = await self._translators(session, UserRecord.email == email)
        return profiles[0] if profiles else None

    async def blacklist_of(self, customer_id: int) -> set[int]:
        async with self._connection.session() as session:
            result = await session.execute(
                select(BlacklistRecord.translator_id).where(BlacklistRecord.user_id == customer_id)
            )
            return set(result.scalars().all())

    async def customer(self, user_id: int) -> CustomerProfile | None:
        async with self._connection.session() as session:
            result = await session.execute(
                select(UserRecord, UserMetaRecord)
                .outerjoin(UserMetaRecord, UserMetaRecord.user_id == UserRecord.id)
                .where(UserRecord.id == user_id)
            )
            row = result.first()
            if row is None:
                return None
            user, meta = row
            towns = await self._towns(session, [user.id])

        return CustomerProfile(
            user_id=user.id,
            name=user.name,
            email=user.email,
            mobile=user.mobile,
            consumer_type=(meta.consumer_type if meta and meta.consumer_type else ConsumerType.PAID),
            customer_type=meta.customer_type if meta else None,
            city=meta.city if meta else None,
            address=meta.address if meta else None,
            instructions=meta.instructions if meta else None,
            towns=towns[user.id],
            not_get_notification=meta.not_get_notification if meta else False,
            not_get_nighttime=meta.not_get_nighttime if meta else False,
        )

    async def language_name(self, language_id: int) -> str:
        async with self._connection.session() as session:
            result = await session.execute(
                select(LanguageRecord.language).where(LanguageRecord.id == language_id)
            )
            name = result.scalar_one_or_none()
        if name is None:
            logger.warning(f"Unknown language id {language_id}")
            return ""
        return name


# Global directory instance
_directory: SqlTranslatorDirectory | None = None


async def get_directory() -> SqlTranslatorDirectory:
    """Get the global translator directory, connecting if needed."""
    global _directory

    if _directory is None or not _directory.connection.is_connected:
        connection = await get_connection()
        _directory = SqlTranslatorDirectory(connection)

    return _directory
