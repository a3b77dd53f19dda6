"""
PostgreSQL storage for bookings and the user directory.

Usage:
    from interpreter_booking.storage import get_job_store, get_directory

    store = await get_job_store()
    job = await store.find_or_fail(42)
"""

from interpreter_booking.storage.config import DatabaseSettings, get_database_settings
from interpreter_booking.storage.connection import (
    DatabaseConnection,
    close_connection,
    get_connection,
)
from interpreter_booking.storage.directory import SqlTranslatorDirectory, get_directory
from interpreter_booking.storage.repository import SqlJobStore, get_job_store

__all__ = [
    "DatabaseConnection",
    "DatabaseSettings",
    "SqlJobStore",
    "SqlTranslatorDirectory",
    "close_connection",
    "get_connection",
    "get_database_settings",
    "get_directory",
    "get_job_store",
]
