"""
Database migrations for booking storage.

Contains SQL statements that run automatically on first database connection.
Uses IF NOT EXISTS throughout so every statement is safely re-runnable.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

MIGRATIONS: list[str] = [
    # User directory
    """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        email VARCHAR(255) NOT NULL UNIQUE,
        mobile VARCHAR(50),
        user_type VARCHAR(20) NOT NULL,
        active BOOLEAN NOT NULL DEFAULT TRUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS user_meta (
        user_id INT PRIMARY KEY REFERENCES users(id),

        -- Customer
        consumer_type VARCHAR(20),
        customer_type VARCHAR(50),
        city VARCHAR(255),
        address TEXT,
        instructions TEXT,

        -- Translator
        translator_type VARCHAR(20),
        gender VARCHAR(10),
        translator_levels VARCHAR[],

        -- Notification preferences
        not_get_emergency BOOLEAN NOT NULL DEFAULT FALSE,
        not_get_nighttime BOOLEAN NOT NULL DEFAULT FALSE,
        not_get_notification BOOLEAN NOT NULL DEFAULT FALSE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS user_languages (
        user_id INT NOT NULL REFERENCES users(id),
        lang_id INT NOT NULL,
        PRIMARY KEY (user_id, lang_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS user_towns (
        user_id INT NOT NULL REFERENCES users(id),
        town VARCHAR(255) NOT NULL,
        PRIMARY KEY (user_id, town)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS users_blacklist (
        user_id INT NOT NULL REFERENCES users(id),
        translator_id INT NOT NULL REFERENCES users(id),
        PRIMARY KEY (user_id, translator_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS languages (
        id SERIAL PRIMARY KEY,
        language VARCHAR(100) NOT NULL,
        active BOOLEAN NOT NULL DEFAULT TRUE
    );
    """,
    # Bookings
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id SERIAL PRIMARY KEY,
        user_id INT NOT NULL,
        from_language_id INT NOT NULL,
        due TIMESTAMP NOT NULL,
        duration INT NOT NULL,
        immediate BOOLEAN NOT NULL DEFAULT FALSE,
        status VARCHAR(50) NOT NULL DEFAULT 'pending',

        -- Requirements
        gender VARCHAR(10),
        certified VARCHAR(20),
        job_type VARCHAR(20) NOT NULL DEFAULT 'paid',
        customer_phone_type BOOLEAN NOT NULL DEFAULT FALSE,
        customer_physical_type BOOLEAN NOT NULL DEFAULT FALSE,

        -- Contact and location
        address TEXT,
        instructions TEXT,
        town VARCHAR(255),
        user_email VARCHAR(255),
        reference VARCHAR(255),
        admin_comments TEXT,

        -- Timestamps
        created_at TIMESTAMP NOT NULL,
        will_expire_at TIMESTAMP,
        end_at TIMESTAMP,
        withdraw_at TIMESTAMP,
        session_time VARCHAR(20),

        -- Admin flags
        ignore BOOLEAN NOT NULL DEFAULT FALSE,
        ignore_expired BOOLEAN NOT NULL DEFAULT FALSE,
        by_admin BOOLEAN NOT NULL DEFAULT FALSE,
        flagged BOOLEAN NOT NULL DEFAULT FALSE,
        manually_handled BOOLEAN NOT NULL DEFAULT FALSE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS translator_job_rel (
        id SERIAL PRIMARY KEY,
        job_id INT NOT NULL REFERENCES jobs(id),
        user_id INT NOT NULL,
        created_at TIMESTAMP NOT NULL,
        cancel_at TIMESTAMP,
        completed_at TIMESTAMP,
        completed_by INT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS distances (
        id SERIAL PRIMARY KEY,
        job_id INT NOT NULL UNIQUE REFERENCES jobs(id),
        distance VARCHAR(50),
        time VARCHAR(50)
    );
    """,
    # At most one open assignment per job
    """
    CREATE UNIQUE INDEX IF NOT EXISTS uq_translator_job_rel_open
        ON translator_job_rel(job_id)
        WHERE cancel_at IS NULL AND completed_at IS NULL;
    """,
    # Indexes for common queries
    "CREATE INDEX IF NOT EXISTS idx_jobs_status_due ON jobs(status, due);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_will_expire_at ON jobs(will_expire_at);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_user ON jobs(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_translator_job_rel_user ON translator_job_rel(user_id);",
]


async def run_migrations(engine: AsyncEngine) -> None:
    """
    Run all migrations on database startup.

    Idempotent: tables and indexes are only created if they don't exist.

    Args:
        engine: SQLAlchemy async engine
    """
    async with engine.begin() as conn:
        for migration in MIGRATIONS:
            await conn.execute(text(migration))
