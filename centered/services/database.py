"""SQLite initialization and async connection management via aiosqlite."""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import aiosqlite

DATABASE_URL = os.getenv("DATABASE_URL", "data/centered.db")

__all__ = ["DATABASE_URL", "create_tables", "create_schema", "get_db", "_CREATE_JOURNAL_ENTRIES", "_CREATE_ANALYSIS_RECORDS"]

_CREATE_JOURNAL_ENTRIES = """
CREATE TABLE IF NOT EXISTS journal_entries (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id        TEXT    NOT NULL,
    question_kind  TEXT    NOT NULL DEFAULT 'guided'
                           CHECK(question_kind IN ('guided', 'open', 'follow_up')),
    question_text  TEXT,
    content        TEXT    NOT NULL,
    created_at     TEXT    NOT NULL
)
"""

_CREATE_JOURNAL_ENTRIES_INDEX = """
CREATE INDEX IF NOT EXISTS idx_journal_entries_user_created
    ON journal_entries (user_id, created_at)
"""

# No uniqueness on (user, mode, window): duplicates are prevented by the dedup checks
_CREATE_ANALYSIS_RECORDS = """
CREATE TABLE IF NOT EXISTS analysis_records (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    mode        TEXT NOT NULL CHECK(mode IN ('weekly', 'monthly')),
    prompt      TEXT,
    response    TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
)
"""

_CREATE_ANALYSIS_RECORDS_INDEX = """
CREATE INDEX IF NOT EXISTS idx_analysis_records_user
    ON analysis_records (user_id, created_at)
"""


async def create_schema(db: aiosqlite.Connection) -> None:
    """Create tables and indexes on an open connection."""
    await db.execute(_CREATE_JOURNAL_ENTRIES)
    await db.execute(_CREATE_JOURNAL_ENTRIES_INDEX)
    await db.execute(_CREATE_ANALYSIS_RECORDS)
    await db.execute(_CREATE_ANALYSIS_RECORDS_INDEX)
    await db.commit()


async def create_tables(db_url: str = DATABASE_URL) -> None:
    """Create all application tables if they don't exist."""
    os.makedirs(os.path.dirname(db_url) if os.path.dirname(db_url) else ".", exist_ok=True)
    async with aiosqlite.connect(db_url) as db:
        await create_schema(db)


@asynccontextmanager
async def get_db(db_url: str = DATABASE_URL) -> AsyncGenerator[aiosqlite.Connection, None]:
    """Context manager that provides a SQLite connection with dict-like rows."""
    async with aiosqlite.connect(db_url) as db:
        db.row_factory = aiosqlite.Row
        yield db
