"""Async persistence for journal entries (guided, open and follow-up alike)."""

from datetime import date, datetime, timedelta

import aiosqlite

from centered.models.entry import JournalEntry, JournalEntryCreate


def _row_to_entry(row: aiosqlite.Row) -> JournalEntry:
    return JournalEntry(
        id=row["id"],
        user_id=row["user_id"],
        question_kind=row["question_kind"],
        question_text=row["question_text"],
        content=row["content"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


async def add_entry(db: aiosqlite.Connection, entry: JournalEntryCreate) -> JournalEntry:
    """Record a journal entry and return the full record."""
    created_at = entry.created_at or datetime.now()
    cursor = await db.execute(
        """INSERT INTO journal_entries (user_id, question_kind, question_text, content, created_at)
           VALUES (?, ?, ?, ?, ?)""",
        (
            entry.user_id,
            entry.question_kind,
            entry.question_text,
            entry.content,
            created_at.isoformat(),
        ),
    )
    await db.commit()
    rows = await db.execute_fetchall(
        "SELECT * FROM journal_entries WHERE id = ?", (cursor.lastrowid,)
    )
    return _row_to_entry(rows[0])


async def get_entry(db: aiosqlite.Connection, entry_id: int) -> JournalEntry | None:
    """Return an entry by id, or None."""
    async with db.execute("SELECT * FROM journal_entries WHERE id = ?", (entry_id,)) as cur:
        row = await cur.fetchone()
    return _row_to_entry(row) if row else None


async def get_entries_by_user(db: aiosqlite.Connection, user_id: str) -> list[JournalEntry]:
    """Return all entries for a user, most recent first."""
    rows = await db.execute_fetchall(
        "SELECT * FROM journal_entries WHERE user_id = ? ORDER BY created_at DESC, id DESC",
        (user_id,),
    )
    return [_row_to_entry(r) for r in rows]


async def get_entries_by_range(
    db: aiosqlite.Connection, user_id: str, start: date, end: date
) -> list[JournalEntry]:
    """Return entries whose stored day lies between start and end (inclusive), oldest first."""
    rows = await db.execute_fetchall(
        """SELECT * FROM journal_entries
           WHERE user_id = ?
             AND substr(created_at, 1, 10) >= ?
             AND substr(created_at, 1, 10) <= ?
           ORDER BY created_at, id""",
        (user_id, start.isoformat(), end.isoformat()),
    )
    return [_row_to_entry(r) for r in rows]


async def delete_entry(db: aiosqlite.Connection, entry_id: int) -> bool:
    """Delete an entry. Returns True if deleted."""
    cursor = await db.execute("DELETE FROM journal_entries WHERE id = ?", (entry_id,))
    await db.commit()
    return cursor.rowcount > 0


class SqliteJournalStore:
    """Journal source for the analysis pipeline."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def fetch_entries(self, user_id: str, start: date, end: date) -> list[JournalEntry]:
        # Stored days are in the writer's offset; widen by a day and let the
        # eligibility gate filter on the local calendar day
        return await get_entries_by_range(
            self.db, user_id, start - timedelta(days=1), end + timedelta(days=1)
        )
