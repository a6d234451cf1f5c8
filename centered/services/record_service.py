"""Persistence for analysis records."""

import uuid
from datetime import datetime

import aiosqlite

from centered.models.analysis import AnalysisMode, AnalysisRecord, AnalysisRecordSummary


def _row_to_record(row: aiosqlite.Row) -> AnalysisRecord:
    return AnalysisRecord(
        id=row["id"],
        user_id=row["user_id"],
        mode=AnalysisMode(row["mode"]),
        prompt=row["prompt"],
        response=row["response"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def to_summary(record: AnalysisRecord) -> AnalysisRecordSummary:
    return AnalysisRecordSummary(
        id=record.id,
        user_id=record.user_id,
        mode=record.mode,
        completed=record.is_completed,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


async def get_record(db: aiosqlite.Connection, record_id: str) -> AnalysisRecord | None:
    """Return a specific record by id."""
    async with db.execute("SELECT * FROM analysis_records WHERE id = ?", (record_id,)) as cur:
        row = await cur.fetchone()
    return _row_to_record(row) if row else None


async def create_record(
    db: aiosqlite.Connection,
    user_id: str,
    mode: AnalysisMode,
    prompt: str | None = None,
    response: str | None = None,
    created_at: datetime | None = None,
    record_id: str | None = None,
) -> AnalysisRecord:
    """Insert a record (fresh opaque id unless one is given) and return it."""
    record_id = record_id or uuid.uuid4().hex
    created_at = created_at or datetime.now()
    await db.execute(
        """INSERT INTO analysis_records (id, user_id, mode, prompt, response, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            record_id,
            user_id,
            AnalysisMode(mode).value,
            prompt,
            response,
            created_at.isoformat(),
            created_at.isoformat(),
        ),
    )
    await db.commit()
    record = await get_record(db, record_id)
    if record is None:
        raise RuntimeError(f"Analysis record {record_id} vanished after insert")
    return record


async def update_record(db: aiosqlite.Connection, record: AnalysisRecord) -> AnalysisRecord:
    """Write prompt, response and updated_at back. Raises LookupError if the record is gone."""
    cursor = await db.execute(
        """UPDATE analysis_records
           SET prompt = ?, response = ?, updated_at = ?
           WHERE id = ?""",
        (record.prompt, record.response, record.updated_at.isoformat(), record.id),
    )
    await db.commit()
    if cursor.rowcount == 0:
        raise LookupError(f"Analysis record {record.id} not found")
    updated = await get_record(db, record.id)
    return updated if updated is not None else record


async def list_records_for_user(
    db: aiosqlite.Connection,
    user_id: str,
    limit: int | None = None,
) -> list[AnalysisRecord]:
    """Return a user's records, newest first."""
    query = """SELECT * FROM analysis_records
               WHERE user_id = ?
               ORDER BY created_at DESC, rowid DESC"""
    params: tuple = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (user_id, limit)
    rows = await db.execute_fetchall(query, params)
    return [_row_to_record(r) for r in rows]


class SqliteRecordStore:
    """AnalysisRecord store for the analysis pipeline."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def create(self, record: AnalysisRecord) -> AnalysisRecord:
        return await create_record(
            self.db,
            user_id=record.user_id,
            mode=record.mode,
            prompt=record.prompt,
            response=record.response,
            created_at=record.created_at,
            record_id=record.id,
        )

    async def update(self, record: AnalysisRecord) -> AnalysisRecord:
        return await update_record(self.db, record)

    async def list_for_user(self, user_id: str) -> list[AnalysisRecord]:
        return await list_records_for_user(self.db, user_id)
