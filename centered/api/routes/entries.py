"""Journal entry endpoints (all question kinds share one flow)."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from centered.api.dependencies import DbDep
from centered.models.entry import JournalEntry, JournalEntryCreate
from centered.services import entry_service

router = APIRouter(prefix="/entries", tags=["entries"])


@router.post("", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
async def add_entry(payload: JournalEntryCreate, db: DbDep) -> JournalEntry:
    """Record a guided, open or follow-up journal entry."""
    return await entry_service.add_entry(db, payload)


@router.get("/{user_id}", response_model=list[JournalEntry])
async def list_entries(
    user_id: str,
    db: DbDep,
    start: Optional[date] = Query(None, description="First day (inclusive)"),
    end: Optional[date] = Query(None, description="Last day (inclusive)"),
) -> list[JournalEntry]:
    """Return a user's entries: all of them (newest first) or a day range (oldest first)."""
    if start is None and end is None:
        return await entry_service.get_entries_by_user(db, user_id)
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="Pass both 'start' and 'end'")
    if end < start:
        raise HTTPException(status_code=400, detail="'end' must not be before 'start'")
    return await entry_service.get_entries_by_range(db, user_id, start, end)


@router.delete("/detail/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(entry_id: int, db: DbDep) -> None:
    """Delete a journal entry."""
    deleted = await entry_service.delete_entry(db, entry_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Entry {entry_id} not found")
