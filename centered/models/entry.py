"""Pydantic models for journal entries."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

# One entry flow for every question type; the kind only tags the entry
QuestionKind = Literal["guided", "open", "follow_up"]


class JournalEntryBase(BaseModel):
    user_id: str = Field(..., min_length=1)
    question_kind: QuestionKind = "guided"
    question_text: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1)


class JournalEntryCreate(JournalEntryBase):
    """Payload to record a journal entry."""
    created_at: Optional[datetime] = Field(
        None, description="Entry timestamp. Default: now."
    )


class JournalEntry(JournalEntryBase):
    """Full entry returned from the database."""
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}
