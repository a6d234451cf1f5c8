"""Analysis record and parsed-analysis models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AnalysisMode(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class AnalysisRecord(BaseModel):
    """One generation attempt; completed once ``response`` holds text."""
    id: str
    user_id: str
    mode: AnalysisMode
    prompt: Optional[str] = None
    response: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_completed(self) -> bool:
        return bool(self.response and self.response.strip())


class AnalysisRecordSummary(BaseModel):
    """Lightweight listing model, without prompt or response text."""
    id: str
    user_id: str
    mode: AnalysisMode
    completed: bool
    created_at: datetime
    updated_at: datetime


class MoodCount(BaseModel):
    mood: str
    count: int
    order: int


class ParsedAnalysis(BaseModel):
    """Structured view of a raw response, recomputed on demand."""
    mood_counts: list[MoodCount] = []
    centered_score: Optional[int] = None
    summary: Optional[str] = None


class PeriodStats(BaseModel):
    logs_count: int = 0
    streak_days: int = 0
    favorite_log_time: str = "—"


class WindowInfo(BaseModel):
    mode: AnalysisMode
    start: date
    end: date
    label: str


class EligibilityInfo(BaseModel):
    eligible: bool
    day_count: int
    minimum_required: int
    message: str = ""


class AnalysisStatusResponse(BaseModel):
    """Eligibility query result for one user as of a date."""
    user_id: str
    as_of: date
    window: WindowInfo
    eligibility: EligibilityInfo
    already_analyzed: bool
    can_analyze: bool


class AnalysisResponse(BaseModel):
    user_id: str
    record_id: str
    window: WindowInfo
    analysis: ParsedAnalysis
    stats: PeriodStats = Field(default_factory=PeriodStats)
    response: str
    created_at: datetime
