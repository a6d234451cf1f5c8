"""Minimum entry-days gate before an analysis may run."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from centered.models.entry import JournalEntry
from .period import AnalysisMode, ReportingWindow

MINIMUM_ENTRY_DAYS = {
    AnalysisMode.WEEKLY: 2,
    AnalysisMode.MONTHLY: 9,
}


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    day_count: int
    minimum_required: int
    mode: AnalysisMode

    @property
    def message(self) -> str:
        """User-facing explanation (empty when eligible)."""
        if self.eligible:
            return ""
        if self.mode == AnalysisMode.MONTHLY:
            return (
                f"A monthly analysis needs entries on at least {self.minimum_required} "
                f"different days, you have {self.day_count} in this monthly period."
            )
        return (
            f"A weekly analysis needs entries on at least {self.minimum_required} "
            f"different days, you have {self.day_count} in this week."
        )


def to_local(ts: datetime) -> datetime:
    """Timestamp in the host's local zone (naive timestamps are taken as local)."""
    if ts.tzinfo is not None:
        return ts.astimezone()
    return ts


def local_day(ts: datetime) -> date:
    return to_local(ts).date()


def naive_local(ts: datetime) -> datetime:
    """Local wall-clock time without tzinfo; orders naive and aware timestamps together."""
    return to_local(ts).replace(tzinfo=None)


def entry_days(entries: Iterable[JournalEntry], window: ReportingWindow) -> set[date]:
    """Distinct local days inside ``window`` on which at least one entry exists."""
    days = {local_day(e.created_at) for e in entries}
    return {d for d in days if window.start <= d <= window.end}


def check_eligibility(
    mode: AnalysisMode,
    entries: Iterable[JournalEntry],
    window: ReportingWindow,
) -> Eligibility:
    minimum = MINIMUM_ENTRY_DAYS[mode]
    day_count = len(entry_days(entries, window))
    return Eligibility(
        eligible=day_count >= minimum,
        day_count=day_count,
        minimum_required=minimum,
        mode=mode,
    )
