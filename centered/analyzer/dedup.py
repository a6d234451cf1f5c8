"""At most one completed analysis per user, mode and reporting window."""

from collections.abc import Iterable

from centered.models.analysis import AnalysisRecord
from .eligibility import naive_local, to_local
from .period import AnalysisMode, ReportingWindow, determine_mode, window_for


def record_window(record: AnalysisRecord) -> ReportingWindow:
    """Window a record belongs to, classified from its local creation date."""
    created = to_local(record.created_at)
    return window_for(created, determine_mode(created))


def covers(record: AnalysisRecord, window: ReportingWindow, mode: AnalysisMode) -> bool:
    if not record.is_completed:
        return False
    if determine_mode(to_local(record.created_at)) != mode:
        return False
    classified = record_window(record)
    return classified.start == window.start and classified.end == window.end


def find_completed_analysis(
    window: ReportingWindow,
    mode: AnalysisMode,
    records: Iterable[AnalysisRecord],
    exclude_id: str | None = None,
) -> AnalysisRecord | None:
    """First completed record covering ``window``, ignoring ``exclude_id``."""
    for record in records:
        if exclude_id is not None and record.id == exclude_id:
            continue
        if covers(record, window, mode):
            return record
    return None


def has_completed_analysis_for(
    window: ReportingWindow,
    mode: AnalysisMode,
    records: Iterable[AnalysisRecord],
) -> bool:
    return find_completed_analysis(window, mode, records) is not None


def latest_completed(records: Iterable[AnalysisRecord]) -> AnalysisRecord | None:
    """Most recently created completed record, if any."""
    completed = [r for r in records if r.is_completed]
    if not completed:
        return None
    return max(completed, key=lambda r: naive_local(r.created_at))
