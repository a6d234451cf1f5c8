"""Periodic analysis endpoints: eligibility check, run, latest result, history."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from centered.analyzer.dedup import latest_completed, record_window
from centered.analyzer.errors import (
    AlreadyAnalyzed,
    AnalysisError,
    NotEligible,
    ServiceMisconfigured,
    ServiceUnavailable,
)
from centered.analyzer.parser import parse_response
from centered.analyzer.period import ReportingWindow
from centered.analyzer.stats import compute_period_stats
from centered.api.dependencies import DbDep, PipelineDep
from centered.models.analysis import (
    AnalysisRecord,
    AnalysisRecordSummary,
    AnalysisResponse,
    AnalysisStatusResponse,
    EligibilityInfo,
    ParsedAnalysis,
    PeriodStats,
    WindowInfo,
)
from centered.services import record_service
from centered.services.entry_service import SqliteJournalStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])

_STATUS_BY_ERROR = {
    NotEligible: 422,
    AlreadyAnalyzed: 409,
    ServiceUnavailable: 503,
    ServiceMisconfigured: 503,
}


def _window_info(window: ReportingWindow) -> WindowInfo:
    return WindowInfo(mode=window.mode, start=window.start, end=window.end, label=window.label)


def _to_response(
    record: AnalysisRecord,
    window: ReportingWindow,
    stats: PeriodStats,
    parsed: Optional[ParsedAnalysis] = None,
) -> AnalysisResponse:
    return AnalysisResponse(
        user_id=record.user_id,
        record_id=record.id,
        window=_window_info(window),
        analysis=parsed or parse_response(record.response),
        stats=stats,
        response=record.response or "",
        created_at=record.created_at,
    )


def _http_error(exc: AnalysisError) -> HTTPException:
    detail: dict = {"code": exc.code, "message": exc.message}
    if isinstance(exc, NotEligible):
        detail["day_count"] = exc.day_count
        detail["minimum_required"] = exc.minimum_required
    elif isinstance(exc, AlreadyAnalyzed):
        detail["record_id"] = exc.record.id
    return HTTPException(status_code=_STATUS_BY_ERROR.get(type(exc), 500), detail=detail)


@router.get("/{user_id}/eligibility", response_model=AnalysisStatusResponse)
async def check_analysis_eligibility(
    user_id: str,
    pipeline: PipelineDep,
    as_of: Optional[datetime] = Query(None, description="Reference instant (ISO datetime). Default: now."),
) -> AnalysisStatusResponse:
    """Tell whether an analysis can run for the period containing ``as_of``."""
    state = await pipeline.check(user_id, as_of)
    return AnalysisStatusResponse(
        user_id=user_id,
        as_of=state.as_of.date(),
        window=_window_info(state.window),
        eligibility=EligibilityInfo(
            eligible=state.eligibility.eligible,
            day_count=state.eligibility.day_count,
            minimum_required=state.eligibility.minimum_required,
            message=state.eligibility.message,
        ),
        already_analyzed=state.already_analyzed,
        can_analyze=state.can_analyze,
    )


@router.post("/{user_id}", response_model=AnalysisResponse)
async def run_analysis(
    user_id: str,
    pipeline: PipelineDep,
    as_of: Optional[datetime] = Query(None, description="Reference instant (ISO datetime). Default: now."),
) -> AnalysisResponse:
    """
    Run the weekly or monthly analysis for the period containing ``as_of``.

    - 409 when the period is already analysed.
    - 422 when there are not enough distinct entry-days.
    - 503 when the AI service cannot produce an answer.
    """
    try:
        outcome = await pipeline.run(user_id, as_of)
    except AnalysisError as exc:
        logger.info("Analysis for %s rejected: %s", user_id, exc.code)
        raise _http_error(exc) from exc
    return _to_response(outcome.record, outcome.window, outcome.stats, outcome.parsed)


@router.get("/{user_id}/latest", response_model=AnalysisResponse)
async def get_latest_analysis(user_id: str, db: DbDep) -> AnalysisResponse:
    """Return the most recent completed analysis with its parsed fields and stats."""
    records = await record_service.list_records_for_user(db, user_id)
    record = latest_completed(records)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No analysis yet for user {user_id}")

    window = record_window(record)
    entries = await SqliteJournalStore(db).fetch_entries(user_id, window.start, window.end)
    return _to_response(record, window, compute_period_stats(entries, window))


@router.get("/{user_id}/history", response_model=list[AnalysisRecordSummary])
async def list_analysis_history(
    user_id: str,
    db: DbDep,
    limit: int = Query(20, ge=1, le=100),
) -> list[AnalysisRecordSummary]:
    """Return a user's analysis records, newest first (incomplete attempts included)."""
    records = await record_service.list_records_for_user(db, user_id, limit=limit)
    return [record_service.to_summary(r) for r in records]
