"""End-to-end periodic analysis: window → dedup → eligibility → generate → persist."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from centered.models.analysis import AnalysisRecord, ParsedAnalysis, PeriodStats
from centered.models.entry import JournalEntry
from .dedup import find_completed_analysis
from .eligibility import Eligibility, check_eligibility, local_day, to_local
from .errors import (
    AlreadyAnalyzed,
    FatalGenerationError,
    GenerationError,
    NotEligible,
    ServiceMisconfigured,
    ServiceUnavailable,
)
from .parser import parse_response
from .period import AnalysisMode, ReportingWindow, determine_mode, window_for
from .prompt import SYSTEM_INSTRUCTION, build_prompt, join_entries
from .retry import RetryOrchestrator, progress_label
from .stats import compute_period_stats

logger = logging.getLogger(__name__)


class JournalStore(Protocol):
    async def fetch_entries(self, user_id: str, start: date, end: date) -> list[JournalEntry]: ...


class AnalysisRecordStore(Protocol):
    async def create(self, record: AnalysisRecord) -> AnalysisRecord: ...

    async def update(self, record: AnalysisRecord) -> AnalysisRecord: ...

    async def list_for_user(self, user_id: str) -> list[AnalysisRecord]: ...


@dataclass(frozen=True)
class AnalysisStatus:
    """Answer to "can this user run an analysis now?"."""
    user_id: str
    as_of: datetime
    mode: AnalysisMode
    window: ReportingWindow
    eligibility: Eligibility
    already_analyzed: bool

    @property
    def can_analyze(self) -> bool:
        return self.eligibility.eligible and not self.already_analyzed


@dataclass(frozen=True)
class AnalysisOutcome:
    record: AnalysisRecord
    window: ReportingWindow
    parsed: ParsedAnalysis
    stats: PeriodStats


def _resolve(as_of: datetime | None) -> tuple[datetime, AnalysisMode, ReportingWindow]:
    # Aware instants are moved to the host zone, where entry days are counted
    now = to_local(as_of or datetime.now())
    mode = determine_mode(now)
    return now, mode, window_for(now, mode)


class AnalysisPipeline:
    """
    Runs one analysis for one user.

    The dedup check happens twice: before spending a generation, and again
    right before the response is written, so that a concurrent run that
    finished first wins and this one leaves its record incomplete.
    """

    def __init__(
        self,
        journal_store: JournalStore,
        record_store: AnalysisRecordStore,
        orchestrator: RetryOrchestrator,
    ):
        self.journal_store = journal_store
        self.record_store = record_store
        self.orchestrator = orchestrator

    async def _entries_in(self, user_id: str, window: ReportingWindow) -> list[JournalEntry]:
        entries = await self.journal_store.fetch_entries(user_id, window.start, window.end)
        return [e for e in entries if window.contains(local_day(e.created_at))]

    async def check(self, user_id: str, as_of: datetime | None = None) -> AnalysisStatus:
        """Eligibility and dedup state for the period containing ``as_of``. No side effects."""
        now, mode, window = _resolve(as_of)
        records = await self.record_store.list_for_user(user_id)
        existing = find_completed_analysis(window, mode, records)
        entries = await self._entries_in(user_id, window)
        return AnalysisStatus(
            user_id=user_id,
            as_of=now,
            mode=mode,
            window=window,
            eligibility=check_eligibility(mode, entries, window),
            already_analyzed=existing is not None,
        )

    async def run(self, user_id: str, as_of: datetime | None = None) -> AnalysisOutcome:
        """
        Generate and store the analysis for the period containing ``as_of``.

        Raises:
            AlreadyAnalyzed: a completed record already covers the period.
            NotEligible: too few distinct entry-days in the period.
            ServiceUnavailable: generation failed after every retry.
            ServiceMisconfigured: credentials or quota problem on the provider side.
        """
        now, mode, window = _resolve(as_of)

        existing = find_completed_analysis(window, mode, await self.record_store.list_for_user(user_id))
        if existing is not None:
            logger.info("User %s already has a %s analysis for %s", user_id, mode.value, window.label)
            raise AlreadyAnalyzed(existing)

        entries = await self._entries_in(user_id, window)
        eligibility = check_eligibility(mode, entries, window)
        if not eligibility.eligible:
            logger.info(
                "User %s not eligible for %s analysis (%d/%d days)",
                user_id, mode.value, eligibility.day_count, eligibility.minimum_required,
            )
            raise NotEligible(eligibility.day_count, eligibility.minimum_required, eligibility.message)

        prompt = build_prompt(mode, join_entries(entries))
        record = await self.record_store.create(
            AnalysisRecord(
                id=uuid.uuid4().hex,
                user_id=user_id,
                mode=mode,
                prompt=prompt,
                response=None,
                created_at=now,
                updated_at=now,
            )
        )

        def report_progress(attempt: int) -> None:
            if attempt > 1:
                logger.info("Analysis %s: %s", record.id, progress_label(attempt))

        unsubscribe = self.orchestrator.subscribe(report_progress)
        try:
            text = await self.orchestrator.generate(prompt, SYSTEM_INSTRUCTION)
        except FatalGenerationError as exc:
            logger.error("Analysis %s aborted, provider refused the call: %s", record.id, exc)
            raise ServiceMisconfigured() from exc
        except GenerationError as exc:
            logger.warning("Analysis %s failed after retries: %s", record.id, exc.__cause__ or exc)
            raise ServiceUnavailable() from exc
        finally:
            unsubscribe()

        # A concurrent run may have completed while we were generating
        existing = find_completed_analysis(
            window, mode, await self.record_store.list_for_user(user_id), exclude_id=record.id
        )
        if existing is not None:
            logger.info("Discarding analysis %s, %s completed first", record.id, existing.id)
            raise AlreadyAnalyzed(existing)

        completed = await self.record_store.update(
            record.model_copy(update={
                "response": text,
                "updated_at": max(now, datetime.now(now.tzinfo)),
            })
        )
        logger.info("Analysis %s stored for user %s (%s, %s)", completed.id, user_id, mode.value, window.label)
        return AnalysisOutcome(
            record=completed,
            window=window,
            parsed=parse_response(text),
            stats=compute_period_stats(entries, window),
        )
