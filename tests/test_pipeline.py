"""Integration tests for the analysis pipeline on an in-memory database."""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from centered.analyzer.errors import (
    AlreadyAnalyzed,
    InvalidCredentials,
    NotEligible,
    ServiceMisconfigured,
    ServiceUnavailable,
    TransportError,
)
from centered.analyzer.period import AnalysisMode, determine_mode, window_for
from centered.analyzer.pipeline import AnalysisPipeline
from centered.analyzer.retry import RetryOrchestrator
from centered.models.entry import JournalEntryCreate
from centered.services.entry_service import SqliteJournalStore, add_entry
from centered.services.record_service import SqliteRecordStore, list_records_for_user

pytestmark = pytest.mark.asyncio

USER = "u1"
WEEKDAY = datetime(2026, 10, 21, 12, 0)       # Wednesday, week Oct 18 – Oct 24
LAST_SUNDAY = datetime(2026, 10, 25, 12, 0)   # month period Sep 27 – Oct 24


def _pipeline(db, generator, sleep) -> AnalysisPipeline:
    return AnalysisPipeline(
        journal_store=SqliteJournalStore(db),
        record_store=SqliteRecordStore(db),
        orchestrator=RetryOrchestrator(generator, sleep=sleep),
    )


async def _write_days(db, first: date, count: int, user_id: str = USER):
    for i in range(count):
        day = first + timedelta(days=i)
        await add_entry(db, JournalEntryCreate(
            user_id=user_id,
            content=f"Entry for {day.isoformat()}.",
            created_at=datetime(day.year, day.month, day.day, 9, 0),
        ))


# ─── Happy path ───────────────────────────────────────────────────────────────

async def test_weekly_run_stores_completed_record(db, make_generator, fake_sleep, sample_response):
    await _write_days(db, date(2026, 10, 19), 2)
    generator = make_generator(sample_response)

    outcome = await _pipeline(db, generator, fake_sleep).run(USER, WEEKDAY)

    assert outcome.window.mode == AnalysisMode.WEEKLY
    assert outcome.window.label == "Oct 18 to Oct 24th"
    assert outcome.record.is_completed
    assert outcome.record.response == sample_response
    assert outcome.record.created_at == WEEKDAY
    assert outcome.parsed.centered_score == 82
    assert [m.mood for m in outcome.parsed.mood_counts] == ["Joy", "Calm", "Anxious"]
    assert outcome.stats.logs_count == 2

    prompt, _ = generator.calls[0]
    assert "top three moods" in prompt
    assert "Entry for 2026-10-19.\n\nEntry for 2026-10-20." in prompt

    [stored] = await list_records_for_user(db, USER)
    assert stored.id == outcome.record.id
    assert stored.response == sample_response


async def test_monthly_run_on_last_sunday(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 9, 27), 9)
    generator = make_generator("Joy(4)\n\nA good month.\n\nScore 90")

    outcome = await _pipeline(db, generator, fake_sleep).run(USER, LAST_SUNDAY)

    assert outcome.record.mode == AnalysisMode.MONTHLY
    assert outcome.window.start == date(2026, 9, 27)
    assert outcome.window.end == date(2026, 10, 24)
    assert "top four moods" in generator.calls[0][0]


async def test_other_users_entries_are_not_used(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 1)
    await _write_days(db, date(2026, 10, 20), 3, user_id="someone-else")

    with pytest.raises(NotEligible):
        await _pipeline(db, make_generator(), fake_sleep).run(USER, WEEKDAY)


# ─── Gates ────────────────────────────────────────────────────────────────────

async def test_not_eligible_creates_nothing(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 1)
    generator = make_generator()

    with pytest.raises(NotEligible) as exc_info:
        await _pipeline(db, generator, fake_sleep).run(USER, WEEKDAY)

    assert exc_info.value.day_count == 1
    assert exc_info.value.minimum_required == 2
    assert generator.calls == []
    assert await list_records_for_user(db, USER) == []


async def test_monthly_needs_nine_days(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 9, 27), 8)
    with pytest.raises(NotEligible) as exc_info:
        await _pipeline(db, make_generator(), fake_sleep).run(USER, LAST_SUNDAY)
    assert exc_info.value.minimum_required == 9


async def test_second_run_in_same_period_is_rejected(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 2)
    generator = make_generator()
    pipeline = _pipeline(db, generator, fake_sleep)

    first = await pipeline.run(USER, WEEKDAY)
    with pytest.raises(AlreadyAnalyzed) as exc_info:
        await pipeline.run(USER, WEEKDAY + timedelta(days=1))

    assert exc_info.value.record.id == first.record.id
    assert len(generator.calls) == 1
    assert len(await list_records_for_user(db, USER)) == 1


async def test_next_week_is_a_new_period(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 2)
    await _write_days(db, date(2026, 10, 26), 2)
    pipeline = _pipeline(db, make_generator(), fake_sleep)

    await pipeline.run(USER, WEEKDAY)
    outcome = await pipeline.run(USER, WEEKDAY + timedelta(days=7))
    assert outcome.window.start == date(2026, 10, 25)


async def test_check_reports_state_without_side_effects(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 2)
    generator = make_generator()
    pipeline = _pipeline(db, generator, fake_sleep)

    status = await pipeline.check(USER, WEEKDAY)
    assert status.eligibility.eligible
    assert status.already_analyzed is False
    assert status.can_analyze is True
    assert generator.calls == []
    assert await list_records_for_user(db, USER) == []

    await pipeline.run(USER, WEEKDAY)
    status = await pipeline.check(USER, WEEKDAY)
    assert status.already_analyzed is True
    assert status.can_analyze is False


# ─── Failures ─────────────────────────────────────────────────────────────────

async def test_exhausted_retries_leave_record_incomplete(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 2)

    with pytest.raises(ServiceUnavailable):
        await _pipeline(db, make_generator(TransportError("down")), fake_sleep).run(USER, WEEKDAY)

    [record] = await list_records_for_user(db, USER)
    assert record.response is None
    assert fake_sleep.delays == [2.0, 4.0]

    # An incomplete record does not block a later attempt
    outcome = await _pipeline(db, make_generator(), fake_sleep).run(USER, WEEKDAY)
    assert outcome.record.is_completed
    assert len(await list_records_for_user(db, USER)) == 2


async def test_bad_credentials_fail_fast(db, make_generator, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 2)
    generator = make_generator(InvalidCredentials("401"))

    with pytest.raises(ServiceMisconfigured):
        await _pipeline(db, generator, fake_sleep).run(USER, WEEKDAY)
    assert len(generator.calls) == 1
    assert fake_sleep.delays == []


async def test_cancellation_leaves_record_incomplete(db, fake_sleep):
    await _write_days(db, date(2026, 10, 19), 2)

    class BlockingGenerator:
        def __init__(self):
            self.started = asyncio.Event()

        async def complete(self, prompt, system_instruction):
            self.started.set()
            await asyncio.Event().wait()

    generator = BlockingGenerator()
    task = asyncio.create_task(_pipeline(db, generator, fake_sleep).run(USER, WEEKDAY))
    await generator.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    [record] = await list_records_for_user(db, USER)
    assert record.response is None


# ─── Concurrency ──────────────────────────────────────────────────────────────

async def test_concurrent_runs_complete_only_once(db, fake_sleep, sample_response):
    await _write_days(db, date(2026, 10, 19), 2)

    class GatedGenerator:
        """First caller answers at once; later callers wait for ``release``."""

        def __init__(self):
            self.calls = 0
            self.release = asyncio.Event()

        async def complete(self, prompt, system_instruction):
            self.calls += 1
            if self.calls > 1:
                await self.release.wait()
            return sample_response

    generator = GatedGenerator()
    pipeline = _pipeline(db, generator, fake_sleep)
    tasks = [asyncio.create_task(pipeline.run(USER, WEEKDAY)) for _ in range(2)]

    await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    generator.release.set()
    await asyncio.wait(tasks)

    succeeded = [t for t in tasks if t.exception() is None]
    rejected = [t for t in tasks if isinstance(t.exception(), AlreadyAnalyzed)]
    assert len(succeeded) == 1
    assert len(rejected) == 1

    records = await list_records_for_user(db, USER)
    assert sum(1 for r in records if r.is_completed) == 1


# ─── Timezones ────────────────────────────────────────────────────────────────

async def test_naive_and_aware_entries_in_same_week(db, make_generator, fake_sleep):
    await add_entry(db, JournalEntryCreate(
        user_id=USER, content="Naive local entry.", created_at=datetime(2026, 10, 19, 9, 0),
    ))
    await add_entry(db, JournalEntryCreate(
        user_id=USER, content="Aware UTC entry.",
        created_at=datetime(2026, 10, 21, 12, 0, tzinfo=timezone.utc),
    ))
    generator = make_generator()

    outcome = await _pipeline(db, generator, fake_sleep).run(USER, WEEKDAY)

    assert outcome.record.is_completed
    assert outcome.stats.logs_count == 2
    assert "Naive local entry.\n\nAware UTC entry." in generator.calls[0][0]


async def test_aware_as_of_is_classified_on_local_day(db, make_generator, fake_sleep):
    as_of = datetime(2026, 10, 25, 1, 0, tzinfo=timezone(timedelta(hours=14)))
    local = as_of.astimezone()

    status = await _pipeline(db, make_generator(), fake_sleep).check(USER, as_of)

    assert status.mode == determine_mode(local)
    assert status.window == window_for(local)
    assert status.as_of.date() == local.date()


async def test_retries_are_logged_with_progress_labels(db, make_generator, fake_sleep, caplog):
    await _write_days(db, date(2026, 10, 19), 2)
    generator = make_generator(TransportError("a"), TransportError("b"), "Joy(1)\n\nok\n\n80")
    caplog.set_level(logging.INFO, logger="centered.analyzer.pipeline")

    await _pipeline(db, generator, fake_sleep).run(USER, WEEKDAY)

    messages = [r.getMessage() for r in caplog.records if r.name == "centered.analyzer.pipeline"]
    assert any(m.endswith(": Retrying...") for m in messages)
    assert any(m.endswith(": Retrying again...") for m in messages)
    assert not any(m.endswith(": Generating...") for m in messages)
