"""Reusable FastAPI dependencies (DB, text generator, analysis pipeline)."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import aiosqlite
from fastapi import Depends, Request

from centered.analyzer.generator import ClaudeGenerator
from centered.analyzer.pipeline import AnalysisPipeline
from centered.analyzer.retry import RetryOrchestrator, TextGenerator
from centered.services.database import get_db as _get_db
from centered.services.entry_service import SqliteJournalStore
from centered.services.record_service import SqliteRecordStore

logger = logging.getLogger(__name__)


async def db_dependency() -> AsyncGenerator[aiosqlite.Connection, None]:
    """Provide a SQLite connection for the duration of the request."""
    async with _get_db() as conn:
        yield conn


DbDep = Annotated[aiosqlite.Connection, Depends(db_dependency)]


def get_generator(request: Request) -> TextGenerator:
    """
    Return the text generator from application state, creating the Claude
    client on first use.
    """
    generator = getattr(request.app.state, "generator", None)
    if generator is None:
        generator = ClaudeGenerator()
        request.app.state.generator = generator
        logger.info("Claude generator initialised (model=%s)", generator.model)
    return generator


GeneratorDep = Annotated[TextGenerator, Depends(get_generator)]


def get_pipeline(db: DbDep, generator: GeneratorDep) -> AnalysisPipeline:
    return AnalysisPipeline(
        journal_store=SqliteJournalStore(db),
        record_store=SqliteRecordStore(db),
        orchestrator=RetryOrchestrator(generator),
    )


PipelineDep = Annotated[AnalysisPipeline, Depends(get_pipeline)]
