"""Centered API application entry point."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()  # load .env before anything reads os.getenv()

from fastapi import FastAPI

from centered.api.routes import analysis_router, entries_router, health_router
from centered.services.database import DATABASE_URL, create_tables

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables at startup; the Claude client is built on first use."""
    await create_tables()
    logger.info("SQLite database ready at %s", DATABASE_URL)

    app.state.generator = None

    yield

    logger.info("Centered API stopped")


app = FastAPI(
    title="Centered API",
    description=(
        "Journaling backend with weekly and monthly AI analyses of journal "
        "entries (mood tally, centered score, summary)."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(entries_router)
app.include_router(analysis_router)
