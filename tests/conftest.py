"""Shared fixtures across tests — in-memory SQLite via aiosqlite, scripted AI."""

import aiosqlite
import pytest
import pytest_asyncio

from centered.services.database import create_schema

SAMPLE_RESPONSE = (
    "Joy(3), Calm(2), Anxious(1)\n\n"
    "You did well this week, showing up for yourself on busy days. "
    "Try a short walk after work to keep the calm going.\n\n"
    "Your centered score remains at 82."
)


class ScriptedGenerator:
    """
    Text generator replaying a script, one step per call.

    A step is either a string (returned) or an exception (raised). The last
    step repeats once the script is exhausted.
    """

    def __init__(self, *script):
        self.script = list(script) or [SAMPLE_RESPONSE]
        self.calls: list[tuple[str, str]] = []

    async def complete(self, prompt: str, system_instruction: str) -> str:
        self.calls.append((prompt, system_instruction))
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, BaseException):
            raise step
        return step


class RecordingSleep:
    """Stands in for asyncio.sleep: records delays, never waits."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with all tables, discarded after each test."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await create_schema(conn)
        yield conn


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sample_response() -> str:
    return SAMPLE_RESPONSE


@pytest.fixture
def make_generator():
    return ScriptedGenerator
