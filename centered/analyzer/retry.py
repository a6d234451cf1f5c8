"""Retry-with-backoff around the text-generation call."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from .errors import (
    GenerationError,
    GenerationFailed,
    MalformedResponse,
    RetryableGenerationError,
    TransportError,
)
from .prompt import SYSTEM_INSTRUCTION

logger = logging.getLogger(__name__)

# Per-attempt ceiling; a timeout counts as a transport failure
CALL_TIMEOUT_SECONDS = float(os.getenv("ANALYZER_TIMEOUT_SECONDS", "30"))

_PROGRESS_LABELS = {
    1: "Generating...",
    2: "Retrying...",
    3: "Retrying again...",
}


def progress_label(attempt: int) -> str:
    """Loading text shown while ``attempt`` is in flight."""
    return _PROGRESS_LABELS.get(attempt, "Generating...")


class TextGenerator(Protocol):
    async def complete(self, prompt: str, system_instruction: str) -> str: ...


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, RetryableGenerationError)


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many attempts, how long to wait before each retry, and which errors
    deserve one. ``delays[i]`` is slept before attempt ``i + 2``.
    """
    max_attempts: int = 3
    delays: tuple[float, ...] = (2.0, 4.0)
    should_retry: Callable[[BaseException], bool] = field(default=is_retryable)

    def delay_before(self, attempt: int) -> float:
        if attempt <= 1 or not self.delays:
            return 0.0
        return self.delays[min(attempt - 2, len(self.delays) - 1)]


ProgressListener = Callable[[int], None]


class RetryOrchestrator:
    """
    Drives one generation at a time through ``policy``.

    ``current_attempt`` is the attempt in flight; listeners are told before
    each call and once more when it goes back to 1, whatever the outcome.
    """

    def __init__(
        self,
        generator: TextGenerator,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timeout: float | None = CALL_TIMEOUT_SECONDS,
    ):
        self.generator = generator
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._timeout = timeout
        self._listeners: list[ProgressListener] = []
        self.current_attempt = 1

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_attempt(self, attempt: int) -> None:
        self.current_attempt = attempt
        for listener in list(self._listeners):
            listener(attempt)

    async def _call(self, prompt: str, system_instruction: str) -> str:
        call = self.generator.complete(prompt, system_instruction)
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"no answer within {self._timeout:.0f}s") from exc

    async def generate(self, prompt: str, system_instruction: str = SYSTEM_INSTRUCTION) -> str:
        """
        Return the generated text.

        Raises:
            FatalGenerationError: on credential / quota errors, without retrying.
            GenerationFailed: once every attempt failed; chained from the last error.
        """
        max_attempts = self.policy.max_attempts
        last_error: GenerationError | None = None
        try:
            for attempt in range(1, max_attempts + 1):
                delay = self.policy.delay_before(attempt)
                if delay > 0:
                    logger.info("Retrying generation in %.0fs (attempt %d/%d)", delay, attempt, max_attempts)
                    await self._sleep(delay)

                self._set_attempt(attempt)
                try:
                    text = await self._call(prompt, system_instruction)
                except GenerationError as exc:
                    if not self.policy.should_retry(exc):
                        logger.warning("Generation aborted on attempt %d: %s", attempt, exc)
                        raise
                    logger.warning("Generation attempt %d/%d failed: %s", attempt, max_attempts, exc)
                    last_error = exc
                    continue

                if not text or not text.strip():
                    logger.warning("Generation attempt %d/%d returned no text", attempt, max_attempts)
                    last_error = MalformedResponse("empty response")
                    continue

                return text

            raise GenerationFailed(
                f"no usable response after {max_attempts} attempts", last_error
            ) from last_error
        finally:
            self._set_attempt(1)
