"""Claude text generation, with provider errors mapped to the engine taxonomy."""

import logging
import os
from typing import Optional

import anthropic

from .errors import (
    GenerationError,
    InvalidCredentials,
    MalformedResponse,
    QuotaExceeded,
    RateLimited,
    TransportError,
)

logger = logging.getLogger(__name__)

CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-haiku-4-5-20251001")
MAX_TOKENS = int(os.getenv("ANALYZER_MAX_TOKENS", "600"))
TEMPERATURE = 0.4


def _is_out_of_credit(exc: anthropic.APIStatusError) -> bool:
    return "credit balance is too low" in str(exc).lower()


def map_provider_error(exc: anthropic.APIError) -> GenerationError:
    """Translate an Anthropic SDK error into a generation error."""
    if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return InvalidCredentials(str(exc))
    if isinstance(exc, anthropic.RateLimitError):
        return RateLimited(str(exc))
    if isinstance(exc, anthropic.BadRequestError):
        if _is_out_of_credit(exc):
            return QuotaExceeded(str(exc))
        return MalformedResponse(str(exc))
    if isinstance(exc, anthropic.APIConnectionError):
        # includes APITimeoutError
        return TransportError(str(exc))
    if isinstance(exc, anthropic.APIStatusError):
        if exc.status_code >= 500:
            return TransportError(str(exc))
        return MalformedResponse(str(exc))
    return TransportError(str(exc))


def _extract_text(message) -> str:
    parts = [
        getattr(block, "text", "")
        for block in (message.content or [])
        if getattr(block, "type", "text") == "text"
    ]
    return "".join(p for p in parts if p)


class ClaudeGenerator:
    """``complete(prompt, system_instruction)`` over the Anthropic Messages API."""

    def __init__(
        self,
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: str = CLAUDE_MODEL,
        max_tokens: int = MAX_TOKENS,
    ):
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        # Created lazily so the app boots without ANTHROPIC_API_KEY
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(max_retries=0)
        return self._client

    async def complete(self, prompt: str, system_instruction: str) -> str:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=TEMPERATURE,
                system=system_instruction,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            mapped = map_provider_error(exc)
            logger.warning("Claude call failed (%s): %s", type(mapped).__name__, exc)
            raise mapped from exc

        text = _extract_text(message)
        if not text.strip():
            raise MalformedResponse("no text content in response")
        logger.info("Claude response received (%d chars)", len(text))
        return text
