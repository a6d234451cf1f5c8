"""Error taxonomy for the analysis engine.

Two layers:
- generation errors, raised by the AI adapter and consumed by the retry loop;
- analysis errors, the closed set a caller (API route, CLI) ever sees.
"""

from centered.models.analysis import AnalysisRecord


# ─── Generator layer ──────────────────────────────────────────────────────────

class GenerationError(Exception):
    """Base class for failures of the text-generation service."""


class RetryableGenerationError(GenerationError):
    """Transient failure: the call may succeed if attempted again."""


class FatalGenerationError(GenerationError):
    """Configuration-class failure: retrying cannot help."""


class TransportError(RetryableGenerationError):
    """Network failure, timeout or 5xx from the provider."""


class RateLimited(RetryableGenerationError):
    pass


class MalformedResponse(RetryableGenerationError):
    """Provider answered without usable text."""


class InvalidCredentials(FatalGenerationError):
    pass


class QuotaExceeded(FatalGenerationError):
    pass


class GenerationFailed(GenerationError):
    """All attempts were used up."""

    def __init__(self, message: str, last_error: GenerationError | None = None):
        super().__init__(message)
        self.last_error = last_error


# ─── Caller layer ─────────────────────────────────────────────────────────────

class AnalysisError(Exception):
    """Base class for errors surfaced to the caller. ``message`` is user-safe."""
    code = "analysis_error"
    message = "The analysis could not be completed."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotEligible(AnalysisError):
    code = "not_eligible"

    def __init__(self, day_count: int, minimum_required: int, message: str):
        self.day_count = day_count
        self.minimum_required = minimum_required
        super().__init__(message)


class AlreadyAnalyzed(AnalysisError):
    code = "already_analyzed"
    message = "An analysis already exists for this period."

    def __init__(self, record: AnalysisRecord):
        self.record = record
        super().__init__()


class ServiceUnavailable(AnalysisError):
    code = "service_unavailable"
    message = "The analysis service is unavailable right now. Please try again."


class ServiceMisconfigured(AnalysisError):
    code = "service_misconfigured"
    message = "The analysis service is not available at the moment."
