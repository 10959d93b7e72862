"""
Failure taxonomy for one analysis run.

Pipeline-level errors (subclasses of PipelineError) are fatal for a run and are
surfaced unchanged to the caller. Backend errors are cascade-internal: they are
recorded per attempt and only reach the caller wrapped in AllBackendsExhausted.
"""
from typing import Any


class PipelineError(Exception):
    """Base for the four caller-visible failure kinds."""

    kind = "pipeline_error"


class AllBackendsExhausted(PipelineError):
    """Every backend in the cascade failed or timed out."""

    kind = "all_backends_exhausted"

    def __init__(self, attempts: list[Any]):
        self.attempts = list(attempts)
        names = ", ".join(f"{a.backend}: {a.error}" for a in self.attempts) or "no backends configured"
        super().__init__(f"All {len(self.attempts)} backend(s) failed ({names})")


class NoStructuredPayload(PipelineError):
    """No opening/closing bracket pair of the expected kind was found."""

    kind = "no_structured_payload"

    def __init__(self, expected: str, text: str):
        self.expected = expected
        self.text = text
        super().__init__(f"No JSON {expected} found in response ({len(text or '')} chars)")


class UnrecoverablePayload(PipelineError):
    """A bracketed region was found but stayed invalid after sanitization."""

    kind = "unrecoverable_payload"

    def __init__(self, expected: str, text: str, error: Exception | str | None = None):
        self.expected = expected
        self.text = text
        self.error = error
        detail = f": {error}" if error else ""
        super().__init__(f"Could not parse JSON {expected} from response{detail}")


class EmptySourceText(PipelineError):
    """Upstream text is absent or too short to analyze."""

    kind = "empty_source_text"

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(f"Source text too short ({length} chars, need at least {minimum})")


class BackendError(Exception):
    """One backend call failed. Recorded on the attempt; never raised past the cascade."""


class EmptyBackendResponse(BackendError):
    """Backend returned successfully but with no text."""


class DetachedLimitReached(BackendError):
    """Too many timed-out sync calls are still running; attempt refused without calling the backend."""
