"""Error taxonomy for the structuring pipeline."""

from __future__ import annotations


class StructuringError(RuntimeError):
    """Base class for every error the structuring pipeline can surface."""


class InvalidInput(StructuringError):
    """Transcription is empty or whitespace only; nothing to structure."""


class TransientServiceUnavailable(StructuringError):
    """Structuring model overloaded or unavailable after every retry."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class ModelInvocationFailed(StructuringError):
    """Non-transient invocation error (auth, bad request, quota, timeout)."""


class OutputTruncated(StructuringError):
    """The model stopped on its output-size ceiling; the JSON is incomplete."""


class _RawOutputError(StructuringError):
    def __init__(self, message: str, raw_snippet: str = ""):
        super().__init__(message)
        self.raw_snippet = raw_snippet


class EmptyModelOutput(_RawOutputError):
    """The model returned no text at all."""


class MalformedModelOutput(_RawOutputError):
    """The model returned text that does not contain a parsable JSON object."""

    def __init__(self, message: str, raw_snippet: str = "", parse_error: str = ""):
        super().__init__(message, raw_snippet)
        self.parse_error = parse_error

    def __str__(self) -> str:
        base = super().__str__()
        if self.parse_error:
            return f"{base} ({self.parse_error})"
        return base
