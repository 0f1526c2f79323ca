"""Exception types raised across the pipeline."""

from __future__ import annotations

STREAM_INTERRUPTED_MESSAGE = "Response interrupted — document unchanged"


class ConfigurationError(RuntimeError):
    """A required external service is not configured."""


class StreamInterruptedError(Exception):
    """The response stream ended while a document block was still open."""

    def __init__(self, message: str = STREAM_INTERRUPTED_MESSAGE) -> None:
        super().__init__(message)


class CanvasKilledError(RuntimeError):
    """A mutation was attempted on a validation canvas that has been killed."""


class GenerationError(RuntimeError):
    """An LLM step failed or paused before producing output that must be stored."""
