"""
Error types raised by the extraction pipeline.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class InputError(PipelineError):
    """Run requested with nothing to analyse."""


class PipelineBusyError(InputError):
    """A run or clear was requested while a run is still in progress."""


class RateLimitError(PipelineError):
    """The model service asked us to slow down (HTTP 429 / quota)."""


class ModelError(PipelineError):
    """
    Non-retryable model failure, or retries exhausted.

    The original exception is kept on ``cause`` so callers can inspect it.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ParseError(PipelineError):
    """Accumulated result cannot be reshaped into table rows."""


class IngestionError(PipelineError):
    """Source file has no recognisable columns or could not be read."""
