"""
Engine exceptions.

NotFound and degenerate-computation outcomes are returned as ``None`` or
empty collections, never raised. Only rejected input and configuration
problems surface as exceptions.
"""


class TrendwatchError(Exception):
    """Base class for engine errors."""

    pass


class InvalidSampleError(TrendwatchError):
    """
    Raised (or returned in a RecordResult) when a sample fails structural validation.

    Attributes:
        sample_id: Id of the rejected sample, if it had one
        reason: Why it was rejected
    """

    def __init__(self, reason: str, sample_id: str | None = None):
        self.reason = reason
        self.sample_id = sample_id
        prefix = f"Invalid sample {sample_id!r}" if sample_id else "Invalid sample"
        super().__init__(f"{prefix}: {reason}")
