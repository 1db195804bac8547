from __future__ import annotations


class DelayControlError(Exception):
    """Base class for errors raised while reading or writing render delays."""


class ObsCallError(DelayControlError):
    """A request to OBS failed: not connected, rejected, transport error or timeout."""


class MissingFieldError(DelayControlError):
    """A required request field was absent."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing {field}.")
        self.field = field


class InvalidDelayError(DelayControlError):
    """The requested delay is not a finite number."""


class MutationError(DelayControlError):
    """Writing a new delay to OBS failed."""

    def __init__(self, source_name: str, delay_ms: float) -> None:
        super().__init__(f"Failed to set delay {delay_ms} ms on {source_name!r}")
        self.source_name = source_name
        self.delay_ms = delay_ms
