"""Error types raised by the comparison engine."""

from __future__ import annotations


class ScreenshotCompareError(Exception):
    """Base class for every error raised by :mod:`screenshot_compare`."""


class InvalidInputError(ScreenshotCompareError, ValueError):
    """The caller supplied an unusable description or emulation config."""


class SpawnError(ScreenshotCompareError):
    """The comparison worker process could not be started."""


class WorkerError(ScreenshotCompareError):
    """The worker reported a failure or the channel to it broke.

    Attributes:
        stderr: Tail of the worker's standard error, if any was captured.
    """

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n--- worker stderr ---\n{self.stderr}"
        return base


class WorkerTimeoutError(ScreenshotCompareError, TimeoutError):
    """The worker did not reply within the configured bound."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"comparison worker timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds
