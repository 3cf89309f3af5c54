"""Limits and environment rules for comparison worker processes."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

from screenshot_compare.config import Settings

# Interpreter hooks that would drop a worker into a debugger or an
# interactive prompt instead of answering the job.
_DEFAULT_BLOCKED_ENV_VARS: frozenset[str] = frozenset({
    "PYTHONINSPECT",
    "PYTHONBREAKPOINT",
    "PYTHONSTARTUP",
    "PYDEVD_LOAD_VALUES_ASYNC",
    "DEBUGPY_LAUNCHER_PORT",
})


@dataclass(frozen=True)
class WorkerPolicy:
    """Immutable policy governing one comparison worker run.

    The default timeout of 2.5 seconds is half of a typical 5 second test
    timeout, leaving the calling test room to report the failure.
    """

    timeout_seconds: float = 2.5
    python_executable: str = field(default_factory=lambda: sys.executable)
    max_reply_bytes: int = 64 * 1024
    blocked_env_vars: frozenset[str] = _DEFAULT_BLOCKED_ENV_VARS

    def __post_init__(self) -> None:
        """Validate invariants that must never be violated."""
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")
        if self.max_reply_bytes <= 0:
            raise ValueError("max_reply_bytes must be a positive integer.")
        if not self.python_executable:
            raise ValueError("python_executable must not be empty.")

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkerPolicy:
        """Build a policy from engine :class:`Settings`."""
        return cls(
            timeout_seconds=settings.worker_timeout_seconds,
            python_executable=settings.worker_python or sys.executable,
        )

    def filter_env(self, env: dict[str, str]) -> dict[str, str]:
        """Return a copy of *env* without the blocked variables."""
        return {
            key: value
            for key, value in env.items()
            if key.upper() not in self.blocked_env_vars
        }
