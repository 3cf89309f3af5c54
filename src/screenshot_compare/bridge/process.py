"""Parent side of the comparison worker channel."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from pathlib import Path

from screenshot_compare.bridge.policy import WorkerPolicy
from screenshot_compare.config import Settings
from screenshot_compare.errors import SpawnError, WorkerError, WorkerTimeoutError
from screenshot_compare.models.screenshot import PixelMatchInput

logger = logging.getLogger(__name__)

# Maximum bytes of worker stderr kept for error messages.
_MAX_STDERR_BYTES: int = 8 * 1024


def _tail(data: bytes, limit: int = _MAX_STDERR_BYTES) -> str:
    if len(data) > limit:
        data = data[-limit:]
    return data.decode("utf-8", errors="replace").strip()


def parse_reply(line: bytes) -> int:
    """Decode one reply line from a worker into a mismatch count.

    Raises:
        WorkerError: If the line is an error reply or not a valid count.
    """
    try:
        reply = json.loads(line)
    except ValueError as exc:
        raise WorkerError(f"worker sent malformed reply: {line[:200]!r}") from exc

    if isinstance(reply, dict) and "error" in reply:
        raise WorkerError(f"worker reported failure: {reply['error']}")
    if isinstance(reply, bool) or not isinstance(reply, (int, float)):
        raise WorkerError(f"worker reply is not a number: {reply!r}")
    if isinstance(reply, float) and not reply.is_integer():
        raise WorkerError(f"worker reply is not an integral pixel count: {reply!r}")
    if reply < 0:
        raise WorkerError(f"worker reply is negative: {reply!r}")
    return int(reply)


class WorkerBridge:
    """Runs one comparison job in a separate Python process.

    Each call to :meth:`compare` spawns a fresh worker, sends it exactly one
    job, waits for exactly one reply within the policy's deadline, and
    **unconditionally** kills and reaps the process before returning or
    raising.
    """

    def __init__(self, policy: WorkerPolicy | None = None) -> None:
        self._policy = policy or WorkerPolicy()

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkerBridge:
        return cls(WorkerPolicy.from_settings(settings))

    @property
    def policy(self) -> WorkerPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def compare(self, worker_path: Path | str, job: PixelMatchInput) -> int:
        """Run *job* in the worker script at *worker_path*.

        Returns
        -------
        int
            Mismatched pixel count reported by the worker.

        Raises
        ------
        SpawnError
            The script does not exist or the process could not be started.
        WorkerError
            The worker reported a failure, replied with garbage, or exited
            without replying.
        WorkerTimeoutError
            No reply arrived within ``policy.timeout_seconds``.
        """
        policy = self._policy
        worker_path = Path(worker_path)
        if not worker_path.is_file():
            raise SpawnError(f"comparison worker not found: {worker_path}")

        start_time = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                policy.python_executable,
                str(worker_path),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=policy.filter_env(dict(os.environ)),
                cwd=os.getcwd(),
                limit=policy.max_reply_bytes,
            )
        except OSError as exc:
            raise SpawnError(f"failed to start comparison worker {worker_path}: {exc}") from exc

        logger.debug("Worker started: pid=%s script=%s", proc.pid, worker_path)

        stderr_task = asyncio.create_task(proc.stderr.read())
        try:
            remaining = policy.timeout_seconds - (time.monotonic() - start_time)
            try:
                count = await asyncio.wait_for(
                    self._exchange(proc, job, stderr_task),
                    timeout=max(remaining, 0),
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Worker pid=%s timed out after %.3fs",
                    proc.pid,
                    policy.timeout_seconds,
                )
                raise WorkerTimeoutError(policy.timeout_seconds) from None
        finally:
            await _kill(proc)
            stderr_task.cancel()
            try:
                await stderr_task
            except (asyncio.CancelledError, OSError):
                pass

        logger.debug(
            "Worker pid=%s replied %d in %.3fs",
            proc.pid,
            count,
            time.monotonic() - start_time,
        )
        return count

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _exchange(
        self,
        proc: asyncio.subprocess.Process,
        job: PixelMatchInput,
        stderr_task: asyncio.Task[bytes],
    ) -> int:
        """Send *job*, then read and decode the single reply line."""
        try:
            proc.stdin.write(job.to_json().encode("utf-8") + b"\n")
            await proc.stdin.drain()
            proc.stdin.close()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise WorkerError(
                f"failed to send job to worker: {exc}",
                stderr=await _drain_stderr(proc, stderr_task),
            ) from exc

        try:
            line = await proc.stdout.readline()
        except ValueError as exc:
            # StreamReader raises ValueError when the line exceeds its limit.
            raise WorkerError(
                f"worker reply exceeds {self._policy.max_reply_bytes} bytes"
            ) from exc

        if line == b"":
            returncode = await proc.wait()
            raise WorkerError(
                f"worker exited with code {returncode} without replying",
                stderr=await _drain_stderr(proc, stderr_task),
            )

        try:
            return parse_reply(line)
        except WorkerError as exc:
            exc.stderr = await _drain_stderr(proc, stderr_task)
            raise


async def _drain_stderr(
    proc: asyncio.subprocess.Process,
    stderr_task: asyncio.Task[bytes],
) -> str:
    """Return the worker's stderr once it has exited, without waiting on a live one."""
    if proc.returncode is None:
        await _kill(proc)
    try:
        return _tail(await stderr_task)
    except OSError:
        return ""


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Force-kill *proc* if still running and reap it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            # Already exited between the check and the kill.
            pass
    await proc.wait()
