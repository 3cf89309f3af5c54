"""Tests for the comparison worker bridge."""

from __future__ import annotations

import asyncio
import json
import os
import sys
import time
from pathlib import Path

import pytest

from screenshot_compare.bridge import WorkerBridge, WorkerPolicy, parse_reply
from screenshot_compare.config import Settings
from screenshot_compare.errors import SpawnError, WorkerError, WorkerTimeoutError

WORKERS_DIR = Path(__file__).parent / "workers"


# ======================================================================
# WorkerPolicy
# ======================================================================


class TestWorkerPolicy:
    def test_default_policy(self):
        policy = WorkerPolicy()
        assert policy.timeout_seconds == 2.5
        assert policy.python_executable == sys.executable
        assert policy.max_reply_bytes == 64 * 1024

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValueError, match="timeout_seconds"):
            WorkerPolicy(timeout_seconds=timeout)

    def test_max_reply_bytes_must_be_positive(self):
        with pytest.raises(ValueError, match="max_reply_bytes"):
            WorkerPolicy(max_reply_bytes=0)

    def test_frozen_dataclass(self):
        policy = WorkerPolicy()
        with pytest.raises(AttributeError):
            policy.timeout_seconds = 10  # type: ignore[misc]

    def test_from_settings(self):
        policy = WorkerPolicy.from_settings(
            Settings(worker_timeout_seconds=4.0, worker_python="/opt/python")
        )
        assert policy.timeout_seconds == 4.0
        assert policy.python_executable == "/opt/python"

    def test_from_settings_defaults_to_running_interpreter(self):
        policy = WorkerPolicy.from_settings(Settings(worker_python=""))
        assert policy.python_executable == sys.executable

    def test_filter_env_drops_debug_hooks(self):
        env = {"PATH": "/bin", "PYTHONBREAKPOINT": "pdb.set_trace", "pythoninspect": "1"}
        assert WorkerPolicy().filter_env(env) == {"PATH": "/bin"}


# ======================================================================
# parse_reply
# ======================================================================


class TestParseReply:
    @pytest.mark.parametrize("line, expected", [(b"42\n", 42), (b"0", 0), (b"17.0\n", 17)])
    def test_valid_counts(self, line, expected):
        assert parse_reply(line) == expected

    @pytest.mark.parametrize(
        "line, match",
        [
            (b"nope", "malformed"),
            (b'"42"', "not a number"),
            (b"true", "not a number"),
            (b"1.5", "not an integral"),
            (b"-3", "negative"),
            (b'{"error": "bad png"}', "bad png"),
        ],
    )
    def test_invalid_replies(self, line, match):
        with pytest.raises(WorkerError, match=match):
            parse_reply(line)


# ======================================================================
# WorkerBridge with real worker processes
# ======================================================================


class TestWorkerBridge:
    @pytest.mark.asyncio
    async def test_returns_worker_count(self, pixelmatch_job, monkeypatch):
        monkeypatch.setenv("WORKER_REPLY", "42")
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        count = await bridge.compare(WORKERS_DIR / "reply_worker.py", pixelmatch_job)

        assert count == 42

    @pytest.mark.asyncio
    async def test_worker_receives_job(self, pixelmatch_job, monkeypatch, tmp_path):
        job_file = tmp_path / "job.json"
        monkeypatch.setenv("WORKER_JOB_FILE", str(job_file))
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        await bridge.compare(WORKERS_DIR / "reply_worker.py", pixelmatch_job)

        received = json.loads(job_file.read_text())
        assert received == {
            "imageAPath": pixelmatch_job.image_a_path,
            "imageBPath": pixelmatch_job.image_b_path,
            "width": 100,
            "height": 100,
            "pixelmatchThreshold": 0.1,
        }

    @pytest.mark.asyncio
    async def test_worker_reported_failure(self, pixelmatch_job):
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        with pytest.raises(WorkerError, match="RuntimeError: cannot decode") as info:
            await bridge.compare(WORKERS_DIR / "failing_worker.py", pixelmatch_job)
        assert "Traceback" in info.value.stderr

    @pytest.mark.asyncio
    async def test_worker_exit_without_reply(self, pixelmatch_job):
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        with pytest.raises(WorkerError, match="exited with code 3") as info:
            await bridge.compare(WORKERS_DIR / "crashing_worker.py", pixelmatch_job)
        assert "segmentation fault" in info.value.stderr

    @pytest.mark.asyncio
    async def test_garbage_reply(self, pixelmatch_job):
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        with pytest.raises(WorkerError, match="malformed reply"):
            await bridge.compare(WORKERS_DIR / "garbage_worker.py", pixelmatch_job)

    @pytest.mark.asyncio
    async def test_blank_reply_is_malformed(self, pixelmatch_job):
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        start = time.monotonic()
        with pytest.raises(WorkerError, match="malformed reply"):
            await bridge.compare(WORKERS_DIR / "blank_line_worker.py", pixelmatch_job)
        assert time.monotonic() - start < 10

    @pytest.mark.asyncio
    async def test_missing_worker_script(self, pixelmatch_job, tmp_path):
        with pytest.raises(SpawnError, match="not found"):
            await WorkerBridge().compare(tmp_path / "missing.py", pixelmatch_job)

    @pytest.mark.asyncio
    async def test_missing_interpreter(self, pixelmatch_job, tmp_path):
        bridge = WorkerBridge(WorkerPolicy(python_executable=str(tmp_path / "no-python")))

        with pytest.raises(SpawnError, match="failed to start"):
            await bridge.compare(WORKERS_DIR / "reply_worker.py", pixelmatch_job)

    @pytest.mark.asyncio
    async def test_timeout_within_bound(self, pixelmatch_job):
        timeout = 0.5
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=timeout))

        start = time.monotonic()
        with pytest.raises(WorkerTimeoutError) as info:
            await bridge.compare(WORKERS_DIR / "silent_worker.py", pixelmatch_job)
        elapsed = time.monotonic() - start

        assert info.value.timeout_seconds == timeout
        assert isinstance(info.value, TimeoutError)
        assert "0.5s" in str(info.value)
        assert elapsed >= timeout
        assert elapsed < timeout + 0.75

    @pytest.mark.asyncio
    async def test_timed_out_worker_is_killed(self, pixelmatch_job, monkeypatch, tmp_path):
        pid_file = tmp_path / "worker.pid"
        monkeypatch.setenv("WORKER_PID_FILE", str(pid_file))
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=3))

        with pytest.raises(WorkerTimeoutError):
            await bridge.compare(WORKERS_DIR / "silent_worker.py", pixelmatch_job)

        pid = int(pid_file.read_text())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    @pytest.mark.asyncio
    async def test_cancelled_comparison_kills_worker(self, pixelmatch_job, monkeypatch, tmp_path):
        pid_file = tmp_path / "worker.pid"
        monkeypatch.setenv("WORKER_PID_FILE", str(pid_file))
        bridge = WorkerBridge(WorkerPolicy(timeout_seconds=30))

        task = asyncio.create_task(
            bridge.compare(WORKERS_DIR / "silent_worker.py", pixelmatch_job)
        )
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        pid = int(pid_file.read_text())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)
