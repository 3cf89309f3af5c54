"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from screenshot_compare.cache import DiffCache
from screenshot_compare.models import EmulateConfig, PixelMatchInput, ScreenshotBuildData, Viewport

WORKERS_DIR = Path(__file__).parent / "workers"


class RecordingBridge:
    """Stands in for WorkerBridge and records every job it receives."""

    def __init__(self, reply: int = 42) -> None:
        self.reply = reply
        self.calls: list[tuple[Path, PixelMatchInput]] = []

    async def compare(self, worker_path: Path, job: PixelMatchInput) -> int:
        self.calls.append((Path(worker_path), job))
        return self.reply


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def viewport() -> Viewport:
    return Viewport(
        width=100,
        height=100,
        device_scale_factor=1,
        has_touch=False,
        is_mobile=False,
    )


@pytest.fixture
def emulate_config(viewport: Viewport) -> EmulateConfig:
    return EmulateConfig(user_agent="UA1", viewport=viewport)


@pytest.fixture
def build_dirs(tmp_path: Path) -> dict[str, Path]:
    root = tmp_path / "project"
    dirs = {
        "root_dir": root,
        "images_dir": root / "screenshot" / "images",
        "current_build_dir": root / "screenshot" / "builds" / "current",
    }
    for path in dirs.values():
        path.mkdir(parents=True, exist_ok=True)
    return dirs


@pytest.fixture
def make_build_data(build_dirs: dict[str, Path]):
    """Factory for ScreenshotBuildData rooted in a temporary project."""

    def _make(**overrides) -> ScreenshotBuildData:
        kwargs = {
            **build_dirs,
            "pixelmatch_module_path": WORKERS_DIR / "reply_worker.py",
            "master_screenshots": {},
            "cache": DiffCache(),
            "allowable_mismatched_pixels": 100,
            "allowable_mismatched_ratio": 0.05,
        }
        kwargs.update(overrides)
        return ScreenshotBuildData(**kwargs)

    return _make


@pytest.fixture
def recording_bridge() -> RecordingBridge:
    return RecordingBridge()


@pytest.fixture
def pixelmatch_job(tmp_path: Path) -> PixelMatchInput:
    return PixelMatchInput(
        image_a_path=str(tmp_path / "a.png"),
        image_b_path=str(tmp_path / "b.png"),
        width=100,
        height=100,
        pixelmatch_threshold=0.1,
    )
