"""Visual-regression comparison engine for screenshot tests.

Public API:

* :func:`compare_screenshot` -- store a capture, compare it with its master
  image, and record the result.
* :class:`ScreenshotBuildData`, :class:`EmulateConfig`, :class:`Viewport`,
  :class:`ScreenshotDiff` -- inputs and outputs of a comparison.
* :class:`WorkerBridge`, :class:`WorkerPolicy` -- time-bounded worker
  processes that count mismatched pixels.
* :class:`DiffCache` -- per-build cache of mismatch counts.
"""

from screenshot_compare.bridge import WorkerBridge, WorkerPolicy
from screenshot_compare.cache import DiffCache
from screenshot_compare.compare import compare_screenshot
from screenshot_compare.errors import (
    InvalidInputError,
    ScreenshotCompareError,
    SpawnError,
    WorkerError,
    WorkerTimeoutError,
)
from screenshot_compare.identity import compute_cache_key, compute_screenshot_id
from screenshot_compare.image_store import ImageStore
from screenshot_compare.models import (
    EmulateConfig,
    PixelMatchInput,
    Screenshot,
    ScreenshotBuildData,
    ScreenshotDiff,
    Viewport,
)

__all__ = [
    "DiffCache",
    "EmulateConfig",
    "ImageStore",
    "InvalidInputError",
    "PixelMatchInput",
    "Screenshot",
    "ScreenshotBuildData",
    "ScreenshotCompareError",
    "ScreenshotDiff",
    "SpawnError",
    "Viewport",
    "WorkerBridge",
    "WorkerError",
    "WorkerPolicy",
    "WorkerTimeoutError",
    "compare_screenshot",
    "compute_cache_key",
    "compute_screenshot_id",
]
