"""Compare a captured screenshot against its master image.

:func:`compare_screenshot` is the single entry point used by the test
runner once per visual assertion.  Many calls may be in flight at once
within one build; they share only the build's master lookup and diff cache.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePath

from screenshot_compare.bridge import WorkerBridge
from screenshot_compare.config import get_settings
from screenshot_compare.errors import InvalidInputError
from screenshot_compare.identity import compute_cache_key, compute_screenshot_id
from screenshot_compare.image_store import ImageStore
from screenshot_compare.models.build import ScreenshotBuildData
from screenshot_compare.models.emulate import EmulateConfig
from screenshot_compare.models.screenshot import PixelMatchInput, Screenshot, ScreenshotDiff
from screenshot_compare.persistence import write_screenshot_data

logger = logging.getLogger(__name__)


def normalize_test_path(root_dir: Path, test_path: str | os.PathLike[str]) -> str:
    """Return *test_path* relative to *root_dir* with forward slashes."""
    relative = os.path.relpath(os.fspath(test_path), os.fspath(root_dir))
    return PurePath(relative).as_posix()


async def compare_screenshot(
    emulate_config: EmulateConfig,
    build_data: ScreenshotBuildData,
    screenshot: bytes,
    description: str,
    width: int,
    height: int,
    test_path: str | os.PathLike[str] | None = None,
    pixelmatch_threshold: float | None = None,
    *,
    bridge: WorkerBridge | None = None,
) -> ScreenshotDiff:
    """Store *screenshot*, compare it with its master, and record the result.

    1. Store the capture content-addressed.
    2. Normalise the test path.
    3. Derive the screenshot id.
    4. Build the record (no mismatch yet).
    5. In update-master mode, or without a master, record and return.
    6. Identical image names need no comparison.
    7. Otherwise use the cached mismatch count or ask the worker.
    8. Record and return.

    The record is written only after every step succeeded.  When
    *pixelmatch_threshold* is omitted the configured
    ``SCREENSHOT_PIXELMATCH_THRESHOLD`` is used.

    Raises
    ------
    InvalidInputError
        Blank description, a threshold outside [0, 1], or a comparison is
        needed but the viewport is missing or has no natural pixel size.
    OSError
        The image or record could not be written.
    SpawnError, WorkerError, WorkerTimeoutError
        The comparison worker failed.
    """
    if pixelmatch_threshold is None:
        pixelmatch_threshold = get_settings().pixelmatch_threshold
    if not 0 <= pixelmatch_threshold <= 1:
        raise InvalidInputError(
            f"pixelmatch threshold must be between 0 and 1, got {pixelmatch_threshold!r}"
        )

    # ---- 1. Store the current image ------------------------------------------
    store = ImageStore(build_data.images_dir)
    current_image = await store.store(screenshot)

    # ---- 2. Normalise the test path ------------------------------------------
    normalized_path: str | None = None
    if test_path:
        normalized_path = normalize_test_path(build_data.root_dir, test_path)

    # ---- 3. Derive the id -----------------------------------------------------
    screenshot_id = compute_screenshot_id(description, emulate_config)

    # ---- 4. Build the record ---------------------------------------------------
    viewport = emulate_config.viewport
    echoed = {
        "device": emulate_config.device,
        "user_agent": emulate_config.user_agent,
        "width": width,
        "height": height,
        "device_scale_factor": viewport.device_scale_factor if viewport else None,
        "has_touch": viewport.has_touch if viewport else None,
        "is_landscape": viewport.is_landscape if viewport else None,
        "is_mobile": viewport.is_mobile if viewport else None,
        "test_path": normalized_path,
    }
    record = Screenshot(
        id=screenshot_id,
        image=current_image,
        description=description,
        diff=ScreenshotDiff(
            id=screenshot_id,
            description=description,
            image_a=current_image,
            image_b=current_image,
            mismatched_pixels=0,
            allowable_mismatched_pixels=build_data.allowable_mismatched_pixels,
            allowable_mismatched_ratio=build_data.allowable_mismatched_ratio,
            **echoed,
        ),
        **echoed,
    )
    diff = record.diff

    # ---- 5. Nothing to compare against ---------------------------------------
    if build_data.update_master:
        await write_screenshot_data(build_data.current_build_dir, record)
        logger.debug("Screenshot %s recorded as new master", screenshot_id)
        return diff

    master_image = build_data.master_screenshots.get(screenshot_id)
    if not master_image:
        await write_screenshot_data(build_data.current_build_dir, record)
        logger.info("No master screenshot for %s (%r)", screenshot_id, description)
        return diff

    diff.image_a = master_image

    # ---- 6-7. Compare only when the content differs --------------------------
    if diff.image_a != diff.image_b:
        diff.cache_key = compute_cache_key(diff.image_a, diff.image_b, pixelmatch_threshold)

        cached = build_data.cache.lookup(diff.cache_key)
        if cached is not None:
            diff.mismatched_pixels = cached
            logger.debug("Diff cache hit %s for %s: %d", diff.cache_key, screenshot_id, cached)
        else:
            if viewport is None:
                raise InvalidInputError(
                    f"screenshot {screenshot_id} needs a viewport to be compared"
                )
            if viewport.natural_width <= 0 or viewport.natural_height <= 0:
                raise InvalidInputError(
                    f"screenshot {screenshot_id} viewport {viewport.width}x{viewport.height}"
                    f" at scale {viewport.device_scale_factor:g} has no natural pixel size"
                )
            job = PixelMatchInput(
                image_a_path=str(store.path_for(diff.image_a)),
                image_b_path=str(store.path_for(diff.image_b)),
                width=viewport.natural_width,
                height=viewport.natural_height,
                pixelmatch_threshold=pixelmatch_threshold,
            )
            if bridge is None:
                bridge = WorkerBridge.from_settings(get_settings())
            mismatched = await bridge.compare(build_data.pixelmatch_module_path, job)
            build_data.cache.store(diff.cache_key, mismatched)
            diff.mismatched_pixels = mismatched

        logger.info(
            "Screenshot %s (%r): %d mismatched pixels",
            screenshot_id,
            description,
            diff.mismatched_pixels,
        )

    # ---- 8. Record the result -------------------------------------------------
    await write_screenshot_data(build_data.current_build_dir, record)
    return diff
