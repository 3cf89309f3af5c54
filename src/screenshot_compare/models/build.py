"""Per-build context shared by every comparison in one test run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from screenshot_compare.cache import DiffCache


@dataclass(frozen=True)
class ScreenshotBuildData:
    """Directories, master lookup, and thresholds for one test run.

    Constructed once per run by the caller.  The comparison engine never
    rebinds any field; the only state it mutates is :attr:`cache`.

    Attributes
    ----------
    root_dir:
        Project root; test paths are recorded relative to it.
    images_dir:
        Directory holding content-addressed ``<md5>.png`` images.
    current_build_dir:
        Directory receiving one ``<id>.json`` record per screenshot.
    pixelmatch_module_path:
        Python script run as the comparison worker.
    master_screenshots:
        Screenshot id -> image filename from the previous master build.
    cache:
        Mismatch counts keyed by :func:`~screenshot_compare.identity.compute_cache_key`.
    update_master:
        When set, captures become the new baseline and nothing is compared.
    """

    root_dir: Path
    images_dir: Path
    current_build_dir: Path
    pixelmatch_module_path: Path
    master_screenshots: dict[str, str] = field(default_factory=dict)
    cache: DiffCache = field(default_factory=DiffCache)
    allowable_mismatched_pixels: int | None = None
    allowable_mismatched_ratio: float | None = None
    update_master: bool = False

    def __post_init__(self) -> None:
        """Coerce directory arguments given as strings to :class:`Path`."""
        for name in ("root_dir", "images_dir", "current_build_dir", "pixelmatch_module_path"):
            value = getattr(self, name)
            if not isinstance(value, Path):
                object.__setattr__(self, name, Path(value))
        if self.allowable_mismatched_pixels is not None and self.allowable_mismatched_pixels < 0:
            raise ValueError("allowable_mismatched_pixels must not be negative.")
        if self.allowable_mismatched_ratio is not None and not 0 <= self.allowable_mismatched_ratio <= 1:
            raise ValueError("allowable_mismatched_ratio must be between 0 and 1.")
