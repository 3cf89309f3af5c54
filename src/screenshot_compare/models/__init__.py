"""Core data models for the screenshot comparison engine."""

from screenshot_compare.models.build import ScreenshotBuildData
from screenshot_compare.models.emulate import EmulateConfig, Viewport
from screenshot_compare.models.screenshot import PixelMatchInput, Screenshot, ScreenshotDiff

__all__ = [
    "EmulateConfig",
    "PixelMatchInput",
    "Screenshot",
    "ScreenshotBuildData",
    "ScreenshotDiff",
    "Viewport",
]
