"""Screenshot, ScreenshotDiff, and PixelMatchInput models."""

from __future__ import annotations

from pydantic import Field

from screenshot_compare.models.base import CamelModel


class ScreenshotDiff(CamelModel):
    """Outcome of comparing a capture against its master image."""

    id: str = Field(
        description="Screenshot id, identical to the parent screenshot's id.",
    )
    description: str = Field(
        alias="desc",
        description="Free-form test description the id was derived from.",
    )
    image_a: str = Field(
        description="Baseline image filename; equals image_b when no master exists.",
    )
    image_b: str = Field(
        description="Filename of the current capture.",
    )
    mismatched_pixels: int = Field(
        default=0,
        ge=0,
        description="Number of pixels that differ beyond the pixelmatch threshold.",
    )
    device: str | None = None
    user_agent: str | None = None
    width: int | None = None
    height: int | None = None
    device_scale_factor: float | None = None
    has_touch: bool | None = None
    is_landscape: bool | None = None
    is_mobile: bool | None = None
    allowable_mismatched_pixels: int | None = Field(
        default=None,
        description="Absolute mismatch budget echoed from the build for reporting.",
    )
    allowable_mismatched_ratio: float | None = Field(
        default=None,
        description="Relative mismatch budget echoed from the build for reporting.",
    )
    test_path: str | None = Field(
        default=None,
        description="Test file path relative to the build root, POSIX separators.",
    )
    cache_key: str | None = Field(
        default=None,
        description="Key of the (image_a, image_b, threshold) comparison, if one was needed.",
    )


class Screenshot(CamelModel):
    """One comparison unit as persisted in a build directory."""

    id: str
    image: str = Field(
        description="Content-addressed filename of the captured image.",
    )
    device: str | None = None
    user_agent: str | None = None
    description: str = Field(alias="desc")
    test_path: str | None = None
    width: int | None = None
    height: int | None = None
    device_scale_factor: float | None = None
    has_touch: bool | None = None
    is_landscape: bool | None = None
    is_mobile: bool | None = None
    diff: ScreenshotDiff


class PixelMatchInput(CamelModel):
    """Job message sent to a comparison worker."""

    image_a_path: str = Field(
        description="Absolute path of the baseline image.",
    )
    image_b_path: str = Field(
        description="Absolute path of the current image.",
    )
    width: int = Field(
        gt=0,
        description="Natural pixel width (viewport width x device scale factor).",
    )
    height: int = Field(
        gt=0,
        description="Natural pixel height (viewport height x device scale factor).",
    )
    pixelmatch_threshold: float = Field(
        ge=0,
        le=1,
        description="Per-pixel sensitivity handed to the worker's algorithm.",
    )
