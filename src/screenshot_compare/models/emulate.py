"""Viewport and EmulateConfig models."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from screenshot_compare.models.base import CamelModel


class Viewport(CamelModel):
    """Emulated browser viewport a screenshot was captured with."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(
        gt=0,
        description="Viewport width in CSS pixels.",
    )
    height: int = Field(
        gt=0,
        description="Viewport height in CSS pixels.",
    )
    device_scale_factor: float = Field(
        default=1.0,
        gt=0,
        description="Ratio of physical pixels to CSS pixels.",
    )
    has_touch: bool = Field(
        default=False,
        description="Whether touch events were emulated.",
    )
    is_landscape: bool = Field(
        default=False,
        description="Whether the viewport was in landscape orientation.",
    )
    is_mobile: bool = Field(
        default=False,
        description="Whether the meta viewport tag was honoured.",
    )

    @property
    def natural_width(self) -> int:
        """Width in physical pixels, rounded half-up."""
        return _round_half_up(self.width * self.device_scale_factor)

    @property
    def natural_height(self) -> int:
        """Height in physical pixels, rounded half-up."""
        return _round_half_up(self.height * self.device_scale_factor)


class EmulateConfig(CamelModel):
    """Emulation parameters supplied by the caller for one capture."""

    model_config = ConfigDict(frozen=True)

    device: str | None = Field(
        default=None,
        description="Name of the emulated device, if any.",
    )
    user_agent: str | None = Field(
        default=None,
        description="User-agent string the page was loaded with.",
    )
    viewport: Viewport | None = Field(
        default=None,
        description="Viewport descriptor; absent when the browser default was used.",
    )


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; pixel sizes round .5 upwards.
    return int(value + 0.5)
