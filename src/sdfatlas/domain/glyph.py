"""Glyph generation requests and generated glyph bitmaps.

This module defines what the pipeline asks a distance field generator for
(GenerationRequest) and what it gets back (GlyphBitmap).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from sdfatlas.config.settings import AlphaFieldType, FieldType
from sdfatlas.domain.geometry import Rect


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Request to generate the distance field of one codepoint.

    Attributes:
        codepoint: Unicode codepoint to generate
        font: Path of the font file
        field_type: Distance field encoding of the color channels
        alpha_field_type: Distance field encoded in an extra alpha channel
        font_size: Font size in pixels
        distance_range: Distance range in pixels
    """

    codepoint: int
    font: Path
    field_type: FieldType
    alpha_field_type: AlphaFieldType
    font_size: int
    distance_range: int

    @property
    def channel_count(self) -> int:
        """Number of channels the generated bitmap must have."""
        extra = 0 if self.alpha_field_type is AlphaFieldType.NONE else 1
        return self.field_type.channel_count + extra


@dataclass(frozen=True, slots=True)
class Bounds:
    """Axis-aligned bounding box with a bottom-up Y axis.

    Attributes:
        left: Minimum X
        bottom: Minimum Y
        right: Maximum X
        top: Maximum Y
    """

    left: float
    bottom: float
    right: float
    top: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def is_empty(self) -> bool:
        """Check if the box has no area."""
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict[str, float]:
        return {
            "left": self.left,
            "bottom": self.bottom,
            "right": self.right,
            "top": self.top,
        }

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "Bounds":
        return cls(
            left=data["left"],
            bottom=data["bottom"],
            right=data["right"],
            top=data["top"],
        )


EMPTY_BOUNDS = Bounds(0.0, 0.0, 0.0, 0.0)


@dataclass
class GlyphBitmap:
    """Distance field bitmap of a single glyph with its metrics.

    The pixel array is owned by the pipeline until it is copied into a page
    buffer. Atlas bounds are assigned exactly once, after packing.

    Attributes:
        codepoint: Unicode codepoint
        width: Bitmap width in pixels
        height: Bitmap height in pixels
        channels: Number of channels per pixel
        pixels: uint8 array of shape (height, width, channels), top row first
        advance: Horizontal advance in font units
        plane_bounds: Outline bounding box in font units
        pixel_bounds: Outline bounding box in bitmap pixels
        atlas_bounds: Placement in the atlas (None until packed)
    """

    codepoint: int
    width: int
    height: int
    channels: int
    pixels: npt.NDArray[np.uint8]
    advance: float
    plane_bounds: Bounds = EMPTY_BOUNDS
    pixel_bounds: Bounds = EMPTY_BOUNDS
    atlas_page: int | None = field(default=None, init=False)
    atlas_bounds: Rect | None = field(default=None, init=False)

    def is_empty(self) -> bool:
        """Check if the bitmap has no pixels (e.g. space)."""
        return self.width == 0 or self.height == 0

    def is_malformed(self) -> bool:
        """Check if declared dimensions disagree with the pixel array."""
        if self.width < 0 or self.height < 0 or self.channels < 1:
            return True
        return self.pixels.shape != (self.height, self.width, self.channels)

    def assign_atlas_bounds(self, page: int, bounds: Rect) -> None:
        """Record where the glyph was placed in the atlas.

        Args:
            page: Index of the page holding the glyph
            bounds: Glyph rectangle on the page, padding excluded

        Raises:
            ValueError: If atlas bounds were already assigned
        """
        if self.atlas_bounds is not None:
            raise ValueError(f"Atlas bounds already assigned for codepoint {self.codepoint}")
        self.atlas_page = page
        self.atlas_bounds = bounds

    def to_dict(self) -> dict[str, Any]:
        """Serialize glyph metrics, without pixel data."""
        return {
            "codepoint": self.codepoint,
            "width": self.width,
            "height": self.height,
            "channels": self.channels,
            "advance": self.advance,
            "plane_bounds": self.plane_bounds.to_dict(),
            "pixel_bounds": self.pixel_bounds.to_dict(),
        }

    @classmethod
    def blank(
        cls,
        codepoint: int,
        width: int,
        height: int,
        channels: int = 1,
        advance: float = 0.0,
    ) -> "GlyphBitmap":
        """Create a zero-filled bitmap.

        Args:
            codepoint: Unicode codepoint
            width: Bitmap width in pixels
            height: Bitmap height in pixels
            channels: Number of channels per pixel
            advance: Horizontal advance in font units

        Returns:
            GlyphBitmap with all pixels set to zero
        """
        return cls(
            codepoint=codepoint,
            width=width,
            height=height,
            channels=channels,
            pixels=np.zeros((height, width, channels), dtype=np.uint8),
            advance=advance,
        )
