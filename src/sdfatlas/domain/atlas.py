"""Atlas pages and the atlas descriptor.

Pages are produced by a packer and hold glyph placements. The descriptor is
the finalized, serializable description of the whole atlas.
"""

from dataclasses import dataclass, field
from typing import Any

from sdfatlas.config.settings import AlphaFieldType, FieldType
from sdfatlas.domain.geometry import Rect
from sdfatlas.domain.glyph import Bounds, GlyphBitmap


@dataclass(frozen=True, slots=True)
class GlyphPlacement:
    """Position of a glyph on an atlas page.

    Attributes:
        codepoint: Codepoint of the glyph
        page: Index of the page
        rect: Glyph rectangle, padding excluded
    """

    codepoint: int
    page: int
    rect: Rect


@dataclass
class Page:
    """One atlas page with its placed glyphs.

    Attributes:
        index: Position of the page in the atlas
        width: Page width in pixels (the configured maximum)
        height: Page height in pixels (the configured maximum)
        placements: Placed glyphs in placement order
    """

    index: int
    width: int
    height: int
    placements: list[GlyphPlacement] = field(default_factory=list)

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def place(self, codepoint: int, rect: Rect) -> GlyphPlacement:
        """Add a glyph placement to the page.

        Args:
            codepoint: Codepoint of the glyph
            rect: Glyph rectangle, padding excluded

        Returns:
            The new placement
        """
        placement = GlyphPlacement(codepoint=codepoint, page=self.index, rect=rect)
        self.placements.append(placement)
        return placement

    def codepoints(self) -> list[int]:
        return [p.codepoint for p in self.placements]


@dataclass(frozen=True, slots=True)
class GlyphEntry:
    """Descriptor entry for a single glyph.

    Attributes:
        codepoint: Unicode codepoint
        x: Left edge on the page
        y: Top edge on the page
        width: Glyph width in pixels
        height: Glyph height in pixels
        advance: Horizontal advance in font units
        plane_bounds: Outline bounding box in font units
    """

    codepoint: int
    x: int
    y: int
    width: int
    height: int
    advance: float
    plane_bounds: Bounds

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def to_dict(self) -> dict[str, Any]:
        return {
            "codepoint": self.codepoint,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "advance": self.advance,
            "planeBounds": self.plane_bounds.to_dict(),
        }

    @classmethod
    def from_bitmap(cls, bitmap: GlyphBitmap) -> "GlyphEntry":
        """Create an entry from a packed bitmap.

        Raises:
            ValueError: If the bitmap has no atlas bounds yet
        """
        if bitmap.atlas_bounds is None:
            raise ValueError(f"Codepoint {bitmap.codepoint} has not been packed")
        rect = bitmap.atlas_bounds
        return cls(
            codepoint=bitmap.codepoint,
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
            advance=bitmap.advance,
            plane_bounds=bitmap.plane_bounds,
        )


@dataclass(frozen=True, slots=True)
class PageSummary:
    """Descriptor entry for an atlas page."""

    width: int
    height: int
    glyphs: tuple[GlyphEntry, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "glyphs": [g.to_dict() for g in self.glyphs],
        }


@dataclass(frozen=True, slots=True)
class FontMetrics:
    """Vertical font metrics in font units.

    Attributes:
        units_per_em: Font design units per em
        ascender: Ascender above the baseline
        descender: Descender below the baseline (negative)
        line_height: Distance between consecutive baselines
    """

    units_per_em: int
    ascender: float
    descender: float
    line_height: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "unitsPerEm": self.units_per_em,
            "ascender": self.ascender,
            "descender": self.descender,
            "lineHeight": self.line_height,
        }


@dataclass(frozen=True)
class AtlasDescriptor:
    """Finalized description of a distance field atlas.

    Attributes:
        field_type: Distance field encoding
        alpha_field_type: Alpha channel distance field encoding
        distance_range: Distance range in pixels
        font_size: Font size in pixels
        padding: Padding around glyphs in pixels
        pages: Page summaries with glyph entries
        font_name: Name of the source font, if known
        metrics: Vertical font metrics, if known
    """

    field_type: FieldType
    alpha_field_type: AlphaFieldType
    distance_range: int
    font_size: int
    padding: int
    pages: tuple[PageSummary, ...]
    font_name: str | None = None
    metrics: FontMetrics | None = None

    @property
    def glyph_count(self) -> int:
        return sum(len(page.glyphs) for page in self.pages)

    def glyph(self, codepoint: int) -> tuple[int, GlyphEntry]:
        """Find a glyph entry and the index of its page.

        Raises:
            KeyError: If the codepoint is not in the atlas
        """
        for index, page in enumerate(self.pages):
            for entry in page.glyphs:
                if entry.codepoint == codepoint:
                    return index, entry
        raise KeyError(codepoint)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the atlas descriptor schema."""
        data: dict[str, Any] = {
            "fieldType": self.field_type.value,
            "alphaFieldType": self.alpha_field_type.value,
            "distanceRange": self.distance_range,
            "fontSize": self.font_size,
            "padding": self.padding,
            "pages": [page.to_dict() for page in self.pages],
        }
        if self.font_name is not None:
            data["fontName"] = self.font_name
        if self.metrics is not None:
            data["metrics"] = self.metrics.to_dict()
        return data
