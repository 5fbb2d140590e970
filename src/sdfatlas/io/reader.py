"""Font reader for glyph and font metrics.

This module provides the FontReader class for loading font files and
extracting the metrics the atlas needs: per-codepoint advance and outline
bounds, and vertical font metrics.
"""

import threading
from dataclasses import dataclass
from pathlib import Path

from fontTools.pens.boundsPen import BoundsPen
from fontTools.ttLib import TTFont

from sdfatlas.domain import Bounds, FontMetrics

# Name table IDs we read
NAME_ID_FAMILY = 1
NAME_ID_TYPOGRAPHIC_FAMILY = 16


@dataclass(frozen=True, slots=True)
class GlyphMetrics:
    """Horizontal metrics and outline bounds of a glyph, in font units.

    Attributes:
        name: Glyph name in the font
        advance: Horizontal advance width
        bounds: Outline bounding box (None for glyphs without outline)
    """

    name: str
    advance: float
    bounds: Bounds | None


class FontReader:
    """Loads TTF/OTF fonts and reads glyph metrics.

    Lookups are serialized with a lock so one reader can be shared by
    generation worker threads.

    Example:
        with FontReader(Path("font.ttf")) as reader:
            metrics = reader.glyph_metrics(ord("A"))
    """

    def __init__(self, font_path: Path) -> None:
        """Initialize the font reader.

        Args:
            font_path: Path to the TTF or OTF font file
        """
        self._font_path = font_path
        self._font: TTFont | None = None
        self._cmap: dict[int, str] = {}
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._font_path

    def load(self) -> None:
        """Load the font file.

        Raises:
            FileNotFoundError: If font file does not exist
            Exception: If font file is invalid or cannot be loaded
        """
        if not self._font_path.exists():
            raise FileNotFoundError(f"Font file not found: {self._font_path}")

        self._font = TTFont(str(self._font_path))
        self._cmap = self._font.getBestCmap() or {}

    def _require_font(self) -> TTFont:
        if self._font is None:
            raise RuntimeError("Font not loaded. Call load() first.")
        return self._font

    @property
    def format(self) -> str:
        """Return font format.

        Returns:
            'TrueType' for TTF fonts, 'OpenType' for OTF fonts

        Raises:
            RuntimeError: If font has not been loaded yet
        """
        font = self._require_font()
        if "CFF " in font or "CFF2" in font:
            return "OpenType"
        return "TrueType"

    @property
    def units_per_em(self) -> int:
        """Return font's units per em.

        Raises:
            RuntimeError: If font has not been loaded yet
        """
        return self._require_font()["head"].unitsPerEm  # type: ignore[attr-defined]

    @property
    def glyph_count(self) -> int:
        """Return total number of glyphs in the font."""
        return self._require_font()["maxp"].numGlyphs

    @property
    def family_name(self) -> str:
        """Return the font family name, or the file stem if it has none."""
        font = self._require_font()
        if "name" in font:
            name_table = font["name"]
            for name_id in (NAME_ID_TYPOGRAPHIC_FAMILY, NAME_ID_FAMILY):
                name = name_table.getDebugName(name_id)
                if name:
                    return name
        return self._font_path.stem

    def font_metrics(self) -> FontMetrics:
        """Return vertical font metrics from the hhea table."""
        font = self._require_font()
        hhea = font["hhea"]
        ascender = float(hhea.ascent)
        descender = float(hhea.descent)
        return FontMetrics(
            units_per_em=self.units_per_em,
            ascender=ascender,
            descender=descender,
            line_height=ascender - descender + float(hhea.lineGap),
        )

    def has_glyph(self, codepoint: int) -> bool:
        """Check if the font maps a codepoint to a glyph."""
        self._require_font()
        return codepoint in self._cmap

    def glyph_metrics(self, codepoint: int) -> GlyphMetrics | None:
        """Get advance and outline bounds of the glyph for a codepoint.

        Args:
            codepoint: Unicode codepoint

        Returns:
            GlyphMetrics, or None if the font has no glyph for the codepoint

        Raises:
            RuntimeError: If font has not been loaded yet
        """
        font = self._require_font()
        name = self._cmap.get(codepoint)
        if name is None:
            return None

        with self._lock:
            glyph_set = font.getGlyphSet()
            glyph = glyph_set[name]
            pen = BoundsPen(glyph_set)
            glyph.draw(pen)
            advance = float(glyph.width)

        bounds = None
        if pen.bounds is not None:
            x_min, y_min, x_max, y_max = pen.bounds
            bounds = Bounds(float(x_min), float(y_min), float(x_max), float(y_max))
            if bounds.is_empty():
                bounds = None

        return GlyphMetrics(name=name, advance=advance, bounds=bounds)

    def close(self) -> None:
        """Close the font file and free resources."""
        if self._font is not None:
            self._font.close()
            self._font = None
            self._cmap = {}

    def __enter__(self) -> "FontReader":
        """Context manager entry."""
        self.load()
        return self

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
