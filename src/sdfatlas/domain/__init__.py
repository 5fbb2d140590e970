"""Domain models for sdfatlas.

This module contains the models flowing through the atlas pipeline:
generation requests, glyph bitmaps, pack rectangles, pages and the atlas
descriptor. All models are designed to be:

- Immutable where possible (using frozen dataclasses)
- Serializable to the descriptor schema
- Independent of msdfgen and fonttools implementation details

Key classes:
- GenerationRequest: What to generate for one codepoint
- GlyphBitmap: Generated distance field bitmap with glyph metrics
- Rect / PackRect: Integer layout rectangles
- Page / GlyphPlacement: Packed atlas pages
- AtlasDescriptor: Finalized atlas metadata
"""

from sdfatlas.domain.atlas import (
    AtlasDescriptor,
    FontMetrics,
    GlyphEntry,
    GlyphPlacement,
    Page,
    PageSummary,
)
from sdfatlas.domain.geometry import PackRect, Rect
from sdfatlas.domain.glyph import EMPTY_BOUNDS, Bounds, GenerationRequest, GlyphBitmap

__all__: list[str] = [
    "EMPTY_BOUNDS",
    # Geometry
    "Bounds",
    "PackRect",
    "Rect",
    # Generation
    "GenerationRequest",
    "GlyphBitmap",
    # Atlas
    "AtlasDescriptor",
    "FontMetrics",
    "GlyphEntry",
    "GlyphPlacement",
    "Page",
    "PageSummary",
]
