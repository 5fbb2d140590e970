"""Font and atlas I/O layer for sdfatlas.

This module handles everything outside the core pipeline that touches
files or external programs:

- Reading glyph and font metrics with fonttools
- Generating glyph distance fields with the msdfgen executable
- Writing atlas descriptors and PNG page images

Key classes:
- FontReader: Load fonts and read glyph metrics
- MsdfgenGenerator: DistanceFieldGenerator backed by msdfgen
- AtlasWriter: Save descriptor and page images
"""

from sdfatlas.io.msdfgen import GlyphFrame, MsdfgenGenerator, compute_frame
from sdfatlas.io.reader import FontReader, GlyphMetrics
from sdfatlas.io.writer import AtlasWriter, render_fnt

__all__ = [
    "AtlasWriter",
    "FontReader",
    "GlyphFrame",
    "GlyphMetrics",
    "MsdfgenGenerator",
    "compute_frame",
    "render_fnt",
]
