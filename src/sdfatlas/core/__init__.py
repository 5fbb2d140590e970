"""Core atlas generation algorithms for sdfatlas.

This module contains the core of the atlas pipeline:

- Request resolution (one generation request per codepoint)
- Generation orchestration (bounded parallel dispatch, fail-fast)
- Packing (fast shelf and efficient free-rectangle strategies)
- Assembly (compositing glyph bitmaps into page buffers)

The core never rasterizes glyphs, encodes images or touches the
filesystem; distance field generation is consumed through the
DistanceFieldGenerator protocol.

Key functions:
- resolve_requests: Charset to generation requests
- get_packer: Packer instance for a strategy
- apply_placements: Assign atlas bounds to packed bitmaps
- build_descriptor: Build the atlas descriptor

Key classes:
- GlyphGenerationRunner: Runs generation requests in parallel
- ShelfPacker / FreeRectPacker: Packing strategies
- AtlasAssembler: Builds page pixel buffers
- AtlasPipeline: Main orchestrator
"""

from sdfatlas.core.assembler import AtlasAssembler, PageBuffer
from sdfatlas.core.generation import (
    DistanceFieldGenerator,
    GlyphGenerationRunner,
    check_bitmap,
)
from sdfatlas.core.packer import (
    FreeRectPacker,
    Packer,
    ShelfPacker,
    apply_placements,
    get_packer,
)
from sdfatlas.core.pipeline import AtlasPipeline, AtlasResult, build_descriptor
from sdfatlas.core.resolver import resolve_requests

__all__ = [
    # Assembly
    "AtlasAssembler",
    # Pipeline
    "AtlasPipeline",
    "AtlasResult",
    # Generation
    "DistanceFieldGenerator",
    # Packing
    "FreeRectPacker",
    "GlyphGenerationRunner",
    "PageBuffer",
    "Packer",
    "ShelfPacker",
    "apply_placements",
    "build_descriptor",
    "check_bitmap",
    "get_packer",
    "resolve_requests",
]
