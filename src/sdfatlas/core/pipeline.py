"""Atlas generation pipeline.

This module coordinates the full workflow: resolving generation requests,
generating glyph bitmaps in parallel, packing them on pages, compositing the
page buffers and building the atlas descriptor. The run is all or nothing:
it returns a complete AtlasResult or raises a single AtlasError.

Key components:
- AtlasResult: Descriptor, packed pages and page buffers of a run
- AtlasPipeline: Main orchestrator class
- build_descriptor: Descriptor construction from packed bitmaps
"""

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from sdfatlas.config import AtlasSettings
from sdfatlas.core.assembler import AtlasAssembler, PageBuffer
from sdfatlas.core.generation import DistanceFieldGenerator, GlyphGenerationRunner
from sdfatlas.core.packer import apply_placements, get_packer
from sdfatlas.core.resolver import resolve_requests
from sdfatlas.domain import (
    AtlasDescriptor,
    FontMetrics,
    GlyphBitmap,
    GlyphEntry,
    Page,
    PageSummary,
)
from sdfatlas.utils import AtlasStats, ProcessingLogger, configure_logging


@dataclass
class AtlasResult:
    """Output of a pipeline run.

    Ownership of the page buffers passes to the caller.

    Attributes:
        descriptor: Finalized atlas descriptor
        pages: Packed pages
        page_buffers: One uint8 array of shape (height, width, channels) per page
        stats: Run statistics
    """

    descriptor: AtlasDescriptor
    pages: list[Page]
    page_buffers: list[PageBuffer]
    stats: AtlasStats


def build_descriptor(
    settings: AtlasSettings,
    pages: Sequence[Page],
    bitmaps: Mapping[int, GlyphBitmap],
    font_name: str | None = None,
    metrics: FontMetrics | None = None,
) -> AtlasDescriptor:
    """Build the atlas descriptor from packed pages.

    Glyph entries of each page are listed in codepoint order.

    Args:
        settings: Settings the atlas was generated with
        pages: Packed pages
        bitmaps: Bitmaps by codepoint, atlas bounds assigned
        font_name: Optional name of the source font
        metrics: Optional vertical font metrics

    Returns:
        AtlasDescriptor for the atlas
    """
    summaries = tuple(
        PageSummary(
            width=page.width,
            height=page.height,
            glyphs=tuple(
                GlyphEntry.from_bitmap(bitmaps[codepoint])
                for codepoint in sorted(page.codepoints())
            ),
        )
        for page in pages
    )
    generation = settings.generation
    return AtlasDescriptor(
        field_type=generation.field_type,
        alpha_field_type=generation.effective_alpha_field_type,
        distance_range=generation.distance_range,
        font_size=generation.font_size,
        padding=settings.packing.padding,
        pages=summaries,
        font_name=font_name,
        metrics=metrics,
    )


class AtlasPipeline:
    """Orchestrates distance field atlas generation.

    Manages the complete workflow:
    1. Resolve one generation request per codepoint
    2. Generate glyph bitmaps in parallel
    3. Pack bitmaps on pages with the configured strategy
    4. Composite page buffers in parallel
    5. Build the atlas descriptor

    Example:
        settings = AtlasSettings()
        pipeline = AtlasPipeline(settings, MsdfgenGenerator(...))
        result = pipeline.run(Path("font.ttf"), load_charset("ascii"))
    """

    def __init__(
        self,
        config: AtlasSettings,
        generator: DistanceFieldGenerator,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Validated atlas settings
            generator: Single-glyph distance field generator
            logger: Logger to use (configured from settings if None)
        """
        self.config = config
        self.generator = generator
        if logger is None:
            logger = configure_logging(
                log_file=config.logging.log_file,
                console_level=config.logging.log_level,
                file_level=config.logging.file_log_level,
                quiet=False,
            )
        self.logger = logger

    def run(
        self,
        font: Path,
        codepoints: Iterable[int],
        progress_callback: Callable[[int, int, int], None] | None = None,
        font_name: str | None = None,
        metrics: FontMetrics | None = None,
    ) -> AtlasResult:
        """Generate the atlas of a font.

        Args:
            font: Path of the font file
            codepoints: Sorted unique codepoints of the charset
            progress_callback: Optional callback(completed, total, codepoint)
                for generation progress
            font_name: Optional font name recorded in the descriptor
            metrics: Optional vertical metrics recorded in the descriptor

        Returns:
            AtlasResult with descriptor, pages and page buffers

        Raises:
            GenerationError: If generating any glyph fails
            PackingError: If a padded glyph exceeds the page size
            AssemblyInvariantViolation: If packing produced an invalid layout
        """
        processing_logger = ProcessingLogger(self.logger)
        stats = processing_logger.stats
        stats.start_time = time.time()

        generation = self.config.generation
        packing = self.config.packing
        processing = self.config.processing

        requests = resolve_requests(codepoints, font, generation)
        stats.glyph_count = len(requests)

        self.logger.info(
            "Starting atlas generation",
            font=str(font),
            glyphs=len(requests),
            field_type=generation.field_type.value,
            alpha_field_type=generation.effective_alpha_field_type.value,
            font_size=generation.font_size,
            distance_range=generation.distance_range,
            max_workers=processing.max_workers,
        )

        # Generate
        phase_start = time.perf_counter()
        runner = GlyphGenerationRunner(
            self.generator,
            max_workers=processing.max_workers,
            timeout=processing.timeout_seconds,
            processing_logger=processing_logger,
        )
        bitmaps = runner.run(requests, progress_callback=progress_callback)
        stats.generation_seconds = time.perf_counter() - phase_start

        self.logger.info(
            "Glyphs generated",
            generated=stats.generated_count,
            empty=stats.empty_count,
            duration_seconds=round(stats.generation_seconds, 2),
        )

        # Pack
        phase_start = time.perf_counter()
        packer = get_packer(packing.strategy)
        pages = packer.pack(
            bitmaps.values(),
            page_width=packing.page_width,
            page_height=packing.page_height,
            padding=packing.padding,
        )
        apply_placements(pages, bitmaps)
        stats.packing_seconds = time.perf_counter() - phase_start
        stats.page_count = len(pages)

        for page in pages:
            processing_logger.log_page_packed(
                page.index, len(page.placements), packing.strategy.value
            )
        self.logger.info(
            "Glyphs packed",
            strategy=packing.strategy.value,
            pages=len(pages),
            page_width=packing.page_width,
            page_height=packing.page_height,
            padding=packing.padding,
        )

        # Assemble
        phase_start = time.perf_counter()
        assembler = AtlasAssembler(
            channels=generation.channel_count,
            max_workers=processing.max_workers,
        )
        buffers = assembler.assemble(pages, bitmaps)
        stats.assembly_seconds = time.perf_counter() - phase_start

        descriptor = build_descriptor(
            self.config, pages, bitmaps, font_name=font_name, metrics=metrics
        )

        stats.end_time = time.time()
        self.logger.info(
            "Atlas complete",
            glyphs=descriptor.glyph_count,
            pages=len(pages),
            duration_seconds=round(stats.duration_seconds, 2),
        )

        return AtlasResult(
            descriptor=descriptor,
            pages=pages,
            page_buffers=buffers,
            stats=stats,
        )
