"""Compositing packed glyph bitmaps into page pixel buffers."""

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import numpy.typing as npt

from sdfatlas.domain import GlyphBitmap, Page
from sdfatlas.exceptions import AssemblyInvariantViolation, format_codepoint

PageBuffer = npt.NDArray[np.uint8]


class AtlasAssembler:
    """Copies glyph bitmaps into one zero-initialized buffer per page.

    Buffers always have the page's declared size, never cropped to content.
    Glyph pixels are copied verbatim. Pages are independent and assembled
    in parallel.

    Example:
        assembler = AtlasAssembler(channels=4)
        buffers = assembler.assemble(pages, bitmaps)
    """

    def __init__(self, channels: int, max_workers: int | None = None) -> None:
        """Initialize the assembler.

        Args:
            channels: Number of channels per pixel of every page
            max_workers: Max threads assembling pages (None = auto)
        """
        self.channels = channels
        self.max_workers = max_workers

    def assemble(
        self,
        pages: Sequence[Page],
        bitmaps: Mapping[int, GlyphBitmap],
    ) -> list[PageBuffer]:
        """Assemble every page.

        Args:
            pages: Packed pages
            bitmaps: Glyph bitmaps by codepoint

        Returns:
            One uint8 array of shape (height, width, channels) per page

        Raises:
            AssemblyInvariantViolation: If a placement does not fit its page
                or a bitmap does not match its placement
        """
        if len(pages) <= 1:
            return [self.assemble_page(page, bitmaps) for page in pages]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(lambda page: self.assemble_page(page, bitmaps), pages))

    def assemble_page(self, page: Page, bitmaps: Mapping[int, GlyphBitmap]) -> PageBuffer:
        """Assemble a single page buffer."""
        buffer = np.zeros((page.height, page.width, self.channels), dtype=np.uint8)
        bounds = page.bounds

        for placement in page.placements:
            rect = placement.rect
            bitmap = bitmaps[placement.codepoint]
            glyph = format_codepoint(placement.codepoint)

            if not bounds.contains(rect):
                raise AssemblyInvariantViolation(
                    f"Placement of {glyph} at {rect} is outside page {page.index} "
                    f"({page.width}x{page.height})"
                )
            if (rect.width, rect.height) != (bitmap.width, bitmap.height):
                raise AssemblyInvariantViolation(
                    f"Placement of {glyph} is {rect.width}x{rect.height}, "
                    f"bitmap is {bitmap.width}x{bitmap.height}"
                )
            if bitmap.is_empty():
                continue
            if bitmap.channels != self.channels:
                raise AssemblyInvariantViolation(
                    f"Bitmap of {glyph} has {bitmap.channels} channels, "
                    f"page has {self.channels}"
                )

            buffer[rect.y:rect.bottom, rect.x:rect.right] = bitmap.pixels

        return buffer
