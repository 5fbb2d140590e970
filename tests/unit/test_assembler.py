"""Unit tests for page assembly."""

import numpy as np
import pytest

from sdfatlas.core import AtlasAssembler, ShelfPacker, apply_placements
from sdfatlas.domain import GlyphBitmap, Page, Rect
from sdfatlas.exceptions import AssemblyInvariantViolation


def filled(codepoint: int, width: int, height: int, channels: int = 1) -> GlyphBitmap:
    bitmap = GlyphBitmap.blank(codepoint, width, height, channels=channels)
    bitmap.pixels[:] = codepoint % 200 + 1
    return bitmap


class TestAtlasAssembler:
    """Tests for AtlasAssembler class."""

    def test_single_page(self) -> None:
        """Test glyph pixels land at their rect on a zeroed page."""
        bitmaps = {65: filled(65, 10, 10, 3), 66: filled(66, 6, 8, 3)}
        page = Page(index=0, width=32, height=32)
        page.place(65, Rect(2, 2, 10, 10))
        page.place(66, Rect(16, 2, 6, 8))

        (buffer,) = AtlasAssembler(channels=3).assemble([page], bitmaps)

        assert buffer.shape == (32, 32, 3)
        assert buffer.dtype == np.uint8
        assert (buffer[2:12, 2:12] == 66).all()
        assert (buffer[2:10, 16:22] == 67).all()
        mask = np.ones((32, 32), dtype=bool)
        mask[2:12, 2:12] = False
        mask[2:10, 16:22] = False
        assert not buffer[mask].any()

    def test_page_keeps_declared_size(self) -> None:
        """Test buffers are never cropped to their content."""
        page = Page(index=0, width=128, height=64)
        page.place(65, Rect(1, 1, 4, 4))

        (buffer,) = AtlasAssembler(channels=1).assemble([page], {65: filled(65, 4, 4)})

        assert buffer.shape == (64, 128, 1)

    def test_pixels_copied_verbatim(self) -> None:
        """Test pixel values are not altered."""
        bitmap = GlyphBitmap.blank(65, 3, 2, channels=4)
        bitmap.pixels[:] = np.arange(24, dtype=np.uint8).reshape(2, 3, 4)
        page = Page(index=0, width=32, height=32)
        page.place(65, Rect(5, 7, 3, 2))

        (buffer,) = AtlasAssembler(channels=4).assemble([page], {65: bitmap})

        np.testing.assert_array_equal(buffer[7:9, 5:8], bitmap.pixels)

    def test_multiple_pages(self) -> None:
        """Test pages assembled in parallel keep their order."""
        bitmaps = {cp: filled(cp, 28, 28) for cp in range(65, 75)}
        pages = ShelfPacker().pack(bitmaps.values(), 64, 64, 2)
        apply_placements(pages, bitmaps)

        buffers = AtlasAssembler(channels=1, max_workers=2).assemble(pages, bitmaps)

        assert len(buffers) == len(pages) == 3
        for page, buffer in zip(pages, buffers):
            for placement in page.placements:
                r = placement.rect
                assert (buffer[r.y:r.bottom, r.x:r.right] == placement.codepoint % 200 + 1).all()

    def test_empty_bitmap_skipped(self) -> None:
        """Test glyphs without pixels leave the page untouched."""
        page = Page(index=0, width=32, height=32)
        page.place(32, Rect(2, 2, 0, 0))

        (buffer,) = AtlasAssembler(channels=3).assemble(
            [page], {32: GlyphBitmap.blank(32, 0, 0, channels=1)}
        )

        assert not buffer.any()

    def test_no_pages(self) -> None:
        """Test an empty atlas has no buffers."""
        assert AtlasAssembler(channels=1).assemble([], {}) == []

    def test_placement_outside_page(self) -> None:
        """Test placements past the page edge are an invariant violation."""
        page = Page(index=0, width=32, height=32)
        page.place(65, Rect(25, 2, 10, 10))

        with pytest.raises(AssemblyInvariantViolation, match="outside page 0"):
            AtlasAssembler(channels=1).assemble([page], {65: filled(65, 10, 10)})

    def test_size_mismatch(self) -> None:
        """Test placement and bitmap sizes must agree."""
        page = Page(index=0, width=32, height=32)
        page.place(65, Rect(2, 2, 10, 10))

        with pytest.raises(AssemblyInvariantViolation):
            AtlasAssembler(channels=1).assemble([page], {65: filled(65, 8, 10)})

    def test_channel_mismatch(self) -> None:
        """Test bitmaps must have the page channel count."""
        page = Page(index=0, width=32, height=32)
        page.place(65, Rect(2, 2, 10, 10))

        with pytest.raises(AssertionError, match="channels"):
            AtlasAssembler(channels=4).assemble([page], {65: filled(65, 10, 10, 3)})
