"""Unit tests for atlas packing.

Tests for ShelfPacker, FreeRectPacker and the shared packing contract.
"""

import math
import random
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from sdfatlas.config import PackingStrategy
from sdfatlas.core import FreeRectPacker, Packer, ShelfPacker, apply_placements, get_packer
from sdfatlas.core.packer import _FreePage, check_fits, sort_rects
from sdfatlas.domain import GlyphBitmap, PackRect, Page, Rect
from sdfatlas.exceptions import PackingError

PACKERS = [ShelfPacker, FreeRectPacker]


def padded_rect(rect: Rect, padding: int) -> Rect:
    return Rect(
        rect.x - padding,
        rect.y - padding,
        rect.width + 2 * padding,
        rect.height + 2 * padding,
    )


def assert_valid_layout(
    pages: list[Page],
    bitmaps: list[GlyphBitmap],
    page_width: int,
    page_height: int,
    padding: int,
) -> None:
    """Check completeness, exact sizes, page bounds and non-overlap."""
    sizes = {b.codepoint: (b.width, b.height) for b in bitmaps}
    placed = [p for page in pages for p in page.placements]

    assert sorted(p.codepoint for p in placed) == sorted(sizes)

    for page in pages:
        assert (page.width, page.height) == (page_width, page_height)
        padded = []
        for placement in page.placements:
            assert placement.page == page.index
            rect = placement.rect
            assert (rect.width, rect.height) == sizes[placement.codepoint]
            outer = padded_rect(rect, padding)
            assert page.bounds.contains(outer)
            if outer.area > 0:
                padded.append(outer)
        for i, a in enumerate(padded):
            for b in padded[i + 1:]:
                assert not a.intersects(b)


def random_bitmaps(seed: int, count: int, max_size: int = 40) -> list[GlyphBitmap]:
    rng = random.Random(seed)
    return [
        GlyphBitmap.blank(cp, rng.randint(1, max_size), rng.randint(1, max_size))
        for cp in range(32, 32 + count)
    ]


class TestSorting:
    """Tests for the shared sort and fit checks."""

    def test_sort_order(self) -> None:
        """Test rects sort by height, width, then codepoint."""
        rects = [PackRect(66, 14, 14), PackRect(65, 14, 14), PackRect(67, 14, 20)]
        assert [r.codepoint for r in sort_rects(rects)] == [67, 65, 66]

    def test_duplicate_codepoint(self) -> None:
        """Test duplicate codepoints are rejected."""
        with pytest.raises(ValueError, match="Duplicate codepoint"):
            sort_rects([PackRect(65, 5, 5), PackRect(65, 6, 6)])

    def test_check_fits(self) -> None:
        """Test rects exceeding the page in either axis fail."""
        check_fits([PackRect(65, 64, 64)], 64, 64)
        with pytest.raises(PackingError):
            check_fits([PackRect(65, 65, 10)], 64, 64)
        with pytest.raises(PackingError):
            check_fits([PackRect(65, 10, 65)], 64, 64)


@pytest.mark.parametrize("packer_cls", PACKERS)
class TestPackerContract:
    """Behavior shared by both packing strategies."""

    def test_two_glyph_scenario(self, packer_cls: type[Packer]) -> None:
        """Test two 10x10 glyphs on a 32x32 page with padding 2."""
        bitmaps = [GlyphBitmap.blank(ord("A"), 10, 10), GlyphBitmap.blank(ord("B"), 10, 10)]

        pages = packer_cls().pack(bitmaps, 32, 32, 2)

        assert len(pages) == 1
        assert (pages[0].width, pages[0].height) == (32, 32)
        rects = {p.codepoint: p.rect for p in pages[0].placements}
        assert rects[ord("A")] == Rect(2, 2, 10, 10)

        a = rects[ord("A")]
        b = rects[ord("B")]
        gap_x = max(b.x - a.right, a.x - b.right)
        gap_y = max(b.y - a.bottom, a.y - b.bottom)
        assert max(gap_x, gap_y) >= 2
        for rect in (a, b):
            assert rect.x >= 2 and rect.y >= 2
            assert rect.right <= 30 and rect.bottom <= 30

    def test_oversize_glyph(self, packer_cls: type[Packer]) -> None:
        """Test a 100x100 glyph does not fit a 64x64 page."""
        bitmaps = [GlyphBitmap.blank(0x41, 100, 100)]

        with pytest.raises(PackingError) as exc_info:
            packer_cls().pack(bitmaps, 64, 64, 2)

        assert exc_info.value.codepoint == 0x41
        assert exc_info.value.limit == (64, 64)
        assert exc_info.value.required == (104, 104)
        assert "64x64" in str(exc_info.value)

    def test_oversize_after_padding(self, packer_cls: type[Packer]) -> None:
        """Test padding counts towards the page limit."""
        bitmaps = [GlyphBitmap.blank(0x41, 10, 10), GlyphBitmap.blank(0x42, 62, 10)]
        with pytest.raises(PackingError) as exc_info:
            packer_cls().pack(bitmaps, 64, 64, 2)
        assert exc_info.value.codepoint == 0x42

    def test_exact_page_fit(self, packer_cls: type[Packer]) -> None:
        """Test a glyph filling the page exactly with its padding."""
        pages = packer_cls().pack([GlyphBitmap.blank(0x41, 60, 60)], 64, 64, 2)
        assert pages[0].placements[0].rect == Rect(2, 2, 60, 60)

    def test_empty_input(self, packer_cls: type[Packer]) -> None:
        """Test packing nothing produces no pages."""
        assert packer_cls().pack([], 64, 64, 2) == []

    def test_zero_size_glyph(self, packer_cls: type[Packer]) -> None:
        """Test glyphs without pixels are still placed."""
        bitmaps = [GlyphBitmap.blank(0x20, 0, 0), GlyphBitmap.blank(0x41, 10, 10)]

        pages = packer_cls().pack(bitmaps, 32, 32, 2)

        assert_valid_layout(pages, bitmaps, 32, 32, 2)

    def test_zero_size_glyph_without_padding(self, packer_cls: type[Packer]) -> None:
        """Test zero-area rects are placed when there is no padding."""
        bitmaps = [GlyphBitmap.blank(0x20, 0, 0), GlyphBitmap.blank(0x41, 32, 32)]

        pages = packer_cls().pack(bitmaps, 32, 32, 0)

        assert len(pages) == 1
        assert_valid_layout(pages, bitmaps, 32, 32, 0)

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_random_layout_valid(self, packer_cls: type[Packer], seed: int) -> None:
        """Test every glyph is placed once inside its page without overlap."""
        bitmaps = random_bitmaps(seed, 150)

        pages = packer_cls().pack(bitmaps, 128, 128, 2)

        assert_valid_layout(pages, bitmaps, 128, 128, 2)
        assert [page.index for page in pages] == list(range(len(pages)))

    def test_deterministic(self, packer_cls: type[Packer]) -> None:
        """Test input order does not change the layout."""
        bitmaps = random_bitmaps(7, 80)
        shuffled = list(bitmaps)
        random.Random(0).shuffle(shuffled)

        first = packer_cls().pack(bitmaps, 128, 128, 1)
        second = packer_cls().pack(shuffled, 128, 128, 1)

        assert [page.placements for page in first] == [page.placements for page in second]


class TestManyGlyphs:
    """Tests with many identical glyphs tiling pages exactly."""

    def _bitmaps(self) -> list[GlyphBitmap]:
        # 28x28 glyphs with padding 2 are 32x32: exactly 2x2 per 64x64 page
        return [GlyphBitmap.blank(cp, 28, 28) for cp in range(1000, 1200)]

    def test_fast_page_count(self) -> None:
        """Test fast packing fits four glyphs per page."""
        bitmaps = self._bitmaps()

        pages = ShelfPacker().pack(bitmaps, 64, 64, 2)

        assert len(pages) == math.ceil(200 / 4)
        assert all(len(page.placements) == 4 for page in pages)
        assert_valid_layout(pages, bitmaps, 64, 64, 2)

    def test_efficient_page_count(self) -> None:
        """Test efficient packing needs no more pages than fast packing."""
        bitmaps = self._bitmaps()

        pages = FreeRectPacker().pack(bitmaps, 64, 64, 2)

        assert len(pages) <= 50
        assert_valid_layout(pages, bitmaps, 64, 64, 2)

    def test_glyphs_wider_than_half_page(self) -> None:
        """Test 30x30 glyphs with padding 2 need one page each."""
        bitmaps = [GlyphBitmap.blank(cp, 30, 30) for cp in range(10)]

        pages = ShelfPacker().pack(bitmaps, 64, 64, 2)

        assert len(pages) == 10


class TestShelfPacker:
    """Tests specific to ShelfPacker."""

    def test_shelves(self) -> None:
        """Test glyphs fill a row before starting a shelf below."""
        bitmaps = [GlyphBitmap.blank(cp, 12, 12) for cp in range(65, 70)]

        pages = ShelfPacker().pack(bitmaps, 64, 64, 2)

        rects = [p.rect for p in pages[0].placements]
        assert [r.y for r in rects] == [2, 2, 2, 2, 18]
        assert [r.x for r in rects] == [2, 18, 34, 50, 2]

    def test_new_page_when_height_exhausted(self) -> None:
        """Test a new page opens when no shelf fits below."""
        bitmaps = [GlyphBitmap.blank(cp, 60, 28) for cp in range(65, 68)]

        pages = ShelfPacker().pack(bitmaps, 64, 64, 2)

        assert [len(page.placements) for page in pages] == [2, 1]
        assert pages[1].placements[0].rect == Rect(2, 2, 60, 28)


class TestFreeRectPacker:
    """Tests specific to FreeRectPacker."""

    def test_fills_gaps_left_by_shelves(self) -> None:
        """Test free space beside a tall glyph is reused."""
        rects = [PackRect(1, 32, 64), PackRect(2, 32, 32), PackRect(3, 32, 32)]

        shelf_pages = ShelfPacker().pack_rects(rects, 64, 64, 0)
        free_pages = FreeRectPacker().pack_rects(rects, 64, 64, 0)

        assert len(shelf_pages) == 2
        assert len(free_pages) == 1
        placed = {p.codepoint: p.rect for p in free_pages[0].placements}
        assert placed == {
            1: Rect(0, 0, 32, 64),
            2: Rect(32, 0, 32, 32),
            3: Rect(32, 32, 32, 32),
        }

    def test_earlier_page_reused(self) -> None:
        """Test small glyphs go back to free space on earlier pages."""
        rects = [PackRect(1, 64, 48), PackRect(2, 64, 48), PackRect(3, 16, 16)]

        pages = FreeRectPacker().pack_rects(rects, 64, 64, 0)

        assert len(pages) == 2
        assert pages[0].codepoints() == [1, 3]

    @pytest.mark.parametrize("seed", range(5))
    def test_never_more_pages_than_fast(self, seed: int) -> None:
        """Test efficient packing never uses more pages than fast packing."""
        bitmaps = random_bitmaps(seed, 120, max_size=60)

        fast = ShelfPacker().pack(bitmaps, 128, 128, 2)
        efficient = FreeRectPacker().pack(bitmaps, 128, 128, 2)

        assert len(efficient) <= len(fast)

    def test_shelf_layout_used_when_smaller(self) -> None:
        """Test the shelf layout is returned and logged when it needs fewer pages."""
        rects = [PackRect(cp, 34, 34) for cp in (1, 2, 3)]
        shelf_layout = [Page(index=0, width=64, height=64)]

        with (
            patch.object(ShelfPacker, "_pack_sorted", return_value=shelf_layout),
            capture_logs() as logs,
        ):
            pages = FreeRectPacker().pack_rects(rects, 64, 64, 2)

        assert pages is shelf_layout
        assert logs == [
            {
                "event": "Using shelf layout",
                "log_level": "debug",
                "free_rect_pages": 3,
                "shelf_pages": 1,
            }
        ]

    def test_free_rect_layout_kept_without_logging(self) -> None:
        """Test no shelf fallback when free rectangles use fewer pages."""
        rects = [PackRect(1, 32, 64), PackRect(2, 32, 32), PackRect(3, 32, 32)]

        with capture_logs() as logs:
            pages = FreeRectPacker().pack_rects(rects, 64, 64, 0)

        assert len(pages) == 1
        assert logs == []

    def test_split_keeps_free_rects_disjoint(self) -> None:
        """Test splitting a free rect leaves disjoint rects covering the rest."""
        free_page = _FreePage(Page(index=0, width=64, height=64))

        free_page.split(0, Rect(0, 0, 20, 10))

        free = free_page.free
        assert sum(r.area for r in free) == 64 * 64 - 20 * 10
        for i, a in enumerate(free):
            assert not a.intersects(Rect(0, 0, 20, 10))
            for b in free[i + 1:]:
                assert not a.intersects(b)


class TestPackerSelection:
    """Tests for get_packer and apply_placements."""

    def test_get_packer(self) -> None:
        """Test strategies map to packer classes."""
        assert isinstance(get_packer(PackingStrategy.FAST), ShelfPacker)
        assert isinstance(get_packer(PackingStrategy.EFFICIENT), FreeRectPacker)

    def test_apply_placements(self) -> None:
        """Test bitmaps receive their page and rect."""
        bitmaps = {cp: GlyphBitmap.blank(cp, 10, 10) for cp in (65, 66)}
        pages = ShelfPacker().pack(bitmaps.values(), 32, 32, 2)

        apply_placements(pages, bitmaps)

        assert bitmaps[65].atlas_page == 0
        assert bitmaps[65].atlas_bounds == Rect(2, 2, 10, 10)
        assert bitmaps[66].atlas_bounds == Rect(16, 2, 10, 10)

    def test_apply_placements_twice(self) -> None:
        """Test a bitmap cannot be placed twice."""
        bitmaps = {65: GlyphBitmap.blank(65, 10, 10)}
        pages = ShelfPacker().pack(bitmaps.values(), 32, 32, 2)
        apply_placements(pages, bitmaps)

        with pytest.raises(ValueError):
            apply_placements(pages, bitmaps)
