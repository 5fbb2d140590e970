"""Atlas packing: placing padded glyph rectangles on fixed-size pages.

Two strategies share one interface:

- ShelfPacker: fast shelf packing. Rectangles are laid left to right on
  horizontal shelves of a single open page. O(1) per rectangle, wastes
  space at the end of shelves and pages.
- FreeRectPacker: efficient free-rectangle packing. Each page tracks a set
  of disjoint free rectangles; every rectangle goes to the best-area-fit
  free rectangle over all pages, which is then split in two.

Both sort rectangles by descending height, descending width and ascending
codepoint before packing, so the layout only depends on the input set.
A rectangle larger than an empty page raises PackingError before anything
is placed. Reported glyph rectangles exclude the padding margin.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import ClassVar

import structlog

from sdfatlas.config import PackingStrategy
from sdfatlas.domain import GlyphBitmap, PackRect, Page, Rect
from sdfatlas.exceptions import PackingError


def sort_rects(rects: Iterable[PackRect]) -> list[PackRect]:
    """Sort rectangles in packing order.

    Raises:
        ValueError: If a codepoint appears more than once
    """
    ordered = sorted(rects, key=PackRect.sort_key)
    seen: set[int] = set()
    for rect in ordered:
        if rect.codepoint in seen:
            raise ValueError(f"Duplicate codepoint {rect.codepoint} in pack input")
        seen.add(rect.codepoint)
    return ordered


def check_fits(rects: Iterable[PackRect], page_width: int, page_height: int) -> None:
    """Ensure every rectangle fits in an empty page.

    Raises:
        PackingError: For the first rectangle exceeding the page in any axis
    """
    for rect in rects:
        if rect.width > page_width or rect.height > page_height:
            raise PackingError(
                rect.codepoint,
                required=(rect.width, rect.height),
                limit=(page_width, page_height),
            )


class Packer(ABC):
    """Places padded glyph rectangles on pages of a fixed maximum size."""

    strategy: ClassVar[PackingStrategy]

    def pack(
        self,
        bitmaps: Iterable[GlyphBitmap],
        page_width: int,
        page_height: int,
        padding: int,
    ) -> list[Page]:
        """Pack glyph bitmaps.

        Args:
            bitmaps: Generated glyph bitmaps
            page_width: Maximum page width in pixels
            page_height: Maximum page height in pixels
            padding: Margin around each glyph in pixels

        Returns:
            Pages with glyph placements, padding excluded from glyph rects

        Raises:
            PackingError: If a padded glyph is larger than a page
        """
        rects = [
            PackRect.padded(b.codepoint, b.width, b.height, padding)
            for b in bitmaps
        ]
        return self.pack_rects(rects, page_width, page_height, padding)

    def pack_rects(
        self,
        rects: Iterable[PackRect],
        page_width: int,
        page_height: int,
        padding: int,
    ) -> list[Page]:
        """Pack rectangles that already include their padding margin.

        Args:
            rects: Padded rectangles to pack
            page_width: Maximum page width in pixels
            page_height: Maximum page height in pixels
            padding: Margin included in each rectangle, per side

        Returns:
            Pages with glyph placements, padding excluded from glyph rects

        Raises:
            PackingError: If a rectangle is larger than a page
        """
        ordered = sort_rects(rects)
        check_fits(ordered, page_width, page_height)
        return self._pack_sorted(ordered, page_width, page_height, padding)

    @abstractmethod
    def _pack_sorted(
        self,
        rects: Sequence[PackRect],
        page_width: int,
        page_height: int,
        padding: int,
    ) -> list[Page]:
        """Pack rectangles already sorted and known to fit a page."""


class ShelfPacker(Packer):
    """Fast shelf packing on a single open page.

    Rectangles are placed left to right along the current shelf. When the
    shelf is full a new shelf starts below it; when no new shelf fits the
    page height a new page is opened. Closed pages are never revisited.
    """

    strategy = PackingStrategy.FAST

    def _pack_sorted(
        self,
        rects: Sequence[PackRect],
        page_width: int,
        page_height: int,
        padding: int,
    ) -> list[Page]:
        pages: list[Page] = []
        page: Page | None = None
        shelf_y = 0
        shelf_height = 0
        cursor_x = 0

        for rect in rects:
            if page is None:
                page = Page(index=0, width=page_width, height=page_height)
                pages.append(page)

            if cursor_x + rect.width > page_width:
                # Shelf full
                shelf_y += shelf_height
                shelf_height = 0
                cursor_x = 0

            if shelf_y + rect.height > page_height:
                page = Page(index=len(pages), width=page_width, height=page_height)
                pages.append(page)
                shelf_y = 0
                shelf_height = 0
                cursor_x = 0

            padded = Rect(cursor_x, shelf_y, rect.width, rect.height)
            page.place(rect.codepoint, padded.inset(padding))
            cursor_x += rect.width
            shelf_height = max(shelf_height, rect.height)

        return pages


class _FreePage:
    """A page under construction with its free rectangles."""

    def __init__(self, page: Page) -> None:
        self.page = page
        self.free: list[Rect] = [page.bounds]

    def split(self, free_index: int, used: Rect) -> None:
        """Replace a free rectangle by what is left after placing a rectangle.

        The leftover is cut along its shorter axis, yielding at most two
        disjoint free rectangles.
        """
        free = self.free.pop(free_index)
        leftover_w = free.width - used.width
        leftover_h = free.height - used.height

        if leftover_w < leftover_h:
            right = Rect(used.right, free.y, leftover_w, used.height)
            below = Rect(free.x, used.bottom, free.width, leftover_h)
        else:
            right = Rect(used.right, free.y, leftover_w, free.height)
            below = Rect(free.x, used.bottom, used.width, leftover_h)

        for part in (right, below):
            if part.area > 0:
                self.free.append(part)
        self._prune()

    def _prune(self) -> None:
        """Drop contained free rectangles and merge edge-sharing neighbours."""
        merged = True
        while merged:
            merged = False
            for i in range(len(self.free)):
                for j in range(i + 1, len(self.free)):
                    a = self.free[i]
                    b = self.free[j]
                    combined = _merge(a, b)
                    if combined is not None:
                        self.free[i] = combined
                        del self.free[j]
                        merged = True
                        break
                if merged:
                    break


def _merge(a: Rect, b: Rect) -> Rect | None:
    """Merge two free rectangles if their union is a rectangle."""
    if a.contains(b):
        return a
    if b.contains(a):
        return b
    if a.x == b.x and a.width == b.width:
        if a.bottom == b.y:
            return Rect(a.x, a.y, a.width, a.height + b.height)
        if b.bottom == a.y:
            return Rect(a.x, b.y, a.width, a.height + b.height)
    if a.y == b.y and a.height == b.height:
        if a.right == b.x:
            return Rect(a.x, a.y, a.width + b.width, a.height)
        if b.right == a.x:
            return Rect(b.x, a.y, a.width + b.width, a.height)
    return None


class FreeRectPacker(Packer):
    """Efficient best-area-fit packing over disjoint free rectangles.

    Every rectangle goes to the free rectangle with the smallest leftover
    area on any open page (ties: shorter leftover side, lower page, higher
    position, leftmost position). A new page is opened only if no free
    rectangle can hold it.

    When the shelf layout of the same sorted input needs fewer pages,
    that layout is returned instead, so the result never uses more
    pages than ShelfPacker.
    """

    strategy = PackingStrategy.EFFICIENT

    def _pack_sorted(
        self,
        rects: Sequence[PackRect],
        page_width: int,
        page_height: int,
        padding: int,
    ) -> list[Page]:
        free_pages: list[_FreePage] = []

        for rect in rects:
            if rect.width == 0 or rect.height == 0:
                # Zero-area rectangles never overlap anything
                if not free_pages:
                    free_pages.append(self._new_page(0, page_width, page_height))
                padded = Rect(0, 0, rect.width, rect.height)
                free_pages[0].page.place(rect.codepoint, padded.inset(padding))
                continue

            best = self._find_best(free_pages, rect)
            if best is None:
                free_pages.append(
                    self._new_page(len(free_pages), page_width, page_height)
                )
                # A fresh page holds a single free rectangle covering it
                best = (len(free_pages) - 1, 0)

            page_index, free_index = best
            target = free_pages[page_index]
            free = target.free[free_index]
            padded = Rect(free.x, free.y, rect.width, rect.height)
            target.page.place(rect.codepoint, padded.inset(padding))
            target.split(free_index, padded)

        pages = [fp.page for fp in free_pages]

        shelf_pages = ShelfPacker()._pack_sorted(rects, page_width, page_height, padding)
        if len(shelf_pages) < len(pages):
            structlog.get_logger("sdfatlas.packer").debug(
                "Using shelf layout",
                free_rect_pages=len(pages),
                shelf_pages=len(shelf_pages),
            )
            return shelf_pages
        return pages

    @staticmethod
    def _new_page(index: int, page_width: int, page_height: int) -> _FreePage:
        return _FreePage(Page(index=index, width=page_width, height=page_height))

    @staticmethod
    def _find_best(
        free_pages: Sequence[_FreePage],
        rect: PackRect,
    ) -> tuple[int, int] | None:
        """Find (page index, free rectangle index) of the best fit."""
        best: tuple[int, int] | None = None
        best_score: tuple[int, int, int, int, int] | None = None
        for page_index, free_page in enumerate(free_pages):
            for free_index, free in enumerate(free_page.free):
                if rect.width > free.width or rect.height > free.height:
                    continue
                score = (
                    free.area - rect.width * rect.height,
                    min(free.width - rect.width, free.height - rect.height),
                    page_index,
                    free.y,
                    free.x,
                )
                if best_score is None or score < best_score:
                    best_score = score
                    best = (page_index, free_index)
        return best


_PACKERS: dict[PackingStrategy, type[Packer]] = {
    PackingStrategy.FAST: ShelfPacker,
    PackingStrategy.EFFICIENT: FreeRectPacker,
}


def get_packer(strategy: PackingStrategy) -> Packer:
    """Create the packer implementing a strategy."""
    return _PACKERS[strategy]()


def apply_placements(pages: Iterable[Page], bitmaps: Mapping[int, GlyphBitmap]) -> None:
    """Assign atlas bounds to every packed bitmap.

    Args:
        pages: Packed pages
        bitmaps: Bitmaps by codepoint

    Raises:
        ValueError: If a bitmap is placed twice
    """
    for page in pages:
        for placement in page.placements:
            bitmaps[placement.codepoint].assign_atlas_bounds(page.index, placement.rect)
