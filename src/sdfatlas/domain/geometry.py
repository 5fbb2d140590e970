"""Integer rectangles used for atlas layout.

Coordinates are in page pixels with the origin at the top-left corner and
the Y axis pointing down, matching image row order.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned integer rectangle.

    Attributes:
        x: Left edge
        y: Top edge
        width: Width in pixels
        height: Height in pixels
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def intersects(self, other: "Rect") -> bool:
        """Check if two rectangles share any pixel."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def contains(self, other: "Rect") -> bool:
        """Check if another rectangle lies entirely inside this one."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def inset(self, amount: int) -> "Rect":
        """Shrink the rectangle by the same amount on all four sides."""
        return Rect(
            self.x + amount,
            self.y + amount,
            self.width - 2 * amount,
            self.height - 2 * amount,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class PackRect:
    """A glyph rectangle to pack, padding margin included on all sides.

    Attributes:
        codepoint: Codepoint of the glyph
        width: Glyph width plus twice the padding
        height: Glyph height plus twice the padding
    """

    codepoint: int
    width: int
    height: int

    @classmethod
    def padded(cls, codepoint: int, width: int, height: int, padding: int) -> "PackRect":
        """Create a pack rectangle from unpadded glyph dimensions."""
        return cls(codepoint, width + 2 * padding, height + 2 * padding)

    def sort_key(self) -> tuple[int, int, int]:
        """Descending height, then descending width, then ascending codepoint."""
        return (-self.height, -self.width, self.codepoint)
