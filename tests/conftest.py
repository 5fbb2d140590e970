"""Shared fixtures: a deterministic stub generator and a tiny test font."""

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

import numpy as np
import pytest
import structlog
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from sdfatlas.domain import EMPTY_BOUNDS, Bounds, GenerationRequest, GlyphBitmap
from sdfatlas.exceptions import GenerationError

# Test font geometry: 1024 units per em so that power-of-two font sizes
# give exact scales.
TEST_FONT_UPM = 1024
TEST_FONT_A_BOUNDS = (128, 0, 640, 768)


def fill_value(codepoint: int) -> int:
    """Pixel value the stub generator writes for a codepoint."""
    return codepoint % 251 + 1


class StubGenerator:
    """Deterministic generator producing filled bitmaps of configured sizes."""

    def __init__(
        self,
        sizes: dict[int, tuple[int, int]] | None = None,
        default_size: tuple[int, int] = (10, 10),
        fail: Iterable[int] = (),
    ) -> None:
        self.sizes = sizes or {}
        self.default_size = default_size
        self.fail = set(fail)
        self.calls: list[int] = []
        self._lock = threading.Lock()

    def generate(self, request: GenerationRequest) -> GlyphBitmap:
        with self._lock:
            self.calls.append(request.codepoint)
        if request.codepoint in self.fail:
            raise GenerationError(request.codepoint, "stub failure")

        width, height = self.sizes.get(request.codepoint, self.default_size)
        channels = request.channel_count
        pixels = np.full(
            (height, width, channels), fill_value(request.codepoint), dtype=np.uint8
        )
        plane_bounds = (
            Bounds(0.0, 0.0, float(width), float(height))
            if width and height
            else EMPTY_BOUNDS
        )
        return GlyphBitmap(
            codepoint=request.codepoint,
            width=width,
            height=height,
            channels=channels,
            pixels=pixels,
            advance=float(width),
            plane_bounds=plane_bounds,
        )


@pytest.fixture
def make_stub() -> Callable[..., StubGenerator]:
    """Factory for stub generators."""
    return StubGenerator


@pytest.fixture(autouse=True)
def reset_root_handlers():
    """Remove log handlers added by configure_logging during a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    structlog.reset_defaults()


@pytest.fixture
def logger() -> structlog.stdlib.BoundLogger:
    """Logger that does not create log files."""
    return structlog.get_logger("sdfatlas.tests")


def _rectangle(x_min: int, y_min: int, x_max: int, y_max: int):
    pen = TTGlyphPen(None)
    pen.moveTo((x_min, y_min))
    pen.lineTo((x_min, y_max))
    pen.lineTo((x_max, y_max))
    pen.lineTo((x_max, y_min))
    pen.closePath()
    return pen.glyph()


@pytest.fixture
def test_font(tmp_path: Path) -> Path:
    """TrueType font with an outlined 'A', an empty space and .notdef."""
    builder = FontBuilder(TEST_FONT_UPM, isTTF=True)
    builder.setupGlyphOrder([".notdef", "A", "space"])
    builder.setupCharacterMap({0x41: "A", 0x20: "space"})
    builder.setupGlyf(
        {
            ".notdef": _rectangle(64, 0, 448, 768),
            "A": _rectangle(*TEST_FONT_A_BOUNDS),
            "space": TTGlyphPen(None).glyph(),
        }
    )
    builder.setupHorizontalMetrics(
        {".notdef": (512, 64), "A": (768, 128), "space": (256, 0)}
    )
    builder.setupHorizontalHeader(ascent=820, descent=-204)
    builder.setupNameTable({"familyName": "Test Sans", "styleName": "Regular"})
    builder.setupOS2(sTypoAscender=820, sTypoDescender=-204, usWinAscent=820, usWinDescent=204)
    builder.setupPost()

    path = tmp_path / "TestSans-Regular.ttf"
    builder.save(str(path))
    return path
