"""Distance field generation with the msdfgen executable.

The MsdfgenGenerator implements the DistanceFieldGenerator protocol by
running msdfgen once per glyph (twice when an alpha field is requested).
Glyph frames are computed from fontTools metrics so every bitmap tightly
fits its outline plus the distance range.
"""

import math
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

from sdfatlas.config import AlphaFieldType, FieldType
from sdfatlas.domain import Bounds, GenerationRequest, GlyphBitmap
from sdfatlas.exceptions import GenerationError, GenerationTimeoutError, GlyphMissingError
from sdfatlas.io.reader import FontReader


@dataclass(frozen=True, slots=True)
class GlyphFrame:
    """Bitmap size and shape transform for one glyph.

    Attributes:
        width: Bitmap width in pixels
        height: Bitmap height in pixels
        scale: Pixels per font unit
        translate_x: X translation in font units, applied before scaling
        translate_y: Y translation in font units, applied before scaling
        pixel_bounds: Outline bounding box in bitmap pixels
    """

    width: int
    height: int
    scale: float
    translate_x: float
    translate_y: float
    pixel_bounds: Bounds


def compute_frame(
    bounds: Bounds,
    font_size: int,
    units_per_em: int,
    distance_range: int,
) -> GlyphFrame:
    """Fit a bitmap around an outline with half the range on every side.

    Args:
        bounds: Outline bounds in font units
        font_size: Font size in pixels per em
        units_per_em: Font units per em
        distance_range: Distance range in pixels

    Returns:
        GlyphFrame for msdfgen
    """
    scale = font_size / units_per_em
    margin = distance_range / 2
    outline_w = bounds.width * scale
    outline_h = bounds.height * scale
    return GlyphFrame(
        width=math.ceil(outline_w + distance_range),
        height=math.ceil(outline_h + distance_range),
        scale=scale,
        translate_x=margin / scale - bounds.left,
        translate_y=margin / scale - bounds.bottom,
        pixel_bounds=Bounds(margin, margin, margin + outline_w, margin + outline_h),
    )


class MsdfgenGenerator:
    """Generates glyph distance fields by invoking msdfgen.

    Example:
        with FontReader(Path("font.ttf")) as reader:
            generator = MsdfgenGenerator(reader, msdfgen_path="msdfgen")
            bitmap = generator.generate(request)
    """

    def __init__(
        self,
        reader: FontReader,
        msdfgen_path: str = "msdfgen",
        timeout: float | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            reader: Loaded reader of the font named in requests
            msdfgen_path: Path or command name of the msdfgen executable
            timeout: Timeout of a single msdfgen run in seconds
        """
        self._reader = reader
        self._msdfgen = msdfgen_path
        self._timeout = timeout

    @staticmethod
    def find_executable(msdfgen_path: str) -> str | None:
        """Resolve the msdfgen executable, or None if it cannot be run."""
        return shutil.which(msdfgen_path)

    def generate(self, request: GenerationRequest) -> GlyphBitmap:
        """Generate the distance field bitmap of one glyph.

        Args:
            request: Generation request

        Returns:
            GlyphBitmap with pixels and metrics

        Raises:
            GlyphMissingError: If the font has no glyph for the codepoint
            GenerationTimeoutError: If msdfgen exceeds the timeout
            GenerationError: If msdfgen fails or its output is malformed
        """
        metrics = self._reader.glyph_metrics(request.codepoint)
        if metrics is None:
            raise GlyphMissingError(request.codepoint, str(request.font))

        channels = request.channel_count
        if metrics.bounds is None:
            return GlyphBitmap(
                codepoint=request.codepoint,
                width=0,
                height=0,
                channels=channels,
                pixels=np.zeros((0, 0, channels), dtype=np.uint8),
                advance=metrics.advance,
            )

        frame = compute_frame(
            metrics.bounds,
            request.font_size,
            self._reader.units_per_em,
            request.distance_range,
        )
        pixels = self._run(request, request.field_type.value, frame)
        if request.alpha_field_type is not AlphaFieldType.NONE:
            alpha = self._run(request, request.alpha_field_type.value, frame)
            pixels = np.concatenate([pixels, alpha], axis=2)

        return GlyphBitmap(
            codepoint=request.codepoint,
            width=frame.width,
            height=frame.height,
            channels=channels,
            pixels=pixels,
            advance=metrics.advance,
            plane_bounds=metrics.bounds,
            pixel_bounds=frame.pixel_bounds,
        )

    def build_command(
        self,
        request: GenerationRequest,
        mode: str,
        frame: GlyphFrame,
        output: Path,
    ) -> list[str]:
        """Build the msdfgen command line for one field.

        The frame's scale and translation are in font units, so msdfgen
        is told not to normalize outlines to its legacy 1/64 units.
        """
        return [
            self._msdfgen,
            mode,
            "-font",
            str(request.font),
            f"0x{request.codepoint:X}",
            "-noemnormalize",
            "-size",
            str(frame.width),
            str(frame.height),
            "-pxrange",
            str(request.distance_range),
            "-scale",
            f"{frame.scale:.12g}",
            "-translate",
            f"{frame.translate_x:.12g}",
            f"{frame.translate_y:.12g}",
            "-format",
            "bin",
            "-o",
            str(output),
        ]

    def _run(
        self,
        request: GenerationRequest,
        mode: str,
        frame: GlyphFrame,
    ) -> npt.NDArray[np.uint8]:
        """Run msdfgen for one field and read its raw output.

        Returns:
            uint8 array of shape (height, width, channels), top row first
        """
        channels = FieldType(mode).channel_count
        with tempfile.TemporaryDirectory(prefix="sdfatlas-") as tmp:
            output = Path(tmp) / f"{request.codepoint:X}-{mode}.bin"
            cmd = self.build_command(request, mode, frame, output)
            try:
                completed = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self._timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                raise GenerationTimeoutError(request.codepoint, e.timeout) from e
            except OSError as e:
                raise GenerationError(
                    request.codepoint,
                    f"could not run msdfgen '{self._msdfgen}': {e}",
                ) from e

            if completed.returncode != 0:
                message = (completed.stderr or completed.stdout).strip()
                raise GenerationError(
                    request.codepoint,
                    f"msdfgen exited with code {completed.returncode}: {message}",
                )

            try:
                data = output.read_bytes()
            except OSError as e:
                raise GenerationError(
                    request.codepoint, f"msdfgen produced no output: {e}"
                ) from e

        expected = frame.width * frame.height * channels
        if len(data) != expected:
            raise GenerationError(
                request.codepoint,
                f"msdfgen output has {len(data)} bytes, expected {expected}",
            )

        # msdfgen writes the bottom row first
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(
            frame.height, frame.width, channels
        )
        return np.ascontiguousarray(pixels[::-1])
