"""Atlas writer for descriptors and page images.

This module provides the AtlasWriter class for writing an atlas descriptor
(JSON or BMFont text) and one PNG image per page.
"""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from sdfatlas.config import DescriptorFormat
from sdfatlas.core import PageBuffer
from sdfatlas.domain import AtlasDescriptor
from sdfatlas.exceptions import AtlasWriteError

# PIL image mode by channel count
IMAGE_MODES = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}


def page_image(buffer: PageBuffer) -> Image.Image:
    """Convert a page buffer to a PIL image.

    Raises:
        ValueError: If the buffer has an unsupported channel count
    """
    channels = buffer.shape[2]
    if channels not in IMAGE_MODES:
        raise ValueError(f"Unsupported channel count: {channels}")
    data = buffer[:, :, 0] if channels == 1 else buffer
    return Image.fromarray(np.ascontiguousarray(data))


def render_fnt(descriptor: AtlasDescriptor, page_files: Sequence[str]) -> str:
    """Render a descriptor in the BMFont text format.

    Glyph offsets and advances are converted from font units to pixels.
    A trailing distanceField line records the field type and range.

    Raises:
        ValueError: If the descriptor has no font metrics
    """
    metrics = descriptor.metrics
    if metrics is None:
        raise ValueError("BMFont output requires font metrics")

    scale = descriptor.font_size / metrics.units_per_em
    margin = descriptor.distance_range / 2
    base = metrics.ascender * scale
    pad = descriptor.padding
    first_page = descriptor.pages[0] if descriptor.pages else None
    scale_w = first_page.width if first_page else 0
    scale_h = first_page.height if first_page else 0
    face = descriptor.font_name or ""

    lines = [
        f'info face="{face}" size={descriptor.font_size} bold=0 italic=0 charset="" '
        f"unicode=1 stretchH=100 smooth=1 aa=1 padding={pad},{pad},{pad},{pad} spacing=0,0",
        f"common lineHeight={round(metrics.line_height * scale)} base={round(base)} "
        f"scaleW={scale_w} scaleH={scale_h} pages={len(descriptor.pages)} packed=0",
    ]
    for index, file_name in enumerate(page_files):
        lines.append(f'page id={index} file="{file_name}"')

    lines.append(f"chars count={descriptor.glyph_count}")
    for index, page in enumerate(descriptor.pages):
        for glyph in page.glyphs:
            plane = glyph.plane_bounds
            x_offset = round(plane.left * scale - margin) if glyph.width else 0
            y_offset = round(base - plane.top * scale - margin) if glyph.height else 0
            lines.append(
                f"char id={glyph.codepoint} x={glyph.x} y={glyph.y} "
                f"width={glyph.width} height={glyph.height} "
                f"xoffset={x_offset} yoffset={y_offset} "
                f"xadvance={round(glyph.advance * scale)} page={index} chnl=15"
            )

    lines.append(
        f"distanceField fieldType={descriptor.field_type.value} "
        f"alphaFieldType={descriptor.alpha_field_type.value} "
        f"distanceRange={descriptor.distance_range}"
    )
    return "\n".join(lines) + "\n"


class AtlasWriter:
    """Writes an atlas descriptor and its page images.

    A single page is written as ``{name}.png``, several pages as
    ``{name}_{index}.png``.

    Example:
        writer = AtlasWriter(Path("out"), "Roboto-Regular")
        paths = writer.write(result.descriptor, result.page_buffers)
    """

    def __init__(
        self,
        output_dir: Path,
        name: str,
        descriptor_format: DescriptorFormat = DescriptorFormat.JSON,
        compression_level: int = 9,
    ) -> None:
        """Initialize the atlas writer.

        Args:
            output_dir: Directory receiving the files
            name: Base name of the output files
            descriptor_format: Descriptor format (json or fnt)
            compression_level: zlib compression level of PNG pages, 0-9
        """
        self._output_dir = output_dir
        self._name = name
        self._format = descriptor_format
        self._compression_level = compression_level

    @property
    def descriptor_path(self) -> Path:
        return self._output_dir / f"{self._name}.{self._format.value}"

    def page_paths(self, page_count: int) -> list[Path]:
        """Return the image path of every page."""
        if page_count == 1:
            return [self._output_dir / f"{self._name}.png"]
        return [self._output_dir / f"{self._name}_{i}.png" for i in range(page_count)]

    def write(
        self,
        descriptor: AtlasDescriptor,
        page_buffers: Sequence[PageBuffer],
    ) -> list[Path]:
        """Write the descriptor and all page images.

        Args:
            descriptor: Finalized atlas descriptor
            page_buffers: One buffer per descriptor page

        Returns:
            Paths of written files, descriptor first

        Raises:
            AtlasWriteError: If a file cannot be written
        """
        if len(page_buffers) != len(descriptor.pages):
            raise AtlasWriteError(
                str(self._output_dir),
                f"{len(page_buffers)} page buffers for {len(descriptor.pages)} pages",
            )

        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AtlasWriteError(str(self._output_dir), str(e)) from e

        page_paths = self.page_paths(len(page_buffers))
        for buffer, path in zip(page_buffers, page_paths, strict=True):
            self.write_page(buffer, path)

        page_files = [path.name for path in page_paths]
        if self._format is DescriptorFormat.FNT:
            try:
                content = render_fnt(descriptor, page_files)
            except ValueError as e:
                raise AtlasWriteError(str(self.descriptor_path), str(e)) from e
        else:
            content = json.dumps(self.descriptor_json(descriptor, page_files), indent=2)

        try:
            self.descriptor_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise AtlasWriteError(str(self.descriptor_path), str(e)) from e

        return [self.descriptor_path, *page_paths]

    def write_page(self, buffer: PageBuffer, path: Path) -> None:
        """Encode one page buffer as PNG.

        Raises:
            AtlasWriteError: If the image cannot be written
        """
        try:
            image = page_image(buffer)
            image.save(path, format="PNG", compress_level=self._compression_level)
        except (OSError, ValueError) as e:
            raise AtlasWriteError(str(path), str(e)) from e

    @staticmethod
    def descriptor_json(
        descriptor: AtlasDescriptor,
        page_files: Sequence[str],
    ) -> dict[str, Any]:
        """Descriptor dictionary with the image file name of every page."""
        data = descriptor.to_dict()
        for page, file_name in zip(data["pages"], page_files, strict=True):
            page["file"] = file_name
        return data

    @staticmethod
    def get_atlas_name(font_path: Path) -> str:
        """Base name of the atlas files for a font: the font file stem."""
        return font_path.stem
