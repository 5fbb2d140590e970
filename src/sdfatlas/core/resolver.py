"""Resolve a charset into glyph generation requests."""

from collections.abc import Iterable
from pathlib import Path

from sdfatlas.config import GenerationConfig
from sdfatlas.domain import GenerationRequest


def resolve_requests(
    codepoints: Iterable[int],
    font: Path,
    config: GenerationConfig,
) -> list[GenerationRequest]:
    """Create one generation request per codepoint.

    Codepoints are expected deduplicated and sorted; request order follows
    input order. The alpha field type is the effective one, so mtsdf
    requests never carry a separate alpha field.

    Args:
        codepoints: Sorted unique codepoints
        font: Path of the font file
        config: Validated generation configuration

    Returns:
        List of generation requests, in codepoint order
    """
    alpha_field_type = config.effective_alpha_field_type
    return [
        GenerationRequest(
            codepoint=codepoint,
            font=font,
            field_type=config.field_type,
            alpha_field_type=alpha_field_type,
            font_size=config.font_size,
            distance_range=config.distance_range,
        )
        for codepoint in codepoints
    ]
