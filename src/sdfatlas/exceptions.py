"""Exception hierarchy for sdfatlas."""


def format_codepoint(codepoint: int) -> str:
    """Format a codepoint as ``U+XXXX``."""
    return f"U+{codepoint:04X}"


class AtlasError(Exception):
    """Base exception for all sdfatlas errors."""

    pass


class FontLoadError(AtlasError):
    """Error loading a font file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load font '{path}': {reason}")


class CharsetError(AtlasError):
    """Error resolving a charset from a builtin name or a file."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid charset '{source}': {reason}")


class GenerationError(AtlasError):
    """Distance field generation failed for a codepoint.

    Aborts the whole batch: no atlas is assembled from a failed batch.
    """

    def __init__(self, codepoint: int, reason: str) -> None:
        self.codepoint = codepoint
        self.reason = reason
        super().__init__(
            f"Generation failed for {format_codepoint(codepoint)}: {reason}"
        )


class GlyphMissingError(GenerationError):
    """The font has no glyph for the requested codepoint."""

    def __init__(self, codepoint: int, font: str) -> None:
        self.font = font
        super().__init__(codepoint, f"no glyph in font '{font}'")


class GenerationTimeoutError(GenerationError):
    """A generation call did not complete within the configured timeout."""

    def __init__(self, codepoint: int, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(codepoint, f"timed out after {timeout:g}s")


class PackingError(AtlasError):
    """A padded glyph rectangle does not fit in an empty page."""

    def __init__(
        self,
        codepoint: int,
        required: tuple[int, int],
        limit: tuple[int, int],
    ) -> None:
        self.codepoint = codepoint
        self.required = required
        self.limit = limit
        super().__init__(
            f"Glyph {format_codepoint(codepoint)} needs "
            f"{required[0]}x{required[1]} px with padding, "
            f"page limit is {limit[0]}x{limit[1]} px"
        )


class AssemblyInvariantViolation(AtlasError, AssertionError):
    """A placement does not fit its page buffer.

    Signals a packer/assembler contract bug, never a user error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class AtlasWriteError(AtlasError):
    """Error writing a descriptor or page image."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write '{path}': {reason}")
