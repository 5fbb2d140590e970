"""Builtin charsets and charset loading.

Builtin charsets are defined once at import time and exposed through a
read-only mapping. A charset resolves to a sorted tuple of unique codepoints.
"""

from pathlib import Path
from types import MappingProxyType

from sdfatlas.exceptions import CharsetError


def _chars(*ranges: tuple[int, int]) -> str:
    """Build a string from inclusive codepoint ranges."""
    return "".join(chr(cp) for start, end in ranges for cp in range(start, end + 1))


def _decode(encoding: str, start: int, end: int, exclude: str = "") -> str:
    """Decode a byte range of a legacy code page, skipping undefined bytes."""
    text = bytes(range(start, end + 1)).decode(encoding, errors="ignore")
    return "".join(c for c in text if c not in exclude)


_ASCII = _chars((0x20, 0x7E))

_LATIN_EXTENDED_A = _chars((0x100, 0x17F))

_GREEK = _chars(
    (0x374, 0x375),
    (0x37A, 0x37E),
    (0x384, 0x38A),
    (0x38C, 0x38C),
    (0x38E, 0x3A1),
    (0x3A3, 0x3FF),
)

_CYRILLIC = _chars((0x400, 0x527))

_PUNCTUATION = _chars(
    (0x2000, 0x200F),
    (0x2012, 0x2022),
    (0x2026, 0x2026),
    (0x202A, 0x2030),
    (0x2032, 0x2034),
    (0x2039, 0x203A),
    (0x203C, 0x203C),
    (0x203E, 0x203E),
    (0x2044, 0x2044),
    (0x205E, 0x205E),
    (0x206A, 0x206F),
)

_CURRENCY = _chars((0x20A0, 0x20A9), (0x20AB, 0x20B5), (0x20B9, 0x20BA))

_LATIN_EXTENDED_C = _chars((0x2C60, 0x2C6D), (0x2C71, 0x2C77))

_LATIN_0 = _ASCII + _decode("iso8859_1", 0xA0, 0xFF)

BUILTIN_CHARSETS: MappingProxyType[str, str] = MappingProxyType({
    "test": " A@jp&ÂO!-$",
    # Printable ASCII
    "ascii": _ASCII,
    # Code page 437 up to 255 minus box drawing chars and integral halves
    "ascii-extended": (
        _ASCII
        + _decode("cp437", 0x80, 0xAF)
        + _decode("cp437", 0xE0, 0xFF, exclude="⌠⌡")
    ),
    # ISO/IEC 8859-1
    "latin-0": _LATIN_0,
    # ISO/IEC 8859-15
    "latin-9": _ASCII + _decode("iso8859_15", 0xA0, 0xFF),
    # Superset of latin-0
    "windows-1252": _ASCII + _decode("cp1252", 0x80, 0xFF),
    # Hiero's extended charset
    "extended": (
        _LATIN_0
        + _LATIN_EXTENDED_A
        + _GREEK
        + _CYRILLIC
        + _PUNCTUATION
        + _CURRENCY
        + _LATIN_EXTENDED_C
    ),
})


def sorted_codepoints(text: str) -> tuple[int, ...]:
    """Deduplicate and sort the characters of a charset string.

    Args:
        text: Charset characters

    Returns:
        Sorted tuple of unique codepoints
    """
    return tuple(sorted({ord(c) for c in text}))


def load_charset(source: str) -> tuple[int, ...]:
    """Resolve a builtin charset name or a UTF-8 charset file.

    Line breaks in charset files are ignored.

    Args:
        source: Builtin charset name or path to a text file

    Returns:
        Sorted tuple of unique codepoints

    Raises:
        CharsetError: If the file cannot be read or the charset is empty
    """
    text = BUILTIN_CHARSETS.get(source)
    if text is None:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CharsetError(source, f"could not read charset file: {e}") from e
        text = text.replace("\r", "").replace("\n", "")

    codepoints = sorted_codepoints(text)
    if not codepoints:
        raise CharsetError(source, "charset is empty")
    return codepoints
