"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars, tables, and formatted messages.
"""


from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from sdfatlas.config import AtlasSettings

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_WARN = "!"  # Warning
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for glyph generation.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]sdfatlas[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{SYM_WARN} Warning:[/yellow] {message}")


def print_settings_summary(settings: AtlasSettings, charset_size: int, output_dir: str) -> None:
    """Print a summary of the parameter values.

    Args:
        settings: Validated settings
        charset_size: Number of codepoints in the charset
        output_dir: Output directory
    """
    generation = settings.generation
    packing = settings.packing
    line = Text("  Output: ")
    line.append(output_dir)
    console.print(line)
    console.print(
        f"  Field type: {generation.field_type.value} {SYM_DOT} "
        f"alpha: {generation.effective_alpha_field_type.value} {SYM_DOT} "
        f"{generation.channel_count} channels"
        + (" with alpha" if generation.has_alpha_channel else "")
    )
    console.print(
        f"  Font size: {generation.font_size} px {SYM_DOT} "
        f"distance range: {generation.distance_range} px"
    )
    console.print(
        f"  Texture size: {packing.page_width} x {packing.page_height} px {SYM_DOT} "
        f"padding: {packing.padding} px {SYM_DOT} {packing.strategy.value} packing"
    )
    console.print(
        f"  Charset: {charset_size} chars {SYM_DOT} "
        f"compression level: {settings.output.compression_level}"
    )


def print_font_info(font_path: str, font_type: str, glyph_count: int, upm: int) -> None:
    """Print font information.

    Args:
        font_path: Path to the font file
        font_type: Font format type (e.g., "TrueType", "OpenType")
        glyph_count: Total number of glyphs in font
        upm: Units per em value
    """
    # Use Text to safely handle paths with special characters
    line1 = Text("  ")
    line1.append(font_path)
    line1.append(f" ({font_type})")
    console.print(line1)
    console.print(f"  {glyph_count:,} glyphs {SYM_DOT} {upm:,} UPM")


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_processing_info(workers: int, is_auto: bool = False) -> None:
    """Print processing configuration.

    Args:
        workers: Number of parallel workers
        is_auto: Whether the count was auto-detected
    """
    auto_suffix = " (auto)" if is_auto else ""
    console.print(f"  {workers} workers{auto_suffix} {SYM_DOT} Ctrl+C to cancel")


def print_success(
    output_paths: list[str],
    total_time_s: float,
    glyphs: int,
    pages: int,
    avg_time_ms: float | None = None,
    min_time_ms: float | None = None,
    max_time_ms: float | None = None,
) -> None:
    """Print success message with summary.

    Args:
        output_paths: Paths of written files
        total_time_s: Total processing time in seconds
        glyphs: Number of glyphs in the atlas
        pages: Number of atlas pages
        avg_time_ms: Average generation time per glyph in milliseconds
        min_time_ms: Minimum generation time per glyph in milliseconds
        max_time_ms: Maximum generation time per glyph in milliseconds
    """
    time_str = _format_time(total_time_s)

    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    for path in output_paths:
        line = Text("  ")
        line.append(path, style="bold")
        console.print(line)

    plural = "page" if pages == 1 else "pages"
    console.print(f"  {glyphs} glyphs {SYM_DOT} {pages} {plural}")

    if avg_time_ms is not None:
        timing_str = f"{avg_time_ms:.1f}ms avg"
        if min_time_ms is not None and max_time_ms is not None:
            timing_str += f" ({min_time_ms:.1f}–{max_time_ms:.1f}ms range)"
        console.print(f"  {timing_str}")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print("  No output files created")
