"""CLI application entry point for sdfatlas.

This module provides the main CLI interface using Typer.
"""

import os
from pathlib import Path
from typing import Annotated

import structlog
import typer
from pydantic import ValidationError

from sdfatlas import __version__
from sdfatlas.cli.output import (
    console,
    create_progress,
    print_cancellation_notice,
    print_error,
    print_font_info,
    print_header,
    print_processing_info,
    print_settings_summary,
    print_step,
    print_success,
    print_warning,
)
from sdfatlas.config import (
    AlphaFieldType,
    AtlasSettings,
    DescriptorFormat,
    FieldType,
    GenerationConfig,
    LoggingConfig,
    OutputConfig,
    PackingConfig,
    PackingStrategy,
    ProcessingConfig,
    load_charset,
)
from sdfatlas.core import AtlasPipeline
from sdfatlas.exceptions import AtlasError, AtlasWriteError, FontLoadError
from sdfatlas.io import AtlasWriter, FontReader, MsdfgenGenerator
from sdfatlas.utils import configure_logging

# Create the Typer app
app = typer.Typer(
    name="sdfatlas",
    help="Generate signed distance field font atlases with msdfgen.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]sdfatlas[/bold blue] v{__version__}")
        raise typer.Exit()


@app.command()
def generate(
    fonts: Annotated[
        list[Path],
        typer.Argument(
            help="Paths to input TTF/OTF font files",
            show_default=False,
        ),
    ],
    msdfgen: Annotated[
        str,
        typer.Option(
            "--msdfgen",
            "-g",
            help="Path of the msdfgen executable",
        ),
    ] = "msdfgen",
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory of generated atlases (default: current directory)",
        ),
    ] = None,
    field_type: Annotated[
        FieldType,
        typer.Option(
            "--field-type",
            "-t",
            help="Field type",
            case_sensitive=False,
        ),
    ] = FieldType.MSDF,
    alpha_field_type: Annotated[
        AlphaFieldType,
        typer.Option(
            "--alpha-field-type",
            "-a",
            help="Alpha field type (ignored with mtsdf)",
            case_sensitive=False,
        ),
    ] = AlphaFieldType.SDF,
    font_size: Annotated[
        int,
        typer.Option(
            "--font-size",
            "-s",
            help="Font size of generated glyphs in pixels",
        ),
    ] = 32,
    distance_range: Annotated[
        int,
        typer.Option(
            "--distance-range",
            "-r",
            help="Distance range in which the field is encoded, in pixels",
        ),
    ] = 5,
    texture_size: Annotated[
        tuple[int, int],
        typer.Option(
            "--texture-size",
            "-d",
            help="Width and height of atlas pages (powers of two, 32-65536)",
        ),
    ] = (512, 512),
    padding: Annotated[
        int,
        typer.Option(
            "--padding",
            "-p",
            help="Padding between glyphs and on the border of atlas pages",
        ),
    ] = 2,
    charset: Annotated[
        str,
        typer.Option(
            "--charset",
            "-c",
            help=(
                "UTF-8 file with the characters to use, or one of: ascii, "
                "ascii-extended, latin-0, latin-9, windows-1252, extended"
            ),
        ),
    ] = "ascii",
    compression_level: Annotated[
        int,
        typer.Option(
            "--compression-level",
            help="Compression level of generated PNG pages, from 0 to 9",
        ),
    ] = 9,
    fast_pack: Annotated[
        bool,
        typer.Option(
            "--fast-pack",
            help="Use the faster but less efficient packing algorithm",
        ),
    ] = False,
    descriptor_format: Annotated[
        DescriptorFormat,
        typer.Option(
            "--format",
            help="Descriptor format",
            case_sensitive=False,
        ),
    ] = DescriptorFormat.JSON,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto)",
            min=1,
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            help="Timeout of a single glyph generation in seconds",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Generate a distance field font atlas for each input font.

    Every atlas is written as a descriptor (JSON or BMFont text) and one PNG
    image per page.

    Example:
        sdfatlas Roboto-Regular.ttf -t msdf -s 48 -c latin-0

    This will create Roboto-Regular.json and Roboto-Regular.png in the
    current directory.
    """
    # Validate mutually exclusive options
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    # Validate input files exist
    for font in fonts:
        if not font.is_file():
            print_error(
                f"Input file not found: {font}",
                details="Please provide paths to TTF or OTF font files.",
            )
            raise typer.Exit(code=1)

    try:
        settings = AtlasSettings(
            generation=GenerationConfig(
                field_type=field_type,
                alpha_field_type=alpha_field_type,
                font_size=font_size,
                distance_range=distance_range,
                msdfgen_path=msdfgen,
            ),
            packing=PackingConfig(
                page_width=texture_size[0],
                page_height=texture_size[1],
                padding=padding,
                strategy=PackingStrategy.FAST if fast_pack else PackingStrategy.EFFICIENT,
            ),
            processing=ProcessingConfig(
                max_workers=workers,
                timeout_seconds=timeout,
            ),
            output=OutputConfig(
                descriptor_format=descriptor_format,
                compression_level=compression_level,
            ),
            logging=LoggingConfig(
                log_file=log_file,
                log_level=log_level if not quiet else "WARNING",
            ),
        )
    except ValidationError as e:
        print_error("Invalid parameters", details=_format_validation_error(e))
        raise typer.Exit(code=1)

    output_dir = output if output is not None else Path.cwd()

    try:
        codepoints = load_charset(charset)

        if MsdfgenGenerator.find_executable(settings.generation.msdfgen_path) is None:
            print_error(
                f"msdfgen executable '{settings.generation.msdfgen_path}' "
                "doesn't exist or isn't executable"
            )
            raise typer.Exit(code=1)

        if not quiet:
            print_header(__version__)
            print_settings_summary(settings, len(codepoints), str(output_dir.resolve()))
            if settings.generation.alpha_ignored:
                print_warning("alpha field type is ignored when using mtsdf field type")

        logger = configure_logging(
            log_file=settings.logging.log_file,
            console_level=settings.logging.log_level,
            file_level=settings.logging.file_log_level,
            quiet=quiet,
        )

        for font in fonts:
            _generate_atlas(font, codepoints, settings, output_dir, logger, quiet, verbose)

    except KeyboardInterrupt:
        if not quiet:
            print_cancellation_notice()
        raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code
    except FontLoadError as e:
        print_error(f"Could not load font: {e.reason}")
        raise typer.Exit(code=1)
    except AtlasWriteError as e:
        print_error(f"Could not write atlas: {e.reason}", details=e.path)
        raise typer.Exit(code=1)
    except AtlasError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        # Re-raise typer.Exit to allow clean exits
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


def _generate_atlas(
    font: Path,
    codepoints: tuple[int, ...],
    settings: AtlasSettings,
    output_dir: Path,
    logger: structlog.stdlib.BoundLogger,
    quiet: bool,
    verbose: bool,
) -> None:
    """Generate and write the atlas of one font.

    Args:
        font: Path of the font file
        codepoints: Sorted unique codepoints of the charset
        settings: Validated settings
        output_dir: Output directory
        logger: Configured logger
        quiet: Suppress output
        verbose: Show verbose output
    """
    if not quiet:
        print_step(f"Loading font {font.name}")

    reader = FontReader(font)
    try:
        reader.load()
        font_metrics = reader.font_metrics()
        font_name = reader.family_name
    except Exception as e:
        raise FontLoadError(str(font), str(e)) from e

    try:
        if not quiet:
            print_font_info(
                font_path=str(font),
                font_type=reader.format,
                glyph_count=reader.glyph_count,
                upm=reader.units_per_em,
            )

        available = tuple(cp for cp in codepoints if reader.has_glyph(cp))
        missing = len(codepoints) - len(available)
        if missing:
            logger.info("Characters missing from font", font=str(font), count=missing)
            if not quiet:
                print_warning(f"{missing} characters of the charset are not in the font")
            if verbose:
                console.print("  " + "".join(chr(cp) for cp in codepoints if cp not in available))

        if not quiet:
            workers = settings.processing.max_workers
            print_step("Generating glyphs")
            print_processing_info(workers or os.cpu_count() or 1, is_auto=(workers is None))

        generator = MsdfgenGenerator(
            reader,
            msdfgen_path=settings.generation.msdfgen_path,
            timeout=settings.processing.timeout_seconds,
        )
        pipeline = AtlasPipeline(settings, generator, logger=logger)

        if not quiet:
            with create_progress() as progress:
                task_id = progress.add_task(
                    f"Generating {len(available)} glyphs",
                    total=len(available),
                )

                def update_progress(completed: int, *_: object) -> None:
                    progress.update(task_id, completed=completed)

                result = pipeline.run(
                    font,
                    available,
                    progress_callback=update_progress,
                    font_name=font_name,
                    metrics=font_metrics,
                )
        else:
            result = pipeline.run(
                font,
                available,
                font_name=font_name,
                metrics=font_metrics,
            )
    finally:
        reader.close()

    writer = AtlasWriter(
        output_dir,
        AtlasWriter.get_atlas_name(font),
        descriptor_format=settings.output.descriptor_format,
        compression_level=settings.output.compression_level,
    )
    paths = writer.write(result.descriptor, result.page_buffers)

    if not quiet:
        stats = result.stats
        print_success(
            output_paths=[f"{path} ({_format_file_size(path)})" for path in paths],
            total_time_s=stats.duration_seconds,
            glyphs=result.descriptor.glyph_count,
            pages=stats.page_count,
            avg_time_ms=stats.avg_glyph_time_ms,
            min_time_ms=stats.min_glyph_time_ms,
            max_time_ms=stats.max_glyph_time_ms,
        )
        if verbose:
            console.print(
                f"  generation {stats.generation_seconds:.2f}s · "
                f"packing {stats.packing_seconds:.2f}s · "
                f"assembly {stats.assembly_seconds:.2f}s"
            )


def _format_validation_error(error: ValidationError) -> str:
    """Join pydantic error messages into one line per field."""
    lines = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"])
        lines.append(f"{field}: {item['msg']}")
    return "\n  ".join(lines)


def _format_file_size(path: Path) -> str:
    """Format file size in human-readable form.

    Args:
        path: Path to file

    Returns:
        Human-readable file size (e.g., "428 KB")
    """
    try:
        size_bytes = path.stat().st_size
    except OSError:
        return "unknown"
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
