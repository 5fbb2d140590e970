"""Logging utilities for sdfatlas."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog

from sdfatlas.exceptions import format_codepoint


@dataclass
class AtlasStats:
    """Statistics from an atlas generation run."""

    glyph_count: int = 0
    generated_count: int = 0
    empty_count: int = 0
    page_count: int = 0
    error_count: int = 0
    errors: list[tuple[int, str]] = field(default_factory=list)
    glyph_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None
    generation_seconds: float = 0.0
    packing_seconds: float = 0.0
    assembly_seconds: float = 0.0

    @property
    def duration_seconds(self) -> float:
        """Calculate run duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def avg_glyph_time_ms(self) -> float | None:
        if not self.glyph_timings_ms:
            return None
        return sum(self.glyph_timings_ms) / len(self.glyph_timings_ms)

    @property
    def min_glyph_time_ms(self) -> float | None:
        return min(self.glyph_timings_ms) if self.glyph_timings_ms else None

    @property
    def max_glyph_time_ms(self) -> float | None:
        return max(self.glyph_timings_ms) if self.glyph_timings_ms else None


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Args:
        log_file: Path to log file (auto-generated if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output

    Returns:
        Configured structlog logger
    """
    if log_file is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = Path(f"sdfatlas_{timestamp}.log")

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(getattr(logging, file_level.upper()))
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=False),
            )
        )
        root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("sdfatlas")
    logger.info("Logging initialized", log_file=str(log_file), level=file_level)

    return logger


class ProcessingLogger:
    """Logger for tracking generation progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = AtlasStats()

    def log_glyph_complete(
        self,
        codepoint: int,
        width: int,
        height: int,
        duration_ms: float,
    ) -> None:
        """Log successful glyph generation."""
        self._logger.debug(
            "Glyph generated",
            glyph=format_codepoint(codepoint),
            width=width,
            height=height,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.generated_count += 1
        self._stats.glyph_timings_ms.append(duration_ms)
        if width == 0 or height == 0:
            self._stats.empty_count += 1

    def log_glyph_error(
        self,
        codepoint: int,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log glyph generation error."""
        self._logger.error(
            "Glyph generation failed",
            glyph=format_codepoint(codepoint),
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((codepoint, str(error)))

    def log_page_packed(self, page_index: int, glyph_count: int, strategy: str) -> None:
        """Log a packed page."""
        self._logger.debug(
            "Page packed",
            page=page_index,
            glyphs=glyph_count,
            strategy=strategy,
        )

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return self._logger

    @property
    def stats(self) -> AtlasStats:
        """Get current run statistics."""
        return self._stats
