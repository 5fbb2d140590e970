"""Configuration settings for sdfatlas."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

MIN_TEXTURE_SIZE = 32
MAX_TEXTURE_SIZE = 65536


class FieldType(str, Enum):
    """Distance field encoding of a glyph outline."""

    SDF = "sdf"
    PSDF = "psdf"
    MSDF = "msdf"
    MTSDF = "mtsdf"

    @property
    def channel_count(self) -> int:
        """Number of channels msdfgen produces for this field type."""
        if self is FieldType.MSDF:
            return 3
        if self is FieldType.MTSDF:
            return 4
        return 1


class AlphaFieldType(str, Enum):
    """Distance field encoded in the alpha channel, if any."""

    NONE = "none"
    SDF = "sdf"
    PSDF = "psdf"


class PackingStrategy(str, Enum):
    """Atlas packing algorithm."""

    FAST = "fast"
    EFFICIENT = "efficient"


class DescriptorFormat(str, Enum):
    """Output format of the atlas descriptor."""

    JSON = "json"
    FNT = "fnt"


class GenerationConfig(BaseModel):
    """Configuration for per-glyph distance field generation."""

    field_type: FieldType = Field(
        default=FieldType.MSDF,
        description="Field type: sdf | psdf | msdf | mtsdf",
    )
    alpha_field_type: AlphaFieldType = Field(
        default=AlphaFieldType.SDF,
        description="Alpha field type: none | sdf | psdf",
    )
    font_size: int = Field(
        default=32,
        ge=8,
        description="Font size for generated textures, in pixels",
    )
    distance_range: int = Field(
        default=5,
        ge=1,
        description="Distance range in which the field is encoded, in pixels",
    )
    msdfgen_path: str = Field(
        default="msdfgen",
        description="Path of the msdfgen executable",
    )

    @property
    def effective_alpha_field_type(self) -> AlphaFieldType:
        """Alpha field type actually generated.

        With mtsdf, msdfgen writes the alpha channel itself, so the
        configured alpha field type has no effect.
        """
        if self.field_type is FieldType.MTSDF:
            return AlphaFieldType.NONE
        return self.alpha_field_type

    @property
    def alpha_ignored(self) -> bool:
        """True if an alpha field type is configured but ignored."""
        return (
            self.field_type is FieldType.MTSDF
            and self.alpha_field_type is not AlphaFieldType.NONE
        )

    @property
    def has_alpha_channel(self) -> bool:
        """Whether generated bitmaps carry glyph data in an alpha channel."""
        return (
            self.effective_alpha_field_type is not AlphaFieldType.NONE
            or self.field_type is FieldType.MTSDF
        )

    @property
    def channel_count(self) -> int:
        """Number of channels in each generated bitmap."""
        extra = 0 if self.effective_alpha_field_type is AlphaFieldType.NONE else 1
        return self.field_type.channel_count + extra


class PackingConfig(BaseModel):
    """Configuration for atlas page packing."""

    page_width: int = Field(
        default=512,
        description="Maximum width of atlas pages (power of two, 32-65536)",
    )
    page_height: int = Field(
        default=512,
        description="Maximum height of atlas pages (power of two, 32-65536)",
    )
    padding: int = Field(
        default=2,
        ge=0,
        description="Padding between glyphs and on the border of atlas pages",
    )
    strategy: PackingStrategy = Field(
        default=PackingStrategy.EFFICIENT,
        description="Packing algorithm: fast | efficient",
    )

    @field_validator("page_width", "page_height")
    @classmethod
    def _check_texture_size(cls, value: int) -> int:
        if (
            value < MIN_TEXTURE_SIZE
            or value > MAX_TEXTURE_SIZE
            or value & (value - 1) != 0
        ):
            raise ValueError(
                f"texture size must be a power of two between "
                f"{MIN_TEXTURE_SIZE} and {MAX_TEXTURE_SIZE}, got {value}"
            )
        return value


class ProcessingConfig(BaseModel):
    """Configuration for glyph generation workers."""

    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Max worker threads (None = auto)",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout for a single glyph generation call (None = no timeout)",
    )


class OutputConfig(BaseModel):
    """Configuration for descriptor and page image output."""

    descriptor_format: DescriptorFormat = Field(
        default=DescriptorFormat.JSON,
        description="Descriptor format: json | fnt",
    )
    compression_level: int = Field(
        default=9,
        ge=0,
        le=9,
        description="Compression level for generated PNG, from 0 to 9",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class AtlasSettings(BaseModel):
    """Main application settings."""

    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    packing: PackingConfig = Field(default_factory=PackingConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> AtlasSettings:
    """Get default application settings."""
    return AtlasSettings()
