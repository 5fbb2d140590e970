"""Configuration management for sdfatlas.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- GenerationConfig: Distance field generation settings
- PackingConfig: Atlas page size, padding and packing strategy
- ProcessingConfig: Worker pool settings
- OutputConfig: Descriptor and image output settings
- LoggingConfig: Logging settings
- AtlasSettings: Main application settings

Builtin charsets are exposed read-only through BUILTIN_CHARSETS.
"""

from sdfatlas.config.charsets import BUILTIN_CHARSETS, load_charset, sorted_codepoints
from sdfatlas.config.settings import (
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
    get_default_settings,
)

__all__ = [
    "BUILTIN_CHARSETS",
    "AlphaFieldType",
    "AtlasSettings",
    "DescriptorFormat",
    "FieldType",
    "GenerationConfig",
    "LoggingConfig",
    "OutputConfig",
    "PackingConfig",
    "PackingStrategy",
    "ProcessingConfig",
    "get_default_settings",
    "load_charset",
    "sorted_codepoints",
]
