"""Utility functions for sdfatlas.

This module provides utility functions including:

- Logging setup and configuration
- Run statistics and progress logging
"""

from sdfatlas.utils.logging import (
    AtlasStats,
    ProcessingLogger,
    configure_logging,
)

__all__ = [
    "AtlasStats",
    "ProcessingLogger",
    "configure_logging",
]
