"""Command-line interface for sdfatlas.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Parameter summary before generation
- Progress bars for glyph generation
- Verbose/quiet output modes
- Detailed error reporting
"""

from sdfatlas.cli.app import cli, main

__all__ = ["cli", "main"]
