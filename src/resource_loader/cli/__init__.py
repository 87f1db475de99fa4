"""Command-line interface for resource-loader.

This package provides the CLI implementation split into logical modules:

- main: Core CLI entry point and the fetch command
- cache: Cache management commands (stats, export, import)
"""

from __future__ import annotations

from resource_loader.cli.main import cli, main

__all__ = ["cli", "main"]
