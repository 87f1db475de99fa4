"""Main CLI entry point and the fetch command.

This module provides the main CLI group and the fetch command, which
loads one URL through the cache exactly as an application would.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from resource_loader import __version__
from resource_loader.cache import CacheHandle
from resource_loader.config import LoaderConfig
from resource_loader.loader import load_resource
from resource_loader.transport import HttpTransport


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log cache and network activity to stderr.",
)
def cli(verbose: bool) -> None:
    """Resource Loader - fetch remote resources as cached data URIs.

    Use 'resload fetch' to load a URL through the cache.
    Use 'resload cache_stats' to view cache statistics.
    Use 'resload export_cache' to export cached resources to files.
    Use 'resload import_cache' to import resources into a cache.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )


async def _fetch(url: str, config: LoaderConfig) -> Optional[str]:
    """Run one load with a handle and transport owned by this call."""
    handle = CacheHandle(config)
    transport = HttpTransport(config)
    try:
        return await load_resource(url, handle, transport)
    finally:
        await transport.aclose()
        handle.close()


@cli.command("fetch")
@click.argument("url")
@click.option(
    "--cache",
    "-c",
    "cache_path",
    type=click.Path(),
    default=None,
    help="SQLite cache file or directory (default: $RESOURCE_LOADER_CACHE).",
)
@click.option(
    "--no-cache",
    "no_cache",
    is_flag=True,
    help="Bypass the cache and always fetch from the network.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the decoded resource to this file instead of printing.",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
@click.option(
    "--timeout",
    "-t",
    type=float,
    default=None,
    help="HTTP timeout in seconds (default: none).",
)
def fetch(
    url: str,
    cache_path: Optional[str],
    no_cache: bool,
    output: Optional[str],
    output_json: bool,
    timeout: Optional[float],
) -> None:
    """Load URL through the cache and print it as a data URI.

    Examples:

        resload fetch https://example.com/logo.png -c ./cache.db

        resload fetch https://example.com/logo.png -o logo.png

        resload fetch https://example.com/logo.png --no-cache --json
    """
    from resource_loader.encoders import DataUriEncoder

    config = LoaderConfig(
        cache_path=Path(cache_path) if cache_path else None,
        use_cache=not no_cache,
        timeout=timeout,
    )

    try:
        text = asyncio.run(_fetch(url, config))
    except Exception as e:
        click.echo(f"Error loading {url}: {e}", err=True)
        sys.exit(1)

    if text is None:
        click.echo(f"No data loaded for {url}", err=True)
        sys.exit(1)

    try:
        content_type, buffer = DataUriEncoder().decode(text)
    except ValueError as e:
        click.echo(f"Error decoding data for {url}: {e}", err=True)
        sys.exit(1)

    if output:
        Path(output).write_bytes(buffer)
        click.echo(f"Wrote {len(buffer):,} bytes to {output}", err=True)
    elif output_json:
        result = {
            "url": url,
            "content_type": content_type,
            "length": len(buffer),
            "data_uri": text,
        }
        click.echo(json.dumps(result, indent=2))
    else:
        click.echo(text)


# Import and register commands
from resource_loader.cli.cache import (  # noqa: E402
    cache_stats,
    export_cache,
    import_cache,
)

cli.add_command(cache_stats)
cli.add_command(export_cache)
cli.add_command(import_cache)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
