"""Cache management CLI commands.

This module provides commands for managing the resource cache:
- cache_stats: Show cache statistics
- export_cache: Export cached resources to files
- import_cache: Import resources into a cache
"""

from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

import click

from resource_loader.cache import PersistentCacheBackend
from resource_loader.config import LoaderConfig


def export_filename(index: int, key: str, extension: str) -> str:
    """Build a readable, unique file name for an exported resource.

    Uses the last path segment of the URL, sanitised, prefixed by the
    entry's position so names never collide:
        {index:04d}_{name}{extension}

    Args:
        index: Position of the entry in the export.
        key: The URL the resource was cached under.
        extension: File extension including the dot.

    Returns:
        File name for the exported resource.
    """
    path = urlsplit(key).path
    name = path.rstrip("/").rsplit("/", 1)[-1]
    # Drop any extension the URL carries; the content type decides
    name = name.rsplit(".", 1)[0] if "." in name else name
    name = re.sub(r"[^A-Za-z0-9_-]", "_", name)[:60]
    if not name:
        name = urlsplit(key).hostname or "resource"
        name = re.sub(r"[^A-Za-z0-9_-]", "_", name)
    return f"{index:04d}_{name}{extension}"


def cache_backend(
    cache_path: Optional[str], must_exist: bool
) -> PersistentCacheBackend:
    """Build the (unconnected) backend for --cache, resolved like fetch.

    The option may name a database file or a directory holding
    <database_name>.db, and falls back to $RESOURCE_LOADER_CACHE. Exits
    with an error if no cache is configured, or if must_exist is set and
    the database file is missing.
    """
    config = LoaderConfig(
        cache_path=Path(cache_path) if cache_path else None
    )
    db_file = config.database_file
    if db_file is None:
        click.echo(
            "No cache configured. Use --cache or set RESOURCE_LOADER_CACHE.",
            err=True,
        )
        sys.exit(1)
    if must_exist and not db_file.is_file():
        click.echo(f"Cache file {db_file} does not exist", err=True)
        sys.exit(1)
    return PersistentCacheBackend(
        db_file,
        store_name=config.store_name,
        schema_version=config.schema_version,
    )


@click.command("cache_stats")
@click.option(
    "--cache",
    "-c",
    "cache_path",
    type=click.Path(),
    default=None,
    help="SQLite cache file or directory "
    "(default: $RESOURCE_LOADER_CACHE).",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
def cache_stats(cache_path: Optional[str], output_json: bool) -> None:
    """Show cache statistics.

    Shows entry count, stored size, schema version and a breakdown of
    entries by content type.

    Examples:

        resload cache_stats -c ./cache.db

        resload cache_stats -c ./cache.db --json
    """
    from resource_loader.cache.models import CacheEntry

    backend = cache_backend(cache_path, must_exist=True)
    cache_path = backend.db_path
    try:
        # Read-only: an out-of-date database is reported, never migrated
        backend.connect(upgrade=False)
        entry_count = backend.entry_count()
        total_size = backend.total_size()
        version = backend.stored_version()

        by_type: dict[str, int] = {}
        invalid = 0
        for key, value in backend.entries():
            try:
                entry = CacheEntry(key=key, value=value)
            except ValueError:
                invalid += 1
                continue
            content_type = entry.content_type
            by_type[content_type] = by_type.get(content_type, 0) + 1
    except Exception as e:
        click.echo(f"Error opening cache: {e}", err=True)
        sys.exit(1)
    finally:
        backend.close()

    if output_json:
        output: dict[str, Any] = {
            "cache_path": cache_path,
            "summary": {
                "entry_count": entry_count,
                "total_size": total_size,
                "schema_version": version,
                "invalid_entries": invalid,
            },
            "by_content_type": by_type,
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"\nCache: {cache_path}")
    click.echo("=" * 60)
    click.echo(f"Entries:          {entry_count:,}")
    click.echo(f"Stored size:      {total_size:,} chars")
    click.echo(f"Schema version:   {version}")
    if invalid:
        click.echo(f"Invalid entries:  {invalid:,}")

    if by_type:
        click.echo()
        click.echo(f"{'Content Type':<40}  {'Entries':>8}")
        click.echo("-" * 50)
        for content_type, count in sorted(by_type.items()):
            display = (
                content_type[:37] + "..."
                if len(content_type) > 40
                else content_type
            )
            click.echo(f"{display:<40}  {count:>8,}")
    click.echo()


@click.command("export_cache")
@click.option(
    "--cache",
    "-c",
    "cache_path",
    type=click.Path(),
    default=None,
    help="Cache file or directory to export from "
    "(default: $RESOURCE_LOADER_CACHE).",
)
@click.option(
    "--output",
    "-o",
    "output_dir",
    required=True,
    type=click.Path(file_okay=False),
    help="Directory to write the decoded resources to.",
)
def export_cache(cache_path: Optional[str], output_dir: str) -> None:
    """Export cached resources as files.

    Each entry is decoded and written as a file named after its URL, and
    an index.json maps the files back to their URLs.

    Examples:

        resload export_cache -c ./cache.db -o ./exported
    """
    from resource_loader.cache.models import CacheEntry, ExportRecord
    from resource_loader.encoders import DataUriEncoder

    out = Path(output_dir)
    encoder = DataUriEncoder()
    records: list[ExportRecord] = []
    skipped = 0

    backend = cache_backend(cache_path, must_exist=True)
    try:
        backend.connect(upgrade=False)
        out.mkdir(parents=True, exist_ok=True)
        for index, (key, value) in enumerate(backend.entries()):
            try:
                entry = CacheEntry(key=key, value=value)
                content_type, buffer = encoder.decode(entry.value)
            except ValueError as e:
                click.echo(f"Skipping {key}: {e}", err=True)
                skipped += 1
                continue
            filename = export_filename(
                index, key, encoder.extension_for(content_type)
            )
            (out / filename).write_bytes(buffer)
            records.append(
                ExportRecord(
                    key=key,
                    content_type=content_type,
                    file=filename,
                    size=len(buffer),
                )
            )
        index_data = [record.model_dump() for record in records]
        (out / "index.json").write_text(json.dumps(index_data, indent=2))
    except Exception as e:
        click.echo(f"Error exporting cache: {e}", err=True)
        sys.exit(1)
    finally:
        backend.close()

    click.echo(f"Exported {len(records)} entries to {out}")
    if skipped:
        click.echo(f"Skipped {skipped} invalid entries", err=True)


@click.command("import_cache")
@click.option(
    "--cache",
    "-c",
    "cache_path",
    type=click.Path(),
    default=None,
    help="Cache file or directory, created if missing "
    "(default: $RESOURCE_LOADER_CACHE).",
)
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True),
    help="JSON list of {key, value} entries, or an export directory.",
)
def import_cache(cache_path: Optional[str], input_path: str) -> None:
    """Import resources into a cache.

    INPUT may be a JSON file holding a list of {"key", "value"} objects
    whose values are data URIs, or a directory written by export_cache.

    Examples:

        resload import_cache -c ./cache.db -i entries.json

        resload import_cache -c ./cache.db -i ./exported
    """
    from resource_loader.cache.models import (
        CacheEntry,
        ExportRecord,
        load_entries,
    )
    from resource_loader.encoders import DataUriEncoder

    source = Path(input_path)
    backend = cache_backend(cache_path, must_exist=False)
    try:
        if source.is_dir():
            encoder = DataUriEncoder()
            index = json.loads((source / "index.json").read_text())
            entries = []
            for item in index:
                record = ExportRecord.model_validate(item)
                value = encoder.import_(
                    source / record.file, record.content_type
                )
                entries.append(CacheEntry(key=record.key, value=value))
        else:
            entries = load_entries(source)

        with backend:
            for entry in entries:
                backend.put_entry(entry.key, entry.value)
    except Exception as e:
        click.echo(f"Error importing cache: {e}", err=True)
        sys.exit(1)

    click.echo(f"Imported {len(entries)} entries into {backend.db_path}")
