"""Pydantic models for cache import/export files.

Export writes an ``index.json`` describing each entry alongside the
decoded resource files; import reads a JSON list of ``CacheEntry``
records and writes them to the store.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from resource_loader.encoders.data_uri import (
    BASE64_MARKER,
    DATA_URI_SCHEME,
    DataUriEncoder,
    is_data_uri,
)


class CacheEntry(BaseModel):
    """One cached resource.

    Attributes:
        key: URL the resource was loaded from.
        value: The encoded data URI stored for that URL.

    Example:
        >>> entry = CacheEntry(
        ...     key="https://example.com/a.png",
        ...     value="data:image/png;base64,iVBORw0KGgo=",
        ... )
        >>> entry.content_type
        'image/png'
    """

    key: str = Field(..., min_length=1, description="Resource URL")
    value: str = Field(..., description="Encoded data URI")

    @field_validator("value")
    @classmethod
    def validate_data_uri(cls, v: str) -> str:
        """Only encoder output may be stored in the cache."""
        if not is_data_uri(v):
            raise ValueError(
                f"Cache values must be base64 data URIs, got: {v[:40]!r}"
            )
        DataUriEncoder().decode(v)  # Rejects a corrupt payload
        return v

    @property
    def content_type(self) -> str:
        """Content type embedded in the data URI."""
        header = self.value[len(DATA_URI_SCHEME) :]
        return header.partition(BASE64_MARKER)[0]


class ExportRecord(BaseModel):
    """Index entry describing one exported file."""

    key: str
    content_type: str
    file: str = Field(..., description="File name relative to the index")
    size: int = Field(..., ge=0, description="Decoded size in bytes")


def load_entries(path: Path) -> list[CacheEntry]:
    """Read and validate a JSON list of cache entries.

    Args:
        path: JSON file containing a list of {"key", "value"} objects.

    Returns:
        Validated entries.

    Raises:
        ValueError: If the file is not a JSON list or an entry is invalid.
    """
    data: Any = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of entries in {path}")
    return [CacheEntry.model_validate(item) for item in data]
