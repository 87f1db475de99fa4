"""Unit tests for cache import/export models."""

import json

import pytest
from pydantic import ValidationError

from resource_loader.cache.models import CacheEntry, ExportRecord, load_entries


# Test a valid entry and its content type
def test_cache_entry_valid() -> None:
    entry = CacheEntry(
        key="https://example.com/a.png", value="data:image/png;base64,TWFu"
    )
    assert entry.content_type == "image/png"


# Test content types with parameters are kept whole
def test_cache_entry_content_type_with_parameters() -> None:
    entry = CacheEntry(
        key="https://example.com/a.txt",
        value="data:text/plain; charset=UTF-8;base64,TQ==",
    )
    assert entry.content_type == "text/plain; charset=UTF-8"


# Test values that are not data URIs are rejected
def test_cache_entry_rejects_plain_text() -> None:
    with pytest.raises(ValidationError, match="base64 data URIs"):
        CacheEntry(key="https://example.com/a.png", value="hello")


# Test an empty key is rejected
def test_cache_entry_rejects_empty_key() -> None:
    with pytest.raises(ValidationError):
        CacheEntry(key="", value="data:image/png;base64,")


# Test a negative export size is rejected
def test_export_record_rejects_negative_size() -> None:
    with pytest.raises(ValidationError):
        ExportRecord(
            key="https://example.com/a.png",
            content_type="image/png",
            file="0000_a.png",
            size=-1,
        )


# Test load_entries reads a JSON list
def test_load_entries(tmp_path) -> None:
    path = tmp_path / "entries.json"
    path.write_text(
        json.dumps(
            [
                {"key": "u1", "value": "data:image/png;base64,TWFu"},
                {"key": "u2", "value": "data:image/gif;base64,"},
            ]
        )
    )

    entries = load_entries(path)

    assert [e.key for e in entries] == ["u1", "u2"]
    assert entries[1].content_type == "image/gif"


# Test load_entries rejects a non-list document
def test_load_entries_rejects_object(tmp_path) -> None:
    path = tmp_path / "entries.json"
    path.write_text(json.dumps({"key": "u1"}))

    with pytest.raises(ValueError, match="JSON list"):
        load_entries(path)


# Test load_entries rejects an invalid entry
def test_load_entries_rejects_invalid_entry(tmp_path) -> None:
    path = tmp_path / "entries.json"
    path.write_text(json.dumps([{"key": "u1", "value": "nope"}]))

    with pytest.raises(ValidationError):
        load_entries(path)


# Test a data URI with a corrupt payload is rejected
def test_cache_entry_rejects_bad_payload() -> None:
    with pytest.raises(ValidationError, match="Invalid base64 payload"):
        CacheEntry(
            key="https://example.com/a.png", value="data:image/png;base64,@@@"
        )
