"""
Functional tests for the fetch command.

The HTTP transport is replaced by one built on httpx.MockTransport so no
test touches the network.
"""

import importlib
import json

import pytest
from click.testing import CliRunner
from conftest import PNG_BYTES, make_transport

from resource_loader.cli import cli
from resource_loader.encoders import create_data_uri

URL = "https://example.com/logo.png"
PNG_URI = create_data_uri("image/png", PNG_BYTES)


@pytest.fixture
def fake_http(monkeypatch, network):
    """Route the fetch command's transport to the fake network."""
    cli_main = importlib.import_module("resource_loader.cli.main")
    monkeypatch.setattr(
        cli_main, "HttpTransport", lambda config: make_transport(network)
    )
    return network


# Test fetch prints the data URI.
def test_fetch_prints_data_uri(fake_http):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", URL])

    assert result.exit_code == 0
    assert PNG_URI in result.output


# Test fetch --json reports content type and length.
def test_fetch_json(fake_http):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", URL, "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["url"] == URL
    assert data["content_type"] == "image/png"
    assert data["length"] == len(PNG_BYTES)
    assert data["data_uri"] == PNG_URI


# Test fetch -o writes the decoded bytes.
def test_fetch_output_file(fake_http, tmp_path):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    out = tmp_path / "logo.png"
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", URL, "-o", str(out)])

    assert result.exit_code == 0
    assert out.read_bytes() == PNG_BYTES
    assert f"bytes to {out}" in result.output


# Test fetch with a cache only hits the network once.
def test_fetch_uses_cache(fake_http, tmp_path):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    cache = tmp_path / "cache.db"
    runner = CliRunner()

    first = runner.invoke(cli, ["fetch", URL, "-c", str(cache)])
    second = runner.invoke(cli, ["fetch", URL, "-c", str(cache)])

    assert first.exit_code == 0
    assert second.exit_code == 0
    assert PNG_URI in second.output
    assert len(fake_http.requests) == 1


# Test fetch --no-cache ignores the cache.
def test_fetch_no_cache(fake_http, tmp_path):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    cache = tmp_path / "cache.db"
    runner = CliRunner()

    runner.invoke(cli, ["fetch", URL, "-c", str(cache), "--no-cache"])
    runner.invoke(cli, ["fetch", URL, "-c", str(cache), "--no-cache"])

    assert len(fake_http.requests) == 2
    assert not cache.exists()


# Test fetch picks the cache location up from the environment.
def test_fetch_cache_from_environment(fake_http, tmp_path, monkeypatch):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    monkeypatch.setenv("RESOURCE_LOADER_CACHE", str(tmp_path))
    runner = CliRunner()

    runner.invoke(cli, ["fetch", URL])
    runner.invoke(cli, ["fetch", URL])

    assert len(fake_http.requests) == 1
    assert (tmp_path / "Test.db").exists()


# Test fetch exits non-zero when nothing is delivered.
def test_fetch_not_found(fake_http):
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", URL])

    assert result.exit_code == 1
    assert f"No data loaded for {URL}" in result.output


# Test fetch reports unexpected errors.
def test_fetch_error(monkeypatch):
    cli_main = importlib.import_module("resource_loader.cli.main")

    async def broken(url, config):
        raise RuntimeError("boom")

    monkeypatch.setattr(cli_main, "_fetch", broken)
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", URL])

    assert result.exit_code == 1
    assert f"Error loading {URL}: boom" in result.output


# Test -v enables debug logging.
def test_fetch_verbose(fake_http, mocker):
    fake_http.add(URL, content=PNG_BYTES, content_type="image/png")
    basic_config = mocker.patch("logging.basicConfig")
    runner = CliRunner()
    result = runner.invoke(cli, ["-v", "fetch", URL])

    assert result.exit_code == 0
    assert basic_config.call_count == 1


# Test fetch reports a cached value it cannot decode.
def test_fetch_corrupt_cached_value(fake_http, tmp_path):
    from resource_loader.cache import PersistentCacheBackend

    cache = tmp_path / "cache.db"
    with PersistentCacheBackend(cache) as backend:
        backend.put_entry(URL, "data:image/png;base64,@@@")
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", URL, "-c", str(cache)])

    assert result.exit_code == 1
    assert f"Error decoding data for {URL}" in result.output
    assert not isinstance(result.exception, ValueError)
    assert fake_http.requests == []


# Test fetch of a URL httpx cannot parse exits instead of hanging.
def test_fetch_invalid_url(fake_http):
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", "http://[::1"])

    assert result.exit_code == 1
    assert "No data loaded for http://[::1" in result.output
