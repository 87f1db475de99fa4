"""Shared helpers for resource-loader tests.

Provides recording listeners and a fake network built on
httpx.MockTransport, so no test touches the real network.
"""

import asyncio
from typing import Callable, Optional

import httpx
import pytest

from resource_loader.transport import HttpTransport

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe\x80"


class LoadRecorder:
    """LoadListener recording every delivery."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def on_load_data(self, url: str, text: str) -> None:
        self.calls.append((url, text))


class CacheRecorder:
    """CacheListener recording completions, awaitable per operation."""

    def __init__(self) -> None:
        self.opens: list[bool] = []
        self.gets: list[tuple[bool, str]] = []
        self.puts: list[bool] = []
        self._events: dict[str, asyncio.Event] = {}

    def _event(self, name: str) -> asyncio.Event:
        return self._events.setdefault(name, asyncio.Event())

    def on_open(self, success: bool) -> None:
        self.opens.append(success)
        self._event("open").set()

    def on_get(self, found: bool, value: str) -> None:
        self.gets.append((found, value))
        self._event("get").set()

    def on_put(self, success: bool) -> None:
        self.puts.append(success)
        self._event("put").set()

    async def wait_for(self, name: str, timeout: float = 5.0) -> None:
        """Wait until the named completion arrives, then re-arm it."""
        event = self._event(name)
        await asyncio.wait_for(event.wait(), timeout)
        event.clear()


class FakeNetwork:
    """Request handler for httpx.MockTransport with canned responses."""

    def __init__(self) -> None:
        self.routes: dict[str, httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        status: int = 200,
        content: bytes = b"",
        content_type: Optional[str] = "image/png",
    ) -> None:
        headers = {"Content-Type": content_type} if content_type else {}
        self.routes[url] = httpx.Response(
            status, headers=headers, content=content
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get(str(request.url))
        if response is None:
            return httpx.Response(404, headers={"Content-Type": "text/html"})
        return response


def make_transport(handler: Callable[[httpx.Request], httpx.Response]):
    """Build an HttpTransport whose client never leaves the process."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(client=client)


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture(autouse=True)
def no_cache_env(monkeypatch):
    """Keep a developer's RESOURCE_LOADER_CACHE out of the tests."""
    monkeypatch.delenv("RESOURCE_LOADER_CACHE", raising=False)
