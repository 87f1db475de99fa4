"""Cache-backed loading of remote resources as data URIs.

``Loader.load(url)`` resolves a URL in up to four asynchronous steps, each
started from the previous step's completion callback:

1. open the shared cache backend (if it is not open yet),
2. look the URL up in the cache,
3. on a miss, GET the URL,
4. after delivering a fetched resource, write it back to the cache.

The result reaches the caller through ``LoadListener.on_load_data``. A
failed fetch (any status other than 200, or no Content-Type header) is
silent: the listener is simply never called for that load.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from resource_loader.cache.base import CacheBackend
from resource_loader.cache.handle import CacheHandle
from resource_loader.encoders.base import ResourceEncoder
from resource_loader.encoders.data_uri import DataUriEncoder
from resource_loader.errors import require
from resource_loader.events import Event, EventHub
from resource_loader.transport import HttpRequest, HttpTransport

logger = logging.getLogger(__name__)

LOAD_EVENT = "load"
ERROR_EVENT = "error"


class LoadListener(Protocol):
    """Receives resources loaded by a Loader."""

    def on_load_data(self, url: str, text: str) -> None:
        """Called once with the encoded resource for a successful load."""
        ...


@dataclass
class LoadRequest:
    """State of the load currently in flight on a Loader.

    Attributes:
        url: The URL being loaded.
        cache: Backend to consult and write back to, None when the load
            goes straight to the network.
        request: The HTTP request, once one has been sent.
    """

    url: str
    cache: Optional[CacheBackend] = None
    request: Optional[HttpRequest] = None


class Loader:
    """Loads resources through a shared cache, falling back to HTTP.

    Each instance handles one load at a time; calling load() again before
    the previous load finished leaves the outcome of both undefined.

    Example:
        >>> handle = CacheHandle(LoaderConfig(cache_path=Path("cache.db")))
        >>> loader = Loader(listener, handle, HttpTransport())
        >>> loader.load("https://example.com/a.png")
        >>> await loader.wait()
    """

    def __init__(
        self,
        listener: LoadListener,
        cache_handle: CacheHandle,
        transport: Optional[HttpTransport] = None,
        encoder: Optional[ResourceEncoder] = None,
    ) -> None:
        """Initialise the loader.

        Args:
            listener: Receives on_load_data() for successful loads.
            cache_handle: Shared handle to the cache backend.
            transport: Creates HTTP requests; defaults to one configured
                from the handle's config.
            encoder: Encodes fetched bodies; defaults to DataUriEncoder.
        """
        self._listener = listener
        self._cache_handle = cache_handle
        self._transport = transport or HttpTransport(cache_handle.config)
        self._encoder = encoder or DataUriEncoder()
        self._pending: Optional[LoadRequest] = None
        self._finished: Optional[asyncio.Event] = None

    @property
    def busy(self) -> bool:
        """Whether a load is in flight."""
        return self._pending is not None

    def load(self, url: str) -> None:
        """Start loading url; the result arrives via on_load_data().

        Must be called from a running event loop.
        """
        backend = self._cache_handle.backend
        pending = LoadRequest(url, backend if backend.available else None)
        self._pending = pending
        self._finished = asyncio.Event()

        if pending.cache is None:
            self._send_request(url)
        elif not pending.cache.is_ready():
            if not pending.cache.open(self):
                logger.debug(f"Cache cannot be opened; fetching {url}")
                pending.cache = None
                self._send_request(url)
        else:
            pending.cache.get(self, url)

    async def wait(self) -> None:
        """Wait until the current load has finished, delivered or not."""
        if self._finished is not None:
            await self._finished.wait()

    # ========================================================================
    # CacheListener
    # ========================================================================

    def on_open(self, success: bool) -> None:
        """Look the URL up once the cache is open, else fetch it."""
        pending = self._current()
        if not success or pending.cache is None:
            pending.cache = None
            self._send_request(pending.url)
        else:
            pending.cache.get(self, pending.url)

    def on_get(self, found: bool, value: str) -> None:
        """Deliver a cache hit, or fetch on a miss."""
        pending = self._current()
        if not value:
            logger.debug(f"Cache miss for {pending.url}")
            self._send_request(pending.url)
        else:
            logger.debug(f"Cache hit for {pending.url}")
            self._complete()
            self._listener.on_load_data(pending.url, value)

    def on_put(self, success: bool) -> None:
        """Write-back outcomes are only logged."""
        if not success:
            logger.debug("Cache write-back failed")

    # ========================================================================
    # HubListener
    # ========================================================================

    def handle_event(self, hub: EventHub, type: str, event: Event) -> None:
        """Handle completion of the HTTP request."""
        require(type in (LOAD_EVENT, ERROR_EVENT), f"unexpected event {type}")
        for other in (LOAD_EVENT, ERROR_EVENT):
            if other != type and hub.is_registered(other):
                hub.unregister(other)

        pending = self._current()
        request = hub.target
        assert isinstance(request, HttpRequest)
        content_type = (
            request.get_response_header("Content-Type")
            if type == LOAD_EVENT and request.status == 200
            else None
        )
        if not content_type:
            logger.debug(
                f"Dropping {pending.url}: status {request.status}, "
                f"content type {content_type!r}"
            )
            self._complete()
            return

        text = self._encoder.encode(content_type, request.response)
        self._complete()
        self._listener.on_load_data(pending.url, text)
        if pending.cache is not None and pending.cache.is_ready():
            pending.cache.put(self, pending.url, text)

    # ========================================================================
    # Internals
    # ========================================================================

    def _current(self) -> LoadRequest:
        pending = self._pending
        if pending is None:
            raise AssertionError("no load in flight")
        return pending

    def _send_request(self, url: str) -> None:
        request = self._transport.request(url)
        hub = EventHub(request, self)
        hub.register(LOAD_EVENT, once=True)
        hub.register(ERROR_EVENT, once=True)
        self._current().request = request
        logger.debug(f"Fetching {url}")
        request.send()

    def _complete(self) -> None:
        self._pending = None
        if self._finished is not None:
            self._finished.set()


class _ResultCollector:
    """LoadListener that keeps the last delivered resource."""

    def __init__(self) -> None:
        self.text: Optional[str] = None

    def on_load_data(self, url: str, text: str) -> None:
        self.text = text


async def load_resource(
    url: str,
    cache_handle: CacheHandle,
    transport: Optional[HttpTransport] = None,
) -> Optional[str]:
    """Load one URL and wait for the outcome, including the write-back.

    Args:
        url: Resource to load.
        cache_handle: Shared handle to the cache backend.
        transport: HTTP transport; a default one is created if omitted.

    Returns:
        The encoded resource, or None if the load delivered nothing.
    """
    collector = _ResultCollector()
    loader = Loader(collector, cache_handle, transport)
    loader.load(url)
    await loader.wait()
    await cache_handle.backend.flush()
    return collector.text
