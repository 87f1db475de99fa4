"""Asynchronous binary HTTP GET built on httpx.

An ``HttpRequest`` is an ``EventTarget``: ``send()`` starts the download on
the running event loop and a "load" event is dispatched when a response
arrives (whatever its status), or an "error" event when the request could
not complete at all.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from resource_loader.config import LoaderConfig
from resource_loader.errors import require
from resource_loader.events import Event, EventTarget

logger = logging.getLogger(__name__)


class HttpRequest(EventTarget):
    """One binary GET request.

    Attributes:
        url: The requested URL.
        status: HTTP status code, 0 until a response arrives.
        headers: Response headers, empty until a response arrives.
        response: Response body as bytes.
        error: The transport error, if the request failed.

    Example:
        >>> request = transport.request("https://example.com/a.png")
        >>> request.add_event_listener("load", on_load)
        >>> request.send()
    """

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        super().__init__()
        self.url = url
        self.status = 0
        self.headers = httpx.Headers()
        self.response = b""
        self.error: Optional[Exception] = None
        self._client = client
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def sent(self) -> bool:
        """Whether send() has been called."""
        return self._task is not None

    def get_response_header(self, name: str) -> Optional[str]:
        """Return a response header (case-insensitive), None if absent."""
        return self.headers.get(name)

    def send(self) -> None:
        """Start the request on the running event loop.

        Raises:
            AssertionError: If the request was already sent.
        """
        require(self._task is None, f"request for {self.url} already sent")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def wait(self) -> None:
        """Wait until the request finished and its events were dispatched."""
        if self._task is None:
            raise AssertionError("request has not been sent")
        await self._task

    async def _run(self) -> None:
        logger.debug(f"GET {self.url}")
        try:
            response = await self._client.get(self.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Request for {self.url} failed: {e}")
            self.error = e
            self.dispatch_event(Event("error", detail=e))
            return

        self.status = response.status_code
        self.headers = response.headers
        self.response = response.content
        logger.debug(
            f"GET {self.url} -> {self.status} ({len(self.response)} bytes)"
        )
        self.dispatch_event(Event("load"))


class HttpTransport:
    """Creates HttpRequest objects sharing one httpx client.

    Example:
        >>> transport = HttpTransport(LoaderConfig())
        >>> request = transport.request("https://example.com/a.png")
        >>> ...
        >>> await transport.aclose()
    """

    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialise the transport.

        Args:
            config: Supplies timeout and User-Agent for the default client.
            client: Use this client instead of creating one (e.g. one built
                on httpx.MockTransport in tests).
        """
        self.config = config or LoaderConfig()
        self._client = client
        self._requests = 0

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the httpx client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent},
            )
        return self._client

    @property
    def request_count(self) -> int:
        """Number of requests created by this transport."""
        return self._requests

    def request(self, url: str) -> HttpRequest:
        """Create (but do not send) a GET request for url."""
        self._requests += 1
        return HttpRequest(self.client, url)

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
