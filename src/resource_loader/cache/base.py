"""Cache backend interface and its listener protocol.

Backends store already-encoded resource text keyed by URL. Every operation
completes asynchronously through a ``CacheListener`` rather than a return
value, so callers chain the next step from the callback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol


class CacheState(str, Enum):
    """Lifecycle of a cache backend."""

    UNINITIALIZED = "uninitialized"
    OPENING = "opening"
    READY = "ready"
    FAILED = "failed"  # The single open attempt did not succeed
    UNAVAILABLE = "unavailable"  # No storage facility on this host


class CacheListener(Protocol):
    """Receives completions of cache backend operations."""

    def on_open(self, success: bool) -> None:
        """Called when the backend finished opening."""
        ...

    def on_get(self, found: bool, value: str) -> None:
        """Called with the result of a get; value is "" when not found."""
        ...

    def on_put(self, success: bool) -> None:
        """Called when a put has been written (or failed)."""
        ...


class CacheBackend(ABC):
    """Abstract key/value store used by loaders.

    Implementations must deliver each completion to the listener passed
    with the operation, exactly once, on the event loop thread.
    """

    @property
    def available(self) -> bool:
        """Whether this backend is backed by a real storage facility."""
        return True

    @property
    @abstractmethod
    def state(self) -> CacheState:
        """Current lifecycle state."""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Return whether get() and put() may be called."""
        pass

    @abstractmethod
    def open(self, listener: CacheListener) -> bool:
        """Open the backend.

        Args:
            listener: Receives on_open() once the open attempt completes.

        Returns:
            False if the backend cannot be opened at all, in which case no
            callback will follow.
        """
        pass

    @abstractmethod
    def put(self, listener: CacheListener, key: str, value: str) -> None:
        """Write a key/value pair; completion via on_put()."""
        pass

    @abstractmethod
    def get(self, listener: CacheListener, key: str) -> None:
        """Read a value; completion via on_get()."""
        pass

    async def flush(self) -> None:
        """Wait until submitted operations have completed."""
        return None
