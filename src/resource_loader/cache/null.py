"""Cache backend for hosts without a storage facility."""

from __future__ import annotations

from resource_loader.cache.base import CacheBackend, CacheListener, CacheState
from resource_loader.errors import require


class NullCacheBackend(CacheBackend):
    """Backend that is never available.

    Loaders check ``available`` and go straight to the network, so open()
    is never expected to be called; get() and put() are contract errors.
    """

    @property
    def available(self) -> bool:
        return False

    @property
    def state(self) -> CacheState:
        return CacheState.UNAVAILABLE

    def is_ready(self) -> bool:
        return False

    def open(self, listener: CacheListener) -> bool:
        return False

    def put(self, listener: CacheListener, key: str, value: str) -> None:
        require(False, "no cache storage is available")

    def get(self, listener: CacheListener, key: str) -> None:
        require(False, "no cache storage is available")
