"""
Cache backends for loaded resources.

This module provides:
- CacheBackend: the listener-driven key/value interface
- PersistentCacheBackend: SQLite storage with destructive schema upgrades
- NullCacheBackend: stand-in when no storage is available
- CacheHandle: the shared, lazily created holder of the backend
"""

from resource_loader.cache.base import CacheBackend, CacheListener, CacheState
from resource_loader.cache.handle import CacheHandle, detect_backend
from resource_loader.cache.null import NullCacheBackend
from resource_loader.cache.sqlite_cache import PersistentCacheBackend

__all__ = [
    "CacheBackend",
    "CacheListener",
    "CacheState",
    "CacheHandle",
    "NullCacheBackend",
    "PersistentCacheBackend",
    "detect_backend",
]
