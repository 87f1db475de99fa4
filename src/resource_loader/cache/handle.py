"""The shared cache handle passed to every loader.

An application constructs one ``CacheHandle`` and gives the same instance
to each ``Loader``. The backend behind it is chosen on first use and then
kept for the lifetime of the handle.
"""

from __future__ import annotations

import logging
from typing import Optional

from resource_loader.cache.base import CacheBackend
from resource_loader.cache.null import NullCacheBackend
from resource_loader.cache.sqlite_cache import PersistentCacheBackend
from resource_loader.config import LoaderConfig

logger = logging.getLogger(__name__)


def detect_backend(config: LoaderConfig) -> CacheBackend:
    """Pick the backend variant the host supports.

    Args:
        config: Loader configuration.

    Returns:
        A PersistentCacheBackend when a cache location is configured and
        its directory exists, otherwise a NullCacheBackend.
    """
    db_file = config.database_file
    if db_file is None:
        logger.debug("Caching disabled; using null cache backend")
        return NullCacheBackend()
    if str(db_file) != ":memory:" and not db_file.parent.is_dir():
        logger.warning(
            f"Cache directory {db_file.parent} does not exist; "
            "caching disabled"
        )
        return NullCacheBackend()
    return PersistentCacheBackend(
        db_file,
        store_name=config.store_name,
        schema_version=config.schema_version,
    )


class CacheHandle:
    """Lazily created, shared owner of the process's cache backend.

    Example:
        >>> handle = CacheHandle(LoaderConfig(cache_path=Path("cache.db")))
        >>> loader_a = Loader(listener_a, handle)
        >>> loader_b = Loader(listener_b, handle)  # same backend
    """

    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        backend: Optional[CacheBackend] = None,
    ) -> None:
        """Initialise the handle.

        Args:
            config: Configuration used to detect the backend on first use.
            backend: Use this backend instead of detecting one.
        """
        self.config = config or LoaderConfig()
        self._backend = backend

    @property
    def initialized(self) -> bool:
        """Whether the backend has been created."""
        return self._backend is not None

    @property
    def backend(self) -> CacheBackend:
        """Return the backend, creating it on first access."""
        if self._backend is None:
            self._backend = detect_backend(self.config)
        return self._backend

    def close(self) -> None:
        """Release the backend's resources at application shutdown."""
        if isinstance(self._backend, PersistentCacheBackend):
            self._backend.close()
