"""Configuration for the resource loader and its cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

CACHE_PATH_ENV = "RESOURCE_LOADER_CACHE"


@dataclass
class LoaderConfig:
    """Configuration shared by the loader, its transport and its cache.

    Attributes:
        cache_path: SQLite database file, or a directory in which
            ``<database_name>.db`` is created. Falls back to the
            RESOURCE_LOADER_CACHE environment variable.
        use_cache: Whether to use a cache at all. Caching is also off when
            no cache_path is configured.
        database_name: Logical database name.
        store_name: Name of the key/value table inside the database.
        schema_version: Schema version the store is opened at. A database
            with an older version is wiped and recreated.
        timeout: HTTP timeout in seconds, None for no timeout.
        user_agent: User-Agent header sent with every request.
    """

    cache_path: Optional[Path] = None
    use_cache: bool = True
    database_name: str = "Test"
    store_name: str = "Cache"
    schema_version: int = 1
    timeout: Optional[float] = None
    user_agent: str = "resource-loader"

    def __post_init__(self) -> None:
        """Resolve the cache path from the environment and validate."""
        if self.cache_path is None:
            env_path = os.getenv(CACHE_PATH_ENV)
            if env_path:
                self.cache_path = Path(env_path)
        else:
            self.cache_path = Path(self.cache_path)

        if self.schema_version < 1:
            raise ValueError(
                f"schema_version must be at least 1, got {self.schema_version}"
            )
        if not self.store_name.isidentifier():
            raise ValueError(f"Invalid store name: {self.store_name!r}")

    @property
    def cache_enabled(self) -> bool:
        """Whether a cache location is configured and caching is on."""
        return self.use_cache and self.cache_path is not None

    @property
    def database_file(self) -> Optional[Path]:
        """Resolve the SQLite file used for the cache.

        Returns:
            The database file path, or None when caching is disabled.
        """
        if not self.cache_enabled:
            return None
        assert self.cache_path is not None
        if self.cache_path.is_dir():
            return self.cache_path / f"{self.database_name}.db"
        return self.cache_path
