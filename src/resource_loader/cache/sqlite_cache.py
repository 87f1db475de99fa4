"""
PersistentCacheBackend: SQLite-backed store for encoded resources.

Provides:
- One key/value table (default "Cache") keyed by URL
- Schema versioning via ``PRAGMA user_version`` with destructive upgrade
- Asynchronous open/get/put delivered through CacheListener callbacks
- A dedicated worker thread so SQLite never blocks the event loop
- Synchronous helpers for maintenance commands (stats, import/export)
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator, Optional

from resource_loader.cache.base import CacheBackend, CacheListener, CacheState
from resource_loader.cache.request import CacheRequest
from resource_loader.errors import require

logger = logging.getLogger(__name__)


class SchemaVersionError(Exception):
    """The database schema version is not the one expected."""


class PersistentCacheBackend(CacheBackend):
    """SQLite-backed cache backend.

    Only one open attempt is made per backend. A second open() while the
    first is still running returns True but its listener is never called;
    callers sharing a backend should wait for the first opener.

    Attributes:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
        store_name: Table holding the key/value pairs.
        schema_version: Version the database is opened at.

    Example:
        >>> backend = PersistentCacheBackend("cache.db")
        >>> backend.open(listener)  # listener.on_open(True) follows
        >>> backend.get(listener, "https://example.com/a.png")
    """

    def __init__(
        self,
        db_path: str | Path,
        store_name: str = "Cache",
        schema_version: int = 1,
    ) -> None:
        """Initialise PersistentCacheBackend.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for an
                in-memory database (fast, non-persistent).
            store_name: Name of the key/value table.
            schema_version: Version to open the database at. An older
                database has its table dropped and recreated.
        """
        self.db_path = str(db_path)
        self.store_name = store_name
        self.schema_version = schema_version
        self._conn: Optional[sqlite3.Connection] = None
        self._state = CacheState.UNINITIALIZED
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get the database connection, raising if not connected."""
        if self._conn is None:
            raise RuntimeError(
                "Cache not connected. Use 'with backend:' or call open()."
            )
        return self._conn

    @property
    def is_memory(self) -> bool:
        """Check if this is an in-memory database."""
        return self.db_path == ":memory:"

    @property
    def state(self) -> CacheState:
        """Current lifecycle state."""
        return self._state

    @property
    def executor(self) -> ThreadPoolExecutor:
        """Single worker thread running all database jobs in order."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="resource-cache"
            )
        return self._executor

    def is_ready(self) -> bool:
        """Return whether the database is open."""
        return self._state is CacheState.READY

    # ========================================================================
    # Asynchronous listener API
    # ========================================================================

    def open(self, listener: CacheListener) -> bool:
        """Open the database on the worker thread.

        Returns:
            False if the one open attempt has already failed, True
            otherwise. Only the listener of the call that starts the
            attempt receives on_open().
        """
        if self._state is CacheState.FAILED:
            return False
        if self._state in (CacheState.OPENING, CacheState.READY):
            return True

        self._state = CacheState.OPENING
        logger.debug(f"Opening cache database {self.db_path}")
        CacheRequest("open", listener).submit(
            asyncio.get_running_loop(),
            self.executor,
            self._open_job,
            self._finish_open,
        )
        return True

    def get(self, listener: CacheListener, key: str) -> None:
        """Read the value stored for key.

        on_get(found, value) follows; an absent key and an empty stored
        value both report found=False with value "".
        """
        require(self.is_ready(), "cache is not open")
        CacheRequest("get", listener).submit(
            asyncio.get_running_loop(),
            self.executor,
            lambda: self._read(key),
            self._finish_get,
        )

    def put(self, listener: CacheListener, key: str, value: str) -> None:
        """Write value for key, replacing any previous value."""
        require(self.is_ready(), "cache is not open")
        CacheRequest("put", listener).submit(
            asyncio.get_running_loop(),
            self.executor,
            lambda: self._write(key, value),
            self._finish_put,
        )

    async def flush(self) -> None:
        """Wait until every job submitted so far has run."""
        if self._executor is None:
            return
        await asyncio.get_running_loop().run_in_executor(
            self._executor, lambda: None
        )

    def _finish_open(self, listener: CacheListener, success: bool) -> None:
        self._state = CacheState.READY if success else CacheState.FAILED
        listener.on_open(success)

    @staticmethod
    def _finish_get(listener: CacheListener, value: str) -> None:
        listener.on_get(bool(value), value)

    @staticmethod
    def _finish_put(listener: CacheListener, success: bool) -> None:
        listener.on_put(success)

    # ========================================================================
    # Jobs (run on the worker thread, never raise)
    # ========================================================================

    def _open_job(self) -> bool:
        """Connect and bring the schema to the configured version."""
        try:
            self._conn = self._connect(upgrade=True)
        except (sqlite3.Error, SchemaVersionError) as e:
            logger.warning(f"Failed to open cache {self.db_path}: {e}")
            return False
        return True

    def _read(self, key: str) -> str:
        try:
            cursor = self.conn.execute(
                f'SELECT value FROM "{self.store_name}" WHERE key = ?',
                (key,),
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return ""
        return row[0] if row and row[0] else ""

    def _write(self, key: str, value: str) -> bool:
        try:
            self.put_entry(key, value)
        except sqlite3.Error as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False
        return True

    def _connect(self, upgrade: bool) -> sqlite3.Connection:
        """Open the database and check or upgrade its schema version.

        Raises:
            sqlite3.Error: If the file cannot be read as a database.
            SchemaVersionError: If the version is newer, or differs at all
                when upgrade is False.
        """
        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,  # Used from the worker thread
        )
        try:
            if upgrade:
                if not self.is_memory:
                    conn.execute("PRAGMA journal_mode = WAL")
                self._upgrade(conn)
            else:
                self._check_version(conn)
        except (sqlite3.Error, SchemaVersionError):
            conn.close()
            raise
        return conn

    def _check_version(self, conn: sqlite3.Connection) -> None:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version != self.schema_version:
            raise SchemaVersionError(
                f"Database version {version} does not match "
                f"{self.schema_version}"
            )

    def _upgrade(self, conn: sqlite3.Connection) -> None:
        """Recreate the store if the database predates schema_version.

        Raises:
            SchemaVersionError: If the database has a newer version.
        """
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version > self.schema_version:
            raise SchemaVersionError(
                f"Database version {version} is newer than "
                f"{self.schema_version}"
            )
        if version == self.schema_version:
            return

        logger.info(
            f"Upgrading cache {self.db_path} from version {version} to "
            f"{self.schema_version}; existing entries are dropped"
        )
        conn.executescript(
            f"""
            BEGIN;
            DROP TABLE IF EXISTS "{self.store_name}";
            CREATE TABLE "{self.store_name}" (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            PRAGMA user_version = {int(self.schema_version)};
            COMMIT;
            """
        )

    # ========================================================================
    # Synchronous maintenance API
    # ========================================================================

    def connect(self, upgrade: bool = True) -> PersistentCacheBackend:
        """Open the database synchronously (for maintenance commands).

        Args:
            upgrade: Recreate the store of an older database, as open()
                does. With False the database is left untouched and any
                version other than schema_version is an error.

        Returns:
            self for method chaining.

        Raises:
            RuntimeError: If already connected or the open fails.
        """
        if self._conn is not None:
            raise RuntimeError("Cache already connected.")
        try:
            self._conn = self._connect(upgrade)
        except (sqlite3.Error, SchemaVersionError) as e:
            self._state = CacheState.FAILED
            raise RuntimeError(
                f"Could not open cache {self.db_path}: {e}"
            ) from e
        self._state = CacheState.READY
        return self

    def close(self) -> None:
        """Stop the worker thread and close the database connection."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._state = CacheState.UNINITIALIZED

    def __enter__(self) -> PersistentCacheBackend:
        """Context manager entry - opens connection."""
        return self.connect()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit - closes connection."""
        self.close()

    def stored_version(self) -> int:
        """Return the schema version recorded in the database."""
        return int(self.conn.execute("PRAGMA user_version").fetchone()[0])

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the database.

        Args:
            table_name: Name of the table to check.

        Returns:
            True if table exists, False otherwise.
        """
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master " "WHERE type='table' AND name=?",
            (table_name,),
        )
        return cursor.fetchone() is not None

    def entry_count(self) -> int:
        """Count stored entries."""
        cursor = self.conn.execute(
            f'SELECT COUNT(*) FROM "{self.store_name}"'
        )
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def total_size(self) -> int:
        """Total length in characters of all stored values."""
        cursor = self.conn.execute(
            f'SELECT COALESCE(SUM(LENGTH(value)), 0) FROM "{self.store_name}"'
        )
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def entries(self) -> Iterator[tuple[str, str]]:
        """Iterate over (key, value) pairs ordered by key."""
        cursor = self.conn.execute(
            f'SELECT key, value FROM "{self.store_name}" ORDER BY key'
        )
        for row in cursor:
            yield row[0], row[1]

    def get_entry(self, key: str) -> Optional[str]:
        """Read a value synchronously, None if absent."""
        cursor = self.conn.execute(
            f'SELECT value FROM "{self.store_name}" WHERE key = ?', (key,)
        )
        row = cursor.fetchone()
        return row[0] if row else None

    def put_entry(self, key: str, value: str) -> None:
        """Write a value synchronously (last write wins)."""
        self.conn.execute(
            f'INSERT OR REPLACE INTO "{self.store_name}" (key, value) '
            "VALUES (?, ?)",
            (key, value),
        )
        self.conn.commit()
