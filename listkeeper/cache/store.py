"""Keyed cache store with per-key TTL.

``CacheStore`` is the interface the list cache accessors depend on.
``SQLiteCacheStore`` is the bundled implementation: values are stored as
JSON text next to an absolute expiry timestamp, and expired rows read as
absent.
"""

import json
import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key         TEXT PRIMARY KEY,
    value_json  TEXT NOT NULL,
    expires_at  REAL
)
"""

_SELECT = "SELECT value_json, expires_at FROM cache_entries WHERE key = ?"
_UPSERT = """
INSERT INTO cache_entries (key, value_json, expires_at) VALUES (?, ?, ?)
ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, expires_at = excluded.expires_at
"""
_DELETE = "DELETE FROM cache_entries WHERE key = ?"
_PURGE = "DELETE FROM cache_entries WHERE expires_at IS NOT NULL AND expires_at <= ?"


class CacheUnavailable(Exception):
    """Raised when the cache backend cannot be read or written."""


class CacheStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class SQLiteCacheStore:
    """SQLite-backed key/value cache with per-key expiry.

    A ``ttl_seconds`` of zero or less stores the value without expiry.

    Usage::

        with SQLiteCacheStore("/path/to/cache.db") as cache:
            cache.set("lists_primary", {"abc": {...}}, 86400)
            lists = cache.get("lists_primary")
    """

    def __init__(self, db_path: str | Path, *, clock: Callable[[], float] = time.time) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_CREATE_TABLE)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteCacheStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        try:
            with self._lock:
                row = self._conn.execute(_SELECT, (key,)).fetchone()
                if row is None:
                    return None
                value_json, expires_at = row
                if expires_at is not None and expires_at <= self._clock():
                    self._conn.execute(_DELETE, (key,))
                    self._conn.commit()
                    logger.debug("Cache entry %s expired", key)
                    return None
            return json.loads(value_json)
        except sqlite3.Error as exc:
            raise CacheUnavailable(f"Cache read failed for {key!r}: {exc}") from exc
        except ValueError as exc:
            raise CacheUnavailable(f"Cache entry {key!r} is not valid JSON: {exc}") from exc

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a JSON-serializable value, replacing any previous one."""
        expires_at = self._clock() + ttl_seconds if ttl_seconds > 0 else None
        value_json = json.dumps(value)
        try:
            with self._lock:
                self._conn.execute(_UPSERT, (key, value_json, expires_at))
                self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheUnavailable(f"Cache write failed for {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is a no-op."""
        try:
            with self._lock:
                self._conn.execute(_DELETE, (key,))
                self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheUnavailable(f"Cache delete failed for {key!r}: {exc}") from exc

    def purge_expired(self) -> int:
        """Delete every expired entry. Returns the number of rows removed."""
        try:
            with self._lock:
                cursor = self._conn.execute(_PURGE, (self._clock(),))
                self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheUnavailable(f"Cache purge failed: {exc}") from exc
        return cursor.rowcount
