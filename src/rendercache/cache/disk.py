"""Persistent disk cache backed by SQLite."""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from fnmatch import fnmatchcase
from pathlib import Path
from typing import TypeVar

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from rendercache.cache.stats import CacheEntry
from rendercache.errors.exceptions import CacheUnavailableError
from rendercache.utils.image import to_storable_bytes

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_MAX_SIZE_MB = 2000
_DEFAULT_DB_PATH = Path.home() / ".rendercache" / "cache.db"
_BUSY_TIMEOUT_SECONDS = 5.0


def _is_locked(exc: BaseException) -> bool:
    return isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc).lower()


_retry_locked = retry(
    retry=retry_if_exception(_is_locked),
    wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
    stop=stop_after_attempt(3),
    reraise=True,
)


class DiskCache:
    """SQLite-backed persistent cache with TTL and LRU eviction.

    Safe to share between threads of one process and between processes
    pointing at the same file: every write runs in its own transaction and
    SQLite serializes writers.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        max_size_mb: float = _DEFAULT_MAX_SIZE_MB,
        busy_timeout: float = _BUSY_TIMEOUT_SECONDS,
    ) -> None:
        self._db_path = Path(db_path) if db_path else _DEFAULT_DB_PATH
        self._max_size_bytes = int(max_size_mb * 1024 * 1024)
        self._lock = threading.RLock()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(self._db_path), timeout=busy_timeout, check_same_thread=False
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
        except (OSError, sqlite3.Error) as exc:
            raise CacheUnavailableError(
                f"Cannot open disk cache at {self._db_path}: {exc}",
                backend="sqlite",
                original=exc,
            ) from exc
        self._run("init", self._create_table)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get(self, key: str) -> CacheEntry | None:
        def op(conn: sqlite3.Connection) -> CacheEntry | None:
            row = conn.execute("SELECT * FROM cache WHERE key = ?", (key,)).fetchone()
            if row is None:
                return None
            entry = self._row_to_entry(row)
            if entry.is_expired:
                conn.execute("DELETE FROM cache WHERE key = ?", (key,))
                return None
            # Update last_accessed for LRU
            entry.touch()
            conn.execute(
                "UPDATE cache SET last_accessed = ? WHERE key = ?",
                (entry.last_accessed, key),
            )
            return entry

        return self._run("get", op)

    def set(self, key: str, entry: CacheEntry) -> None:
        payload = to_storable_bytes(entry.artifact)
        size_bytes = len(payload) + len(entry.fingerprint.encode("utf-8"))

        def op(conn: sqlite3.Connection) -> None:
            self._evict_if_needed(conn, key, size_bytes)
            conn.execute(
                """INSERT OR REPLACE INTO cache
                   (key, namespace, fingerprint, width, height, pixel_ratio,
                    artifact, created_at, last_accessed, ttl_seconds, size_bytes)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    key, entry.namespace, entry.fingerprint,
                    entry.width, entry.height, entry.pixel_ratio,
                    sqlite3.Binary(payload), entry.created_at, time.time(),
                    entry.ttl_seconds, size_bytes,
                ),
            )

        self._run("set", op)

    def delete(self, key: str) -> bool:
        def op(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM cache WHERE key = ?", (key,))
            return cursor.rowcount > 0

        return self._run("delete", op)

    def clear(self) -> None:
        self._run("clear", lambda conn: conn.execute("DELETE FROM cache"))

    def invalidate(
        self,
        namespace: str | None = None,
        pattern: str | None = None,
        fingerprint: str | None = None,
    ) -> int:
        """Remove matching entries. No filter removes all. Returns count deleted."""
        conditions: list[str] = []
        params: list[str] = []
        if namespace is not None:
            conditions.append("namespace = ?")
            params.append(namespace)
        if fingerprint is not None:
            conditions.append("fingerprint = ?")
            params.append(fingerprint)
        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""

        def op(conn: sqlite3.Connection) -> int:
            if pattern is None:
                cursor = conn.execute(f"DELETE FROM cache{where}", params)
                return cursor.rowcount
            rows = conn.execute(f"SELECT key, fingerprint FROM cache{where}", params).fetchall()
            keys = [(row["key"],) for row in rows if fnmatchcase(row["fingerprint"], pattern)]
            conn.executemany("DELETE FROM cache WHERE key = ?", keys)
            return len(keys)

        return self._run("invalidate", op)

    @property
    def entry_count(self) -> int:
        return self._run("count", lambda conn: conn.execute("SELECT COUNT(*) FROM cache").fetchone()[0])

    @property
    def size_mb(self) -> float:
        total = self._run(
            "size",
            lambda conn: conn.execute("SELECT COALESCE(SUM(size_bytes), 0) FROM cache").fetchone()[0],
        )
        return total / (1024 * 1024)

    def __len__(self) -> int:
        return self.entry_count

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _run(self, op_name: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run fn in a transaction, mapping SQLite failures to CacheUnavailableError."""
        try:
            with self._lock:
                return self._run_with_retry(fn)
        except sqlite3.Error as exc:
            raise CacheUnavailableError(
                f"Disk cache {op_name} failed: {exc}",
                backend="sqlite",
                original=exc,
            ) from exc

    @_retry_locked
    def _run_with_retry(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        with self._conn:
            return fn(self._conn)

    @staticmethod
    def _create_table(conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                key TEXT PRIMARY KEY,
                namespace TEXT,
                fingerprint TEXT,
                width INTEGER,
                height INTEGER,
                pixel_ratio REAL,
                artifact BLOB,
                created_at REAL,
                last_accessed REAL,
                ttl_seconds REAL,
                size_bytes INTEGER
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_cache_namespace ON cache (namespace)")

    def _evict_if_needed(self, conn: sqlite3.Connection, key: str, new_entry_size: int) -> None:
        # First remove expired entries
        conn.execute(
            "DELETE FROM cache WHERE ttl_seconds IS NOT NULL AND created_at + ttl_seconds < ?",
            (time.time(),),
        )
        # The entry being replaced does not count against the budget
        conn.execute("DELETE FROM cache WHERE key = ?", (key,))

        # Then LRU evict if still over limit
        while True:
            current_size = conn.execute(
                "SELECT COALESCE(SUM(size_bytes), 0) FROM cache"
            ).fetchone()[0]
            if current_size + new_entry_size <= self._max_size_bytes:
                break
            oldest = conn.execute(
                "SELECT key FROM cache ORDER BY last_accessed ASC LIMIT 1"
            ).fetchone()
            if oldest is None:
                break
            logger.debug("Evicting LRU disk entry %s", oldest[0][:12])
            conn.execute("DELETE FROM cache WHERE key = ?", (oldest[0],))

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(
            key=row["key"],
            namespace=row["namespace"] or "",
            fingerprint=row["fingerprint"] or "",
            width=row["width"] or 0,
            height=row["height"] or 0,
            pixel_ratio=row["pixel_ratio"] or 1.0,
            artifact=bytes(row["artifact"]) if row["artifact"] is not None else b"",
            created_at=row["created_at"],
            last_accessed=row["last_accessed"],
            ttl_seconds=row["ttl_seconds"],
        )
