"""L1 in-memory LRU cache."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

from rendercache.cache.backend import matches_filter
from rendercache.cache.stats import CacheEntry

logger = logging.getLogger(__name__)

_DEFAULT_MAX_SIZE_MB = 200
_DEFAULT_MAX_ENTRIES = 1000


class MemoryCache:
    """Thread-safe in-memory LRU cache bounded by total size and entry count."""

    def __init__(
        self,
        max_size_mb: float = _DEFAULT_MAX_SIZE_MB,
        max_entries: int | None = _DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_size_bytes = int(max_size_mb * 1024 * 1024)
        self._max_entries = max_entries
        self._current_size_bytes = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired:
                self._remove(key)
                return None
            # Move to end (most recently used)
            self._store.move_to_end(key)
            entry.touch()
            return entry

    def set(self, key: str, entry: CacheEntry) -> None:
        entry_size = entry.size_bytes
        with self._lock:
            if key in self._store:
                self._remove(key)
            if entry_size > self._max_size_bytes:
                logger.warning(
                    "Entry %s (%d bytes) exceeds memory cache budget, not stored",
                    key[:12], entry_size,
                )
                return
            # Evict until there's room
            while self._store and (
                self._current_size_bytes + entry_size > self._max_size_bytes
                or (self._max_entries is not None and len(self._store) >= self._max_entries)
            ):
                self._evict_oldest()
            self._store[key] = entry
            self._current_size_bytes += entry_size

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._remove(key)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._current_size_bytes = 0

    def invalidate(
        self,
        namespace: str | None = None,
        pattern: str | None = None,
        fingerprint: str | None = None,
    ) -> int:
        """Remove entries matching the given filters. No filter removes all."""
        with self._lock:
            to_remove = [
                key
                for key, entry in self._store.items()
                if matches_filter(entry, namespace, pattern, fingerprint)
            ]
            for key in to_remove:
                self._remove(key)
            return len(to_remove)

    @property
    def entry_count(self) -> int:
        return len(self)

    @property
    def size_mb(self) -> float:
        return self._current_size_bytes / (1024 * 1024)

    def close(self) -> None:
        self.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def _remove(self, key: str) -> bool:
        entry = self._store.pop(key, None)
        if entry is None:
            return False
        self._current_size_bytes -= entry.size_bytes
        return True

    def _evict_oldest(self) -> None:
        key, entry = self._store.popitem(last=False)
        self._current_size_bytes -= entry.size_bytes
        logger.debug("Evicted LRU entry %s", key[:12])
