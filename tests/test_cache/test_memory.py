"""Tests for in-memory LRU cache."""

import threading
import time

from rendercache.cache.memory import MemoryCache
from rendercache.cache.stats import CacheEntry


def _entry(key: str, artifact: bytes = b"test", **kwargs) -> CacheEntry:
    return CacheEntry(key=key, artifact=artifact, **kwargs)


class TestMemoryCache:
    def test_get_set(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", b"png-bytes"))
        result = cache.get("k1")
        assert result is not None
        assert result.artifact == b"png-bytes"

    def test_get_miss(self):
        cache = MemoryCache()
        assert cache.get("nonexistent") is None

    def test_expired_entry_returns_none(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", created_at=time.time() - 100, ttl_seconds=1))
        assert cache.get("k1") is None
        assert len(cache) == 0

    def test_no_ttl_never_expires(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", created_at=time.time() - 10**9))
        assert cache.get("k1") is not None

    def test_lru_eviction_by_size(self):
        # Cache limit of 0.0002 MB ≈ 209 bytes — fits 1 entry of 200 bytes, not 2
        cache = MemoryCache(max_size_mb=0.0002)
        cache.set("k1", _entry("k1", b"a" * 200))
        cache.set("k2", _entry("k2", b"b" * 200))
        assert cache.get("k1") is None
        assert cache.get("k2") is not None

    def test_lru_order_preserved(self):
        # Each entry 500 bytes, cache fits 2 entries
        cache = MemoryCache(max_size_mb=0.001)
        cache.set("k1", _entry("k1", b"a" * 500))
        cache.set("k2", _entry("k2", b"b" * 500))
        # Access k1 to make it most recently used
        cache.get("k1")
        cache.set("k3", _entry("k3", b"c" * 500))
        assert cache.get("k1") is not None
        assert cache.get("k2") is None

    def test_lru_eviction_by_entry_count(self):
        cache = MemoryCache(max_entries=2)
        cache.set("k1", _entry("k1"))
        cache.set("k2", _entry("k2"))
        cache.get("k1")
        cache.set("k3", _entry("k3"))
        assert len(cache) == 2
        assert "k2" not in cache
        assert "k1" in cache

    def test_oversize_entry_not_stored(self):
        cache = MemoryCache(max_size_mb=0.0001)
        cache.set("small", _entry("small", b"x"))
        cache.set("huge", _entry("huge", b"x" * 10_000))
        assert cache.get("huge") is None
        assert cache.get("small") is not None

    def test_get_updates_last_accessed(self):
        cache = MemoryCache()
        entry = _entry("k1", last_accessed=0.0)
        cache.set("k1", entry)
        assert cache.get("k1").last_accessed > 0.0

    def test_delete(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1"))
        assert cache.delete("k1") is True
        assert cache.delete("k1") is False
        assert cache.size_mb == 0

    def test_clear(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1"))
        cache.set("k2", _entry("k2"))
        cache.clear()
        assert len(cache) == 0
        assert cache.get("k1") is None

    def test_len_and_entry_count(self):
        cache = MemoryCache()
        assert len(cache) == 0
        cache.set("k1", _entry("k1"))
        cache.set("k2", _entry("k2"))
        assert len(cache) == 2
        assert cache.entry_count == 2

    def test_size_mb(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", b"x" * 1000))
        assert cache.size_mb > 0

    def test_invalidate_by_namespace(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", namespace="scatter"))
        cache.set("k2", _entry("k2", namespace="hist"))
        assert cache.invalidate(namespace="scatter") == 1
        assert cache.get("k1") is None
        assert cache.get("k2") is not None

    def test_invalidate_by_pattern(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", fingerprint='["carat","price"]'))
        cache.set("k2", _entry("k2", fingerprint='["depth","price"]'))
        assert cache.invalidate(pattern='*"carat"*') == 1
        assert cache.get("k2") is not None

    def test_invalidate_by_exact_fingerprint(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", fingerprint='"a"'))
        cache.set("k2", _entry("k2", fingerprint='"ab"'))
        assert cache.invalidate(fingerprint='"a"') == 1

    def test_invalidate_no_filter_removes_all(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1"))
        cache.set("k2", _entry("k2"))
        assert cache.invalidate() == 2
        assert len(cache) == 0

    def test_overwrite_existing_key(self):
        cache = MemoryCache()
        cache.set("k1", _entry("k1", b"first"))
        cache.set("k1", _entry("k1", b"second"))
        assert cache.get("k1").artifact == b"second"
        assert len(cache) == 1

    def test_concurrent_writers(self):
        cache = MemoryCache(max_entries=50)

        def writer(prefix: str) -> None:
            for i in range(200):
                cache.set(f"{prefix}{i}", _entry(f"{prefix}{i}"))

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 50
