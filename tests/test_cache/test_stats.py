"""Tests for cache entry and stats models."""

import time

from PIL import Image

from rendercache.cache.stats import CacheEntry, CacheStats


class TestCacheEntry:
    def test_defaults(self):
        entry = CacheEntry(key="k1")
        assert entry.namespace == ""
        assert entry.fingerprint == ""
        assert entry.artifact is None
        assert entry.ttl_seconds is None
        assert entry.pixel_ratio == 1.0

    def test_never_expires_without_ttl(self):
        entry = CacheEntry(key="k1", created_at=0.0)
        assert not entry.is_expired

    def test_is_expired_false_when_fresh(self):
        entry = CacheEntry(key="k1", ttl_seconds=60)
        assert not entry.is_expired

    def test_is_expired_true_when_old(self):
        entry = CacheEntry(key="k1", created_at=time.time() - 999999, ttl_seconds=1)
        assert entry.is_expired

    def test_size_bytes_for_bytes(self):
        entry = CacheEntry(key="k1", artifact=b"x" * 100)
        assert entry.size_bytes == 100

    def test_size_bytes_includes_fingerprint(self):
        plain = CacheEntry(key="k1", artifact=b"x")
        with_fp = CacheEntry(key="k2", artifact=b"x", fingerprint='["carat","price"]')
        assert with_fp.size_bytes > plain.size_bytes

    def test_size_bytes_for_image(self):
        entry = CacheEntry(key="k1", artifact=Image.new("RGBA", (10, 20)))
        assert entry.size_bytes == 10 * 20 * 4

    def test_touch(self):
        entry = CacheEntry(key="k1", last_accessed=0.0)
        entry.touch()
        assert entry.last_accessed > 0.0


class TestCacheStats:
    def test_defaults(self):
        stats = CacheStats()
        assert stats.hits == 0
        assert stats.misses == 0
        assert stats.renders == 0
        assert stats.entries == 0

    def test_hit_rate_zero_when_no_requests(self):
        assert CacheStats().hit_rate == 0.0

    def test_hit_rate_calculation(self):
        assert CacheStats(hits=3, misses=1).hit_rate == 0.75

    def test_hit_rate_all_hits(self):
        assert CacheStats(hits=10, misses=0).hit_rate == 1.0
