"""Cache subsystem — quantized size keys, scoped memory and disk stores."""

from rendercache.cache.backend import CacheStore
from rendercache.cache.disk import DiskCache
from rendercache.cache.keys import CacheKey, generate_cache_key, serialize_fingerprint
from rendercache.cache.manager import RenderCache, get_shared_cache, teardown_shared_cache
from rendercache.cache.memory import MemoryCache
from rendercache.cache.sizing import SizingPolicy
from rendercache.cache.stats import CacheEntry, CacheStats

__all__ = [
    "RenderCache",
    "CacheStore",
    "MemoryCache",
    "DiskCache",
    "SizingPolicy",
    "CacheKey",
    "CacheEntry",
    "CacheStats",
    "generate_cache_key",
    "serialize_fingerprint",
    "get_shared_cache",
    "teardown_shared_cache",
]
