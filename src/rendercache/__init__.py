"""rendercache — memoize expensive renders by state fingerprint and size bucket."""

from rendercache.cache import (
    CacheEntry,
    CacheKey,
    CacheStats,
    DiskCache,
    MemoryCache,
    RenderCache,
    SizingPolicy,
    get_shared_cache,
    teardown_shared_cache,
)
from rendercache.config import CacheConfig, SizingConfig, load_config_yaml, resolve_config
from rendercache.errors import (
    ArtifactTypeError,
    CacheUnavailableError,
    InvalidKeyError,
    InvalidSizeError,
    RenderCacheError,
)
from rendercache.types import RenderContext, RenderSize, Scope, SizeBucket

__version__ = "0.1.0"

__all__ = [
    "RenderCache",
    "CacheConfig",
    "SizingConfig",
    "Scope",
    "RenderContext",
    "RenderSize",
    "SizeBucket",
    "SizingPolicy",
    "CacheKey",
    "CacheEntry",
    "CacheStats",
    "MemoryCache",
    "DiskCache",
    "get_shared_cache",
    "teardown_shared_cache",
    "load_config_yaml",
    "resolve_config",
    "RenderCacheError",
    "InvalidKeyError",
    "InvalidSizeError",
    "CacheUnavailableError",
    "ArtifactTypeError",
]
