"""Error handling — exception hierarchy for key, size and store failures."""

from rendercache.errors.exceptions import (
    ArtifactTypeError,
    CacheUnavailableError,
    InvalidKeyError,
    InvalidSizeError,
    RenderCacheError,
)

__all__ = [
    "RenderCacheError",
    "InvalidKeyError",
    "InvalidSizeError",
    "CacheUnavailableError",
    "ArtifactTypeError",
]
