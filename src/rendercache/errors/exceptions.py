"""Custom exception hierarchy for rendercache."""

from __future__ import annotations

from typing import Any


class RenderCacheError(Exception):
    """Base exception for all rendercache errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class InvalidKeyError(RenderCacheError, TypeError):
    """Fingerprint cannot be turned into a stable cache key.

    Examples: arbitrary objects, NaN floats, mappings with non-string keys.
    """

    def __init__(self, message: str = "", value_type: str | None = None) -> None:
        super().__init__(message)
        self.value_type = value_type


class InvalidSizeError(RenderCacheError, ValueError):
    """Requested dimensions are non-positive or non-finite."""

    def __init__(
        self,
        message: str = "",
        width: float | None = None,
        height: float | None = None,
    ) -> None:
        super().__init__(message)
        self.width = width
        self.height = height


class CacheUnavailableError(RenderCacheError):
    """Backing store cannot be read or written.

    Callers may degrade to an uncached render instead of failing the request.
    """

    def __init__(
        self,
        message: str = "",
        backend: str = "disk",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.original = original


class ArtifactTypeError(RenderCacheError, TypeError):
    """Rendered artifact cannot be persisted by the configured store."""

    def __init__(self, message: str = "", artifact_type: str | None = None) -> None:
        super().__init__(message)
        self.artifact_type = artifact_type
