"""Cache entry and statistics models."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, Field

from rendercache.utils.image import artifact_nbytes


class CacheEntry(BaseModel):
    """A cached render result."""

    key: str
    namespace: str = ""
    fingerprint: str = ""
    width: int = 0
    height: int = 0
    pixel_ratio: float = 1.0
    artifact: Any = None
    created_at: float = Field(default_factory=time.time)
    last_accessed: float = Field(default_factory=time.time)
    ttl_seconds: float | None = None  # None = never expires

    @property
    def is_expired(self) -> bool:
        if self.ttl_seconds is None:
            return False
        return time.time() > self.created_at + self.ttl_seconds

    @property
    def size_bytes(self) -> int:
        return artifact_nbytes(self.artifact) + len(self.fingerprint.encode("utf-8"))

    def touch(self) -> None:
        self.last_accessed = time.time()


class CacheStats(BaseModel):
    """Aggregate cache statistics."""

    entries: int = 0
    size_mb: float = 0.0
    hits: int = 0
    misses: int = 0
    renders: int = 0
    coalesced: int = 0
    render_errors: int = 0
    degraded: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0
