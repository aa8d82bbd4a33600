"""Store protocol shared by the memory tier and persistent backends."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Protocol, runtime_checkable

from rendercache.cache.stats import CacheEntry


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store holding CacheEntry objects under digest keys."""

    def get(self, key: str) -> CacheEntry | None: ...

    def set(self, key: str, entry: CacheEntry) -> None: ...

    def delete(self, key: str) -> bool: ...

    def invalidate(
        self,
        namespace: str | None = None,
        pattern: str | None = None,
        fingerprint: str | None = None,
    ) -> int: ...

    def clear(self) -> None: ...

    @property
    def entry_count(self) -> int: ...

    @property
    def size_mb(self) -> float: ...

    def close(self) -> None: ...


def matches_filter(
    entry: CacheEntry,
    namespace: str | None,
    pattern: str | None,
    fingerprint: str | None,
) -> bool:
    """True when the entry satisfies every filter that is set.

    ``fingerprint`` is compared against the canonical text exactly;
    ``pattern`` is a shell-style glob over the same text.
    """
    if namespace is not None and entry.namespace != namespace:
        return False
    if fingerprint is not None and entry.fingerprint != fingerprint:
        return False
    return not (pattern is not None and not fnmatchcase(entry.fingerprint, pattern))
