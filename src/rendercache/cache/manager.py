"""Render cache — memoizes renders by fingerprint and quantized size, per scope."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import threading
import time
from collections.abc import Callable, Iterator
from typing import Any

from rendercache.cache.backend import CacheStore
from rendercache.cache.disk import DiskCache
from rendercache.cache.keys import CacheKey, key_from_text, serialize_fingerprint
from rendercache.cache.memory import MemoryCache
from rendercache.cache.sizing import SizingPolicy, validate_size
from rendercache.cache.stats import CacheEntry, CacheStats
from rendercache.concurrency.flight import SingleFlight
from rendercache.config.schema import CacheConfig
from rendercache.errors.exceptions import CacheUnavailableError, InvalidSizeError
from rendercache.types import RenderContext, RenderSize, Scope
from rendercache.utils.image import artifact_dimensions, to_storable_bytes

logger = logging.getLogger(__name__)

RenderFn = Callable[[RenderContext], Any]


class RenderCache:
    """Memoizes expensive renders keyed on (fingerprint, size bucket).

    The scope decides where entries live:

    * ``shared``: one in-process LRU for every caller, alive until close().
    * ``session``: one LRU per session id, dropped by end_session().
    * ``external``: a persistent CacheStore (SQLite by default), optionally
      fronted by an in-process LRU tier.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        store: CacheStore | None = None,
    ) -> None:
        self._config = config or CacheConfig()
        sizing = self._config.sizing
        self._sizing = SizingPolicy(
            base_width=sizing.base_width,
            base_height=sizing.base_height,
            growth_rate=sizing.growth_rate,
        )
        self._flight: SingleFlight[Any] = SingleFlight()
        self._lock = threading.Lock()
        self._stats = CacheStats()

        self._shared: MemoryCache | None = None
        self._sessions: dict[str, MemoryCache] = {}
        self._external: CacheStore | None = None
        self._external_l1: MemoryCache | None = None

        scope = self._config.scope
        if scope == Scope.SHARED:
            self._shared = self._new_memory()
        elif scope == Scope.EXTERNAL and self._config.enabled:
            self._external = store or DiskCache(
                db_path=self._config.disk_path, max_size_mb=self._config.disk_max_mb
            )
            if self._config.external_memory_tier:
                self._external_l1 = self._new_memory()

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def scope(self) -> Scope:
        return self._config.scope

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def sizing(self) -> SizingPolicy:
        return self._sizing

    @property
    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    # ── Core operation ──

    def get_or_render(
        self,
        fingerprint: Any,
        width: float,
        height: float,
        render_fn: RenderFn,
        *,
        session: str | None = None,
        namespace: str = "",
        pixel_ratio: float = 1.0,
    ) -> Any:
        """Return the cached artifact for this state and size, rendering on a miss.

        render_fn receives a RenderContext whose width/height are the bucket
        dimensions. Exceptions from render_fn propagate and are never cached.
        """
        if (
            isinstance(pixel_ratio, bool)
            or not isinstance(pixel_ratio, (int, float))
            or not math.isfinite(pixel_ratio)
            or pixel_ratio <= 0
        ):
            raise InvalidSizeError(f"pixel_ratio must be positive and finite, got {pixel_ratio!r}")
        validate_size(width, height)
        bucket = self._sizing.bucket(width, height)
        fingerprint_text = serialize_fingerprint(fingerprint)
        key = key_from_text(fingerprint_text, bucket, namespace, pixel_ratio)
        context = RenderContext(
            width=bucket.width,
            height=bucket.height,
            requested=RenderSize(width=width, height=height),
            pixel_ratio=pixel_ratio,
            fingerprint=fingerprint_text,
            namespace=namespace,
        )

        if not self._config.enabled:
            with self._lock:
                self._stats.misses += 1
            return self._render(render_fn, context)

        digest = key.digest
        entry, degraded = self._lookup(digest, session)
        if entry is not None:
            with self._lock:
                self._stats.hits += 1
            logger.debug("Cache hit %s (%dx%d)", digest[:12], bucket.width, bucket.height)
            return entry.artifact

        with self._lock:
            self._stats.misses += 1
        logger.debug("Cache miss %s (%dx%d)", digest[:12], bucket.width, bucket.height)

        flight_key = f"{session or ''}:{digest}" if self.scope == Scope.SESSION else digest
        artifact, shared = self._flight.do(
            flight_key,
            lambda: self._render_and_store(key, context, render_fn, session, degraded),
        )
        if shared:
            with self._lock:
                self._stats.coalesced += 1
        return artifact

    async def get_or_render_async(
        self,
        fingerprint: Any,
        width: float,
        height: float,
        render_fn: RenderFn,
        *,
        session: str | None = None,
        namespace: str = "",
        pixel_ratio: float = 1.0,
    ) -> Any:
        """Async wrapper running get_or_render in a worker thread."""
        return await asyncio.to_thread(
            self.get_or_render,
            fingerprint,
            width,
            height,
            render_fn,
            session=session,
            namespace=namespace,
            pixel_ratio=pixel_ratio,
        )

    def in_flight(self, key: CacheKey, session: str | None = None) -> bool:
        """True while a render for this key is running (the ``rendering`` state)."""
        flight_key = f"{session or ''}:{key.digest}" if self.scope == Scope.SESSION else key.digest
        return self._flight.in_flight(flight_key)

    def key_for(
        self,
        fingerprint: Any,
        width: float,
        height: float,
        namespace: str = "",
        pixel_ratio: float = 1.0,
    ) -> CacheKey:
        """The key get_or_render would use for these arguments."""
        return key_from_text(
            serialize_fingerprint(fingerprint),
            self._sizing.bucket(width, height),
            namespace,
            pixel_ratio,
        )

    # ── Invalidation & lifecycle ──

    def invalidate(
        self,
        pattern: str | None = None,
        *,
        namespace: str | None = None,
        fingerprint: Any = None,
        session: str | None = None,
    ) -> int:
        """Remove entries matching the filters from the active store(s).

        ``pattern`` is a glob over the canonical fingerprint text and
        ``fingerprint`` an exact value. With no filter everything goes.
        """
        fingerprint_text = serialize_fingerprint(fingerprint) if fingerprint is not None else None
        count = 0
        for store in self._stores(session):
            count += store.invalidate(
                namespace=namespace, pattern=pattern, fingerprint=fingerprint_text
            )
        logger.info("Invalidated %d cache entries", count)
        return count

    def start_session(self, session_id: str) -> None:
        if self.scope != Scope.SESSION:
            return
        with self._lock:
            if session_id not in self._sessions:
                self._sessions[session_id] = self._new_memory()
                logger.info("Started cache session %s", session_id)

    def end_session(self, session_id: str) -> int:
        """Destroy a session's store. Returns the number of entries dropped."""
        with self._lock:
            store = self._sessions.pop(session_id, None)
        if store is None:
            return 0
        dropped = len(store)
        store.close()
        logger.info("Ended cache session %s (%d entries dropped)", session_id, dropped)
        return dropped

    @contextlib.contextmanager
    def session(self, session_id: str) -> Iterator[RenderCache]:
        """Scope a block to one session, ending it on exit."""
        self.start_session(session_id)
        try:
            yield self
        finally:
            self.end_session(session_id)

    def clear(self) -> None:
        """Clear all stores and reset counters."""
        for store in self._stores(None):
            store.clear()
        with self._lock:
            self._stats = CacheStats()

    def stats(self) -> CacheStats:
        """Return aggregate cache statistics."""
        entries = 0
        size_mb = 0.0
        for store in self._stores(None):
            try:
                entries += store.entry_count
                size_mb += store.size_mb
            except CacheUnavailableError as exc:
                logger.warning("Cannot read stats from store: %s", exc)
        with self._lock:
            return self._stats.model_copy(update={"entries": entries, "size_mb": size_mb})

    def close(self) -> None:
        with self._lock:
            sessions = list(self._sessions)
        for session_id in sessions:
            self.end_session(session_id)
        if self._shared is not None:
            self._shared.close()
        if self._external_l1 is not None:
            self._external_l1.close()
        if self._external is not None:
            self._external.close()

    def __enter__(self) -> RenderCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Internals ──

    def _new_memory(self) -> MemoryCache:
        return MemoryCache(
            max_size_mb=self._config.memory_max_mb,
            max_entries=self._config.memory_max_entries,
        )

    def _session_store(self, session: str | None) -> MemoryCache:
        if session is None:
            raise ValueError("A session id is required when the cache scope is 'session'")
        with self._lock:
            store = self._sessions.get(session)
            if store is None:
                store = self._sessions[session] = self._new_memory()
                logger.debug("Lazily started cache session %s", session)
            return store

    def _stores(self, session: str | None) -> list[CacheStore]:
        """Stores an invalidation or stats call should touch."""
        if self.scope == Scope.SHARED and self._shared is not None:
            return [self._shared]
        if self.scope == Scope.SESSION:
            with self._lock:
                if session is not None:
                    store = self._sessions.get(session)
                    return [store] if store is not None else []
                return list(self._sessions.values())
        stores: list[CacheStore] = []
        if self._external_l1 is not None:
            stores.append(self._external_l1)
        if self._external is not None:
            stores.append(self._external)
        return stores

    def _lookup(self, digest: str, session: str | None) -> tuple[CacheEntry | None, bool]:
        """Find an entry; the flag is True when the persistent store could not be read."""
        if self.scope == Scope.SHARED:
            return self._shared.get(digest), False
        if self.scope == Scope.SESSION:
            return self._session_store(session).get(digest), False

        # L1
        if self._external_l1 is not None:
            entry = self._external_l1.get(digest)
            if entry is not None:
                return entry, False

        # L2
        try:
            entry = self._external.get(digest)
        except CacheUnavailableError as exc:
            self._on_unavailable(exc, "read")
            return None, True
        if entry is not None and self._external_l1 is not None:
            # Promote to L1
            self._external_l1.set(digest, entry)
        return entry, False

    def _render_and_store(
        self,
        key: CacheKey,
        context: RenderContext,
        render_fn: RenderFn,
        session: str | None,
        degraded: bool = False,
    ) -> Any:
        digest = key.digest
        # A render that finished between our miss and taking the flight slot
        if not degraded:
            existing, degraded = self._lookup(digest, session)
            if existing is not None:
                return existing.artifact

        artifact = self._render(render_fn, context)
        if self.scope == Scope.EXTERNAL:
            artifact = to_storable_bytes(artifact)

        width, height = artifact_dimensions(artifact) or (key.width, key.height)
        entry = CacheEntry(
            key=digest,
            namespace=key.namespace,
            fingerprint=context.fingerprint,
            width=width,
            height=height,
            pixel_ratio=key.pixel_ratio,
            artifact=artifact,
            ttl_seconds=self._config.ttl_seconds,
        )
        self._store(digest, entry, session, degraded)
        return artifact

    def _render(self, render_fn: RenderFn, context: RenderContext) -> Any:
        start = time.perf_counter()
        try:
            artifact = render_fn(context)
        except Exception:
            with self._lock:
                self._stats.render_errors += 1
            logger.debug("Render failed for %s; nothing cached", context.namespace or "render")
            raise
        with self._lock:
            self._stats.renders += 1
        logger.debug(
            "Rendered %dx%d in %.1f ms", context.width, context.height,
            (time.perf_counter() - start) * 1000,
        )
        return artifact

    def _store(
        self, digest: str, entry: CacheEntry, session: str | None, degraded: bool = False
    ) -> None:
        if self.scope == Scope.SHARED:
            self._shared.set(digest, entry)
            return
        if self.scope == Scope.SESSION:
            with self._lock:
                store = self._sessions.get(session)
            if store is None:
                logger.debug("Session %s ended during render; result not cached", session)
                return
            store.set(digest, entry)
            return
        if self._external_l1 is not None:
            self._external_l1.set(digest, entry)
        try:
            self._external.set(digest, entry)
        except CacheUnavailableError as exc:
            self._on_unavailable(exc, "write", already_counted=degraded)

    def _on_unavailable(
        self, exc: CacheUnavailableError, op: str, already_counted: bool = False
    ) -> None:
        """Count a degraded request once, however many store calls failed in it."""
        if not self._config.degrade_on_unavailable:
            raise exc
        if already_counted:
            logger.debug("Cache store still unavailable on %s: %s", op, exc.message)
            return
        with self._lock:
            self._stats.degraded += 1
        logger.warning("Cache store unavailable on %s, rendering uncached: %s", op, exc.message)


_shared_cache: RenderCache | None = None
_shared_lock = threading.Lock()


def get_shared_cache(config: CacheConfig | None = None) -> RenderCache:
    """Process-wide RenderCache, created on first use."""
    global _shared_cache
    with _shared_lock:
        if _shared_cache is None:
            _shared_cache = RenderCache(config)
        elif config is not None and config != _shared_cache.config:
            logger.warning("Shared cache already initialized; ignoring new config")
        return _shared_cache


def teardown_shared_cache() -> None:
    """Close and forget the process-wide RenderCache."""
    global _shared_cache
    with _shared_lock:
        if _shared_cache is not None:
            _shared_cache.close()
            _shared_cache = None
