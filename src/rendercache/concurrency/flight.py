"""Per-key single-flight — concurrent misses for one key share one render."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Call(Generic[T]):
    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: T | None = None
        self.error: BaseException | None = None
        self.waiters = 0


class SingleFlight(Generic[T]):
    """Coalesces concurrent calls that share a key.

    The first caller for a key runs ``fn``; callers arriving while it runs
    block until it finishes and receive the same result or exception. Calls
    for different keys never wait on each other. Nothing is remembered once
    a call completes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, _Call[T]] = {}

    def do(self, key: str, fn: Callable[[], T]) -> tuple[T, bool]:
        """Run fn once per in-flight key.

        Returns ``(result, shared)`` where ``shared`` is True for callers that
        waited on another caller's execution.
        """
        with self._lock:
            call = self._calls.get(key)
            if call is not None:
                call.waiters += 1
                leader = False
            else:
                call = _Call()
                self._calls[key] = call
                leader = True

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.result, True  # type: ignore[return-value]

        try:
            call.result = fn()
            return call.result, False
        except BaseException as exc:
            call.error = exc
            raise
        finally:
            with self._lock:
                del self._calls[key]
            if call.waiters:
                logger.debug("Releasing %d waiter(s) for %s", call.waiters, key[:12])
            call.done.set()

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)
