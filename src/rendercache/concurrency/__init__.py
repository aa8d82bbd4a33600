"""Concurrency — per-key coalescing of in-flight renders."""

from rendercache.concurrency.flight import SingleFlight

__all__ = ["SingleFlight"]
