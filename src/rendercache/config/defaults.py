"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Default scope
DEFAULT_SCOPE = "shared"
DEFAULT_ENABLED = True

# Default sizing policy
DEFAULT_BASE_WIDTH = 400
DEFAULT_BASE_HEIGHT = 400
DEFAULT_GROWTH_RATE = 1.2

# Default store settings
DEFAULT_MEMORY_MAX_MB = 200.0
DEFAULT_MEMORY_MAX_ENTRIES = 1000
DEFAULT_DISK_MAX_MB = 2000.0
DEFAULT_TTL_SECONDS = None
DEFAULT_EXTERNAL_MEMORY_TIER = False

# Behaviour when the persistent store is unreachable
DEFAULT_DEGRADE_ON_UNAVAILABLE = True

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "scope": DEFAULT_SCOPE,
        "enabled": DEFAULT_ENABLED,
        "base_width": DEFAULT_BASE_WIDTH,
        "base_height": DEFAULT_BASE_HEIGHT,
        "growth_rate": DEFAULT_GROWTH_RATE,
        "memory_max_mb": DEFAULT_MEMORY_MAX_MB,
        "memory_max_entries": DEFAULT_MEMORY_MAX_ENTRIES,
        "disk_max_mb": DEFAULT_DISK_MAX_MB,
        "ttl_seconds": DEFAULT_TTL_SECONDS,
        "external_memory_tier": DEFAULT_EXTERNAL_MEMORY_TIER,
        "degrade_on_unavailable": DEFAULT_DEGRADE_ON_UNAVAILABLE,
        "log_level": DEFAULT_LOG_LEVEL,
    }
