"""YAML config loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from rendercache.config.hierarchy import load_config_hierarchy
from rendercache.config.schema import CacheConfig


def load_config_yaml(path: str | Path) -> CacheConfig:
    """Load a cache YAML file and return a validated CacheConfig."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cache config YAML not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or "cache" not in raw:
        raise ValueError(f"Invalid cache YAML: missing top-level 'cache' key in {path}")

    return CacheConfig.from_flat(raw["cache"] or {})


def resolve_config(**runtime_overrides: Any) -> CacheConfig:
    """Merge every configuration layer and validate the result."""
    return CacheConfig.from_flat(load_config_hierarchy(**runtime_overrides))
