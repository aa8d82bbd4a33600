"""Layered configuration for rendercache.

Sources, lowest priority first:
  1. Package defaults
  2. User file      ~/.rendercache/config.yaml
  3. Project file   rendercache.yaml in the cwd or the nearest parent
  4. RENDERCACHE_* environment variables
  5. Keyword arguments passed at runtime (None means "not given")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from rendercache.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".rendercache" / "config.yaml"
_PROJECT_CONFIG_NAME = "rendercache.yaml"

_ENV_PREFIX = "RENDERCACHE_"

# Env suffix -> (config key, parser). Parser None keeps the raw string.
_ENV_KEYS: dict[str, tuple[str, type | None]] = {
    "SCOPE": ("scope", None),
    "DISABLED": ("cache_disabled", bool),
    "DISK_PATH": ("disk_path", None),
    "MEMORY_MB": ("memory_max_mb", float),
    "MEMORY_ENTRIES": ("memory_max_entries", int),
    "DISK_MB": ("disk_max_mb", float),
    "TTL_SECONDS": ("ttl_seconds", float),
    "BASE_WIDTH": ("base_width", float),
    "BASE_HEIGHT": ("base_height", float),
    "GROWTH_RATE": ("growth_rate", float),
    "NO_DEGRADE": ("no_degrade", bool),
    "LOG_LEVEL": ("log_level", None),
}
_PARSERS: dict[str, type | None] = {key: parser for key, parser in _ENV_KEYS.values()}

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})

# Negative switches and the setting they turn off
_NEGATIONS = {"cache_disabled": "enabled", "no_degrade": "degrade_on_unavailable"}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Resolve every layer into one flat settings dict."""
    merged = get_defaults()
    for layer in _layers(runtime_overrides):
        merged.update(layer)

    for flag, setting in _NEGATIONS.items():
        if merged.pop(flag, False):
            merged[setting] = False
    return merged


def _layers(runtime_overrides: dict[str, Any]) -> Iterator[dict[str, Any]]:
    yield _load_yaml_config(_GLOBAL_CONFIG_PATH) or {}

    project = _find_project_config()
    if project is not None:
        yield _load_yaml_config(project) or {}

    yield _load_env_vars()
    yield {k: v for k, v in runtime_overrides.items() if v is not None}


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Read one YAML layer; a top-level ``cache:`` mapping is unwrapped.

    Missing, unreadable or non-mapping files yield None.
    """
    if not path.is_file():
        return None
    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Skipping config layer %s: %s", path, e)
        return None

    if not isinstance(raw, dict):
        logger.warning("Skipping config layer %s: expected a mapping", path)
        return None
    section = raw.get("cache")
    return section if isinstance(section, dict) else raw


def _find_project_config() -> Path | None:
    here = Path.cwd()
    return next(
        (d / _PROJECT_CONFIG_NAME for d in (here, *here.parents) if (d / _PROJECT_CONFIG_NAME).exists()),
        None,
    )


def _load_env_vars() -> dict[str, Any]:
    found: dict[str, Any] = {}
    for suffix, (key, _) in _ENV_KEYS.items():
        raw = os.environ.get(_ENV_PREFIX + suffix)
        if raw is not None:
            found[key] = _coerce_env_value(key, raw)
    return found


def _coerce_env_value(key: str, value: str) -> Any:
    """Parse an env string for ``key``; unparseable numbers stay strings."""
    parser = _PARSERS.get(key)
    if parser is None:
        return value
    if parser is bool:
        return value.strip().lower() in _TRUE_STRINGS
    try:
        return parser(value)
    except ValueError:
        logger.warning("Env value %r for %s is not a valid %s", value, key, parser.__name__)
        return value
