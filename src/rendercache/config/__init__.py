"""Configuration — defaults, YAML/env layering and the validated schema."""

from rendercache.config.loader import load_config_yaml, resolve_config
from rendercache.config.schema import CacheConfig, SizingConfig

__all__ = ["CacheConfig", "SizingConfig", "load_config_yaml", "resolve_config"]
