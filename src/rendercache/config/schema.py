"""Pydantic models for cache configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from rendercache.config import defaults
from rendercache.types import Scope


class SizingConfig(BaseModel):
    base_width: float = Field(default=defaults.DEFAULT_BASE_WIDTH, gt=0)
    base_height: float = Field(default=defaults.DEFAULT_BASE_HEIGHT, gt=0)
    growth_rate: float = Field(default=defaults.DEFAULT_GROWTH_RATE, gt=1)


class CacheConfig(BaseModel):
    """Resolved configuration for one RenderCache."""

    scope: Scope = Scope.SHARED
    enabled: bool = defaults.DEFAULT_ENABLED
    sizing: SizingConfig = Field(default_factory=SizingConfig)
    memory_max_mb: float = Field(default=defaults.DEFAULT_MEMORY_MAX_MB, gt=0)
    memory_max_entries: int | None = Field(default=defaults.DEFAULT_MEMORY_MAX_ENTRIES, gt=0)
    disk_path: Path | None = None
    disk_max_mb: float = Field(default=defaults.DEFAULT_DISK_MAX_MB, gt=0)
    ttl_seconds: float | None = defaults.DEFAULT_TTL_SECONDS
    external_memory_tier: bool = defaults.DEFAULT_EXTERNAL_MEMORY_TIER
    degrade_on_unavailable: bool = defaults.DEFAULT_DEGRADE_ON_UNAVAILABLE

    @field_validator("ttl_seconds")
    @classmethod
    def _positive_ttl(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("ttl_seconds must be positive or null")
        return value

    @classmethod
    def from_flat(cls, data: dict[str, Any]) -> CacheConfig:
        """Build from the flat dict produced by load_config_hierarchy().

        Sizing keys may be given flat (base_width, ...) or nested under
        ``sizing``; unknown keys such as log_level are ignored.
        """
        data = dict(data)
        sizing = dict(data.pop("sizing", None) or {})
        for key in SizingConfig.model_fields:
            if key in data:
                sizing[key] = data.pop(key)
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        return cls(sizing=SizingConfig(**sizing), **known)
