"""Shared Pydantic models for rendercache."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

# ── Enums ──


class Scope(StrEnum):
    SHARED = "shared"
    SESSION = "session"
    EXTERNAL = "external"


# ── Sizes ──


class RenderSize(BaseModel):
    """Dimensions requested by the caller for a single render."""

    model_config = ConfigDict(frozen=True)

    width: float
    height: float


class SizeBucket(BaseModel):
    """Canonical quantized dimensions a render is actually produced at."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)


# ── Runtime models ──


class RenderContext(BaseModel):
    """Everything a renderer is told about the render it must produce."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    requested: RenderSize
    pixel_ratio: float = 1.0
    fingerprint: str = ""
    namespace: str = ""

    @property
    def pixel_width(self) -> int:
        return round(self.width * self.pixel_ratio)

    @property
    def pixel_height(self) -> int:
        return round(self.height * self.pixel_ratio)
