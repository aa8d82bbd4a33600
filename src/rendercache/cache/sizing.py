"""Size quantization — geometric buckets so resize noise reuses one entry."""

from __future__ import annotations

import math

from rendercache.errors.exceptions import InvalidSizeError
from rendercache.types import RenderSize, SizeBucket

_DEFAULT_BASE = 400
_DEFAULT_GROWTH_RATE = 1.2


class SizingPolicy:
    """Maps a requested (width, height) onto a coarser geometric grid.

    Grid points sit at ``base * growth_rate ** n`` for integer ``n``. A size
    falls into the nearest grid point in log space, so each bucket spans half
    a step either side of its point and small resizes land in the same bucket.
    """

    def __init__(
        self,
        base_width: float = _DEFAULT_BASE,
        base_height: float = _DEFAULT_BASE,
        growth_rate: float = _DEFAULT_GROWTH_RATE,
    ) -> None:
        if base_width <= 0 or base_height <= 0:
            raise ValueError("Sizing base dimensions must be positive")
        if growth_rate <= 1:
            raise ValueError(f"growth_rate must be greater than 1, got {growth_rate}")
        self._base_width = float(base_width)
        self._base_height = float(base_height)
        self._growth_rate = float(growth_rate)
        self._log_rate = math.log(self._growth_rate)

    @property
    def growth_rate(self) -> float:
        return self._growth_rate

    def bucket(self, width: float, height: float) -> SizeBucket:
        """Quantize a requested size. Raises InvalidSizeError on bad input."""
        validate_size(width, height)
        return SizeBucket(
            width=self._round_dim(width, self._base_width),
            height=self._round_dim(height, self._base_height),
        )

    def bucket_for(self, size: RenderSize) -> SizeBucket:
        return self.bucket(size.width, size.height)

    def _round_dim(self, x: float, base: float) -> int:
        power = round(math.log(x / base) / self._log_rate)
        # round() first so float noise (575.9999...) does not bump the ceiling
        return max(1, math.ceil(round(base * self._growth_rate**power, 6)))


def validate_size(width: float, height: float) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidSizeError(
                f"{name} must be a number, got {type(value).__name__}",
                width=None,
                height=None,
            )
        if not math.isfinite(value) or value <= 0:
            raise InvalidSizeError(
                f"{name} must be positive and finite, got {value!r}",
                width=width, height=height,
            )
