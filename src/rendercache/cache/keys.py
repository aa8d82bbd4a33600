"""Cache key generation — canonical fingerprint encoding plus quantized size."""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import math
from collections.abc import Mapping
from enum import Enum
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel, ConfigDict

from rendercache.errors.exceptions import InvalidKeyError
from rendercache.types import SizeBucket

_ESCAPE = "~"


class CacheKey(BaseModel):
    """Ordered, hashable identity of one cached render."""

    model_config = ConfigDict(frozen=True)

    namespace: str = ""
    fingerprint_hash: str
    width: int
    height: int
    pixel_ratio: float = 1.0

    def as_tuple(self) -> tuple[str, str, int, int, float]:
        return (self.namespace, self.fingerprint_hash, self.width, self.height, self.pixel_ratio)

    @property
    def digest(self) -> str:
        """SHA256 hex digest used as the storage key."""
        combined = "|".join(str(part) for part in self.as_tuple())
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()


def generate_cache_key(
    fingerprint: Any,
    bucket: SizeBucket,
    namespace: str = "",
    pixel_ratio: float = 1.0,
) -> CacheKey:
    """Build a cache key from a fingerprint value and a quantized size.

    The fingerprint may be a zero-argument callable; it is evaluated once
    and its result is what gets encoded.
    """
    return key_from_text(serialize_fingerprint(fingerprint), bucket, namespace, pixel_ratio)


def key_from_text(
    fingerprint_text: str,
    bucket: SizeBucket,
    namespace: str = "",
    pixel_ratio: float = 1.0,
) -> CacheKey:
    """Build a cache key from an already-serialized fingerprint."""
    return CacheKey(
        namespace=namespace,
        fingerprint_hash=hashlib.sha256(fingerprint_text.encode("utf-8")).hexdigest(),
        width=bucket.width,
        height=bucket.height,
        pixel_ratio=float(pixel_ratio),
    )


def serialize_fingerprint(fingerprint: Any) -> str:
    """Stable text encoding of a fingerprint.

    Raises InvalidKeyError for anything that has no deterministic encoding.
    """
    value = resolve_fingerprint(fingerprint)
    return json.dumps(_canonicalize(value), sort_keys=True, separators=(",", ":"))


def resolve_fingerprint(fingerprint: Any) -> Any:
    if callable(fingerprint) and not isinstance(fingerprint, type):
        return fingerprint()
    return fingerprint


def _canonicalize(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidKeyError(
                f"Non-finite float {value!r} cannot be used in a fingerprint",
                value_type="float",
            )
        # 1.0 and 1 describe the same state
        return int(value) if value.is_integer() else value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"__bytes__": hashlib.sha256(bytes(value)).hexdigest()}
    if isinstance(value, BaseModel):
        return _canonicalize(value.model_dump(mode="json"))
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise InvalidKeyError(
                    f"Fingerprint mapping keys must be strings, got {type(k).__name__}",
                    value_type=type(k).__name__,
                )
            result[_escape_key(k)] = _canonicalize(v)
        return result
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    if isinstance(value, (set, frozenset)):
        items = [_canonicalize(v) for v in value]
        return {"__set__": sorted(items, key=lambda v: json.dumps(v, sort_keys=True))}
    raise InvalidKeyError(
        f"Cannot build a stable fingerprint from {type(value).__name__}",
        value_type=type(value).__name__,
    )


def _escape_key(key: str) -> str:
    # User keys never collide with the "__set__"/"__bytes__" tags
    if key.startswith(("__", _ESCAPE)):
        return _ESCAPE + key
    return key
