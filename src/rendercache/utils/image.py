"""Artifact helpers — PNG normalization and size probing via Pillow."""

from __future__ import annotations

import io
import sys
from typing import Any

from PIL import Image, UnidentifiedImageError

from rendercache.errors.exceptions import ArtifactTypeError

_BYTES_TYPES = (bytes, bytearray, memoryview)


def is_image(artifact: Any) -> bool:
    return isinstance(artifact, Image.Image)


def to_storable_bytes(artifact: Any) -> bytes:
    """Convert an artifact to bytes a persistent store can hold.

    PIL images are encoded as PNG; byte-like values pass through.
    """
    if isinstance(artifact, _BYTES_TYPES):
        return bytes(artifact)
    if is_image(artifact):
        return _pil_to_png_bytes(artifact)
    raise ArtifactTypeError(
        f"Persistent stores need bytes or a PIL image, got {type(artifact).__name__}",
        artifact_type=type(artifact).__name__,
    )


def artifact_dimensions(artifact: Any) -> tuple[int, int] | None:
    """Pixel size of an image artifact, or None if it is not an image."""
    if is_image(artifact):
        return artifact.size
    if isinstance(artifact, _BYTES_TYPES):
        try:
            with Image.open(io.BytesIO(bytes(artifact))) as img:
                return img.size
        except (UnidentifiedImageError, OSError):
            return None
    return None


def artifact_nbytes(artifact: Any) -> int:
    """Approximate memory footprint of an artifact."""
    if isinstance(artifact, _BYTES_TYPES):
        return len(artifact)
    if isinstance(artifact, str):
        return len(artifact.encode("utf-8"))
    if is_image(artifact):
        width, height = artifact.size
        return width * height * len(artifact.getbands())
    return sys.getsizeof(artifact)


def _pil_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
