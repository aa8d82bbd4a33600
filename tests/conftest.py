import pytest

from rendercache.types import RenderContext


class CountingRenderer:
    """Renderer stand-in that records every call."""

    def __init__(self, fail_times: int = 0) -> None:
        self.calls: list[RenderContext] = []
        self._fail_times = fail_times

    @property
    def count(self) -> int:
        return len(self.calls)

    def __call__(self, context: RenderContext) -> bytes:
        self.calls.append(context)
        if self._fail_times > 0:
            self._fail_times -= 1
            raise RuntimeError("render failed")
        return f"plot:{context.fingerprint}:{context.width}x{context.height}:{self.count}".encode()


@pytest.fixture
def renderer():
    return CountingRenderer()


@pytest.fixture
def failing_renderer():
    return CountingRenderer(fail_times=1)


@pytest.fixture
def sample_png_bytes():
    """Minimal valid PNG for testing (1x1 white pixel)."""
    import base64
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4"
        "nGP4z8BQDwAEgAF/pooBPQAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def sample_cache_yaml(tmp_path):
    """Write a minimal cache YAML and return its path."""
    content = """
cache:
  scope: session
  memory_max_mb: 50
  sizing:
    base_width: 300
    growth_rate: 1.5
"""
    path = tmp_path / "rendercache.yaml"
    path.write_text(content)
    return path


@pytest.fixture
def make_renderer():
    return CountingRenderer
