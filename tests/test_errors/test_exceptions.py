"""Tests for custom exception hierarchy."""

from rendercache.errors.exceptions import (
    ArtifactTypeError,
    CacheUnavailableError,
    InvalidKeyError,
    InvalidSizeError,
    RenderCacheError,
)


class TestExceptionHierarchy:
    def test_all_inherit_from_base(self):
        for cls in (InvalidKeyError, InvalidSizeError, CacheUnavailableError, ArtifactTypeError):
            assert issubclass(cls, RenderCacheError)

    def test_all_inherit_from_exception(self):
        assert issubclass(RenderCacheError, Exception)

    def test_usage_errors_match_builtin_families(self):
        assert issubclass(InvalidKeyError, TypeError)
        assert issubclass(InvalidSizeError, ValueError)
        assert issubclass(ArtifactTypeError, TypeError)


class TestAttributes:
    def test_invalid_key(self):
        err = InvalidKeyError("bad key", value_type="object")
        assert err.message == "bad key"
        assert err.value_type == "object"
        assert str(err) == "bad key"

    def test_invalid_size(self):
        err = InvalidSizeError("bad size", width=0, height=400)
        assert (err.width, err.height) == (0, 400)

    def test_cache_unavailable(self):
        original = OSError("disk gone")
        err = CacheUnavailableError("down", backend="sqlite", original=original)
        assert err.backend == "sqlite"
        assert err.original is original

    def test_artifact_type(self):
        err = ArtifactTypeError("nope", artifact_type="dict")
        assert err.artifact_type == "dict"
