"""Tests for config hierarchy."""

import pytest

from rendercache.config import hierarchy
from rendercache.config.hierarchy import (
    _coerce_env_value,
    _load_yaml_config,
    load_config_hierarchy,
)


@pytest.fixture(autouse=True)
def _isolate(tmp_path, monkeypatch):
    """Keep user and project config files out of these tests."""
    monkeypatch.setattr(hierarchy, "_GLOBAL_CONFIG_PATH", tmp_path / "missing.yaml")
    monkeypatch.chdir(tmp_path)


class TestLoadConfigHierarchy:
    def test_returns_defaults(self):
        config = load_config_hierarchy()
        assert config["scope"] == "shared"
        assert config["growth_rate"] == 1.2
        assert config["enabled"] is True

    def test_runtime_overrides(self):
        config = load_config_hierarchy(scope="session", memory_max_mb=10.0)
        assert config["scope"] == "session"
        assert config["memory_max_mb"] == 10.0

    def test_none_overrides_ignored(self):
        config = load_config_hierarchy(scope=None)
        assert config["scope"] == "shared"

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("RENDERCACHE_SCOPE", "external")
        monkeypatch.setenv("RENDERCACHE_GROWTH_RATE", "1.5")
        config = load_config_hierarchy()
        assert config["scope"] == "external"
        assert config["growth_rate"] == 1.5

    def test_runtime_beats_env(self, monkeypatch):
        monkeypatch.setenv("RENDERCACHE_SCOPE", "external")
        config = load_config_hierarchy(scope="session")
        assert config["scope"] == "session"

    def test_disabled_flag(self, monkeypatch):
        monkeypatch.setenv("RENDERCACHE_DISABLED", "1")
        config = load_config_hierarchy()
        assert config["enabled"] is False
        assert "cache_disabled" not in config

    def test_no_degrade_flag(self, monkeypatch):
        monkeypatch.setenv("RENDERCACHE_NO_DEGRADE", "yes")
        assert load_config_hierarchy()["degrade_on_unavailable"] is False

    def test_project_config(self, tmp_path):
        (tmp_path / "rendercache.yaml").write_text("cache:\n  scope: session\n  base_width: 300\n")
        config = load_config_hierarchy()
        assert config["scope"] == "session"
        assert config["base_width"] == 300

    def test_project_config_found_upward(self, tmp_path, monkeypatch):
        (tmp_path / "rendercache.yaml").write_text("memory_max_entries: 5\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config_hierarchy()["memory_max_entries"] == 5

    def test_env_beats_project(self, tmp_path, monkeypatch):
        (tmp_path / "rendercache.yaml").write_text("scope: session\n")
        monkeypatch.setenv("RENDERCACHE_SCOPE", "external")
        assert load_config_hierarchy()["scope"] == "external"

    def test_global_config(self, tmp_path, monkeypatch):
        global_path = tmp_path / "global.yaml"
        global_path.write_text("disk_max_mb: 10\n")
        monkeypatch.setattr(hierarchy, "_GLOBAL_CONFIG_PATH", global_path)
        assert load_config_hierarchy()["disk_max_mb"] == 10


class TestLoadYamlConfig:
    def test_missing_file(self, tmp_path):
        assert _load_yaml_config(tmp_path / "nope.yaml") is None

    def test_non_mapping_ignored(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        assert _load_yaml_config(path) is None

    def test_broken_yaml_ignored(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("scope: [unclosed\n")
        assert _load_yaml_config(path) is None

    def test_unwraps_cache_key(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("cache:\n  scope: external\n")
        assert _load_yaml_config(path) == {"scope": "external"}


class TestCoerceEnvValue:
    def test_float(self):
        assert _coerce_env_value("memory_max_mb", "12.5") == 12.5

    def test_int(self):
        assert _coerce_env_value("memory_max_entries", "7") == 7

    def test_bool_flags(self):
        assert _coerce_env_value("cache_disabled", "true") is True
        assert _coerce_env_value("cache_disabled", "0") is False
        assert _coerce_env_value("no_degrade", "on") is True

    def test_bad_number_kept_as_string(self):
        assert _coerce_env_value("disk_max_mb", "lots") == "lots"

    def test_plain_string(self):
        assert _coerce_env_value("disk_path", "/tmp/x.db") == "/tmp/x.db"
