"""
Tests for reel/config.py configuration management.

Tests the hierarchical configuration system with sensible defaults,
including file loading, environment variables, and path expansion.
"""
import os
import pytest
from pathlib import Path

import tomli

import reel.config
from reel.config import ReelConfig, get_config, init_config
from reel.views.registry import ViewRegistry


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an empty directory so no local config is picked up."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


class TestReelConfigDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        """Defaults describe a plain local build."""
        config = ReelConfig()
        assert config.records_file == "records.json"
        assert config.views_file is None
        assert config.include_builtins is True
        assert config.max_workers == 1
        assert config.output_format == "table"
        assert config.log_level == "WARNING"


class TestReelConfigLoading:
    """Test loading from files and the environment."""

    def test_load_without_files_uses_defaults(self, workdir):
        config = ReelConfig.load()
        assert config.records_file == "records.json"

    def test_user_config(self, workdir):
        user_config = Path.home() / ".config" / "reel" / "config.toml"
        user_config.parent.mkdir(parents=True)
        user_config.write_text('records_file = "site.json"\nmax_workers = 4\n')

        config = ReelConfig.load()
        assert config.records_file == "site.json"
        assert config.max_workers == 4

    def test_local_config_overrides_user_config(self, workdir):
        user_config = Path.home() / ".config" / "reel" / "config.toml"
        user_config.parent.mkdir(parents=True)
        user_config.write_text('records_file = "user.json"\n')
        (workdir / "reel.toml").write_text('records_file = "local.json"\n')

        assert ReelConfig.load().records_file == "local.json"

    def test_explicit_config_file(self, workdir, tmp_path):
        explicit = tmp_path / "custom.toml"
        explicit.write_text('output_format = "json"\n')
        assert ReelConfig.load(explicit).output_format == "json"

    def test_unknown_keys_ignored(self, workdir):
        (workdir / "reel.toml").write_text('unknown_option = 1\n')
        config = ReelConfig.load()
        assert not hasattr(config, "unknown_option")

    def test_env_vars(self, workdir, monkeypatch):
        """REEL_* variables are converted to the field's type."""
        monkeypatch.setenv("REEL_RECORDS_FILE", "env.json")
        monkeypatch.setenv("REEL_MAX_WORKERS", "8")
        monkeypatch.setenv("REEL_INCLUDE_BUILTINS", "false")

        config = ReelConfig.load()
        assert config.records_file == "env.json"
        assert config.max_workers == 8
        assert config.include_builtins is False

    def test_env_overrides_file(self, workdir, monkeypatch):
        (workdir / "reel.toml").write_text('log_level = "INFO"\n')
        monkeypatch.setenv("REEL_LOG_LEVEL", "DEBUG")
        assert ReelConfig.load().log_level == "DEBUG"

    def test_paths_expanded(self, workdir, monkeypatch):
        monkeypatch.setenv("REEL_VIEWS_FILE", "~/views.yaml")
        config = ReelConfig.load()
        assert config.views_file == os.path.join(str(Path.home()), "views.yaml")


class TestReelConfigSave:
    """Test saving configuration."""

    def test_save_round_trip(self, workdir, tmp_path):
        path = tmp_path / "out" / "config.toml"
        config = ReelConfig(records_file="content.json", max_workers=2)
        config.save(path)

        with open(path, "rb") as f:
            data = tomli.load(f)
        assert data["records_file"] == "content.json"
        assert data["max_workers"] == 2
        assert "views_file" not in data

        assert ReelConfig.load(path).max_workers == 2


class TestBuildRegistry:
    """Test registry construction from configuration."""

    def test_builtins(self):
        registry = ReelConfig().build_registry()
        assert isinstance(registry, ViewRegistry)
        assert "movies" in registry

    def test_without_builtins_with_views_file(self, views_file):
        config = ReelConfig(include_builtins=False, views_file=str(views_file))
        assert config.build_registry().list() == ["recentAnime", "byTitle"]


class TestGlobalConfig:
    """Test get_config / init_config."""

    def test_get_config_cached(self, workdir):
        assert get_config() is get_config()
        assert get_config(reload=True) is reel.config._config

    def test_init_config_overrides(self, workdir):
        config = init_config(output_format="json", views_file=None)
        assert config.output_format == "json"
        assert config.views_file is None

    def test_init_config_with_file(self, workdir, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text('records_file = "from-file.json"\n')
        config = init_config(config_file=path)
        assert config.records_file == "from-file.json"

    def test_init_config_overrides_do_not_persist(self, workdir):
        """Overrides from one call are not seen by the next."""
        first = init_config(include_builtins=False, views_file="views.yaml")
        second = init_config()

        assert first.include_builtins is False
        assert second.include_builtins is True
        assert second.views_file is None
        assert first is not second
        assert get_config().include_builtins is True

    def test_init_config_file_does_not_replace_shared_config(self, workdir, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text('records_file = "from-file.json"\n')
        init_config(config_file=path)
        assert init_config().records_file == "records.json"

    def test_init_config_ignores_unknown_keys(self, workdir):
        config = init_config(not_an_option=1, load="x")
        assert config.output_format == "table"
