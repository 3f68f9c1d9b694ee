"""Unit tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from reelnote.common.config import (
    Config,
    DatabaseConfig,
    FileLoggingConfig,
    LoggingConfig,
    _get_default_config_dir,
)


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_values(self):
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "json"
        assert config.file == FileLoggingConfig(enabled=False)
        assert config.third_party == {}

    def test_level_validation(self):
        """Log level is normalized to uppercase."""
        assert LoggingConfig(level="debug").level == "DEBUG"

        with pytest.raises(ValidationError):
            LoggingConfig(level="INVALID")

    def test_format_validation(self):
        """Log format is normalized to lowercase."""
        assert LoggingConfig(format="TEXT").format == "text"

        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")


class TestDatabaseConfig:
    """Tests for DatabaseConfig model."""

    def test_default_values(self):
        config = DatabaseConfig()
        assert config.database_path == "reelnote.db"
        assert config.enable_wal_mode is True
        assert config.connection_timeout == 30

    def test_validation_constraints(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(connection_timeout=0)  # Must be >= 1

        with pytest.raises(ValidationError):
            DatabaseConfig(connection_timeout=301)  # Must be <= 300

        with pytest.raises(ValidationError):
            DatabaseConfig(database_path="  ")


class TestConfigPaths:
    """Tests for config_dir resolution."""

    def test_env_var_overrides_default(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("REELNOTE_CONFIG_DIR", str(tmp_path / "custom"))
        assert _get_default_config_dir() == tmp_path / "custom"

    def test_home_default(self, monkeypatch):
        monkeypatch.delenv("REELNOTE_CONFIG_DIR", raising=False)
        assert _get_default_config_dir() == Path.home() / ".reelnote"

    def test_resolve_paths_creates_dir(self, monkeypatch, tmp_path: Path):
        target = tmp_path / "nested" / "dir"
        monkeypatch.setenv("REELNOTE_CONFIG_DIR", str(target))

        config = Config().resolve_paths(create_dirs=True)

        assert config.config_dir == target
        assert target.is_dir()

    def test_relative_database_path(self, tmp_path: Path):
        config = Config(config_dir=tmp_path)
        assert config.get_database_path() == tmp_path / "reelnote.db"
        assert config.get_log_file_path() == tmp_path / "reelnote.log"

    def test_absolute_database_path(self, tmp_path: Path):
        absolute = tmp_path / "elsewhere" / "media.db"
        config = Config(config_dir=tmp_path / "cfg", database={"database_path": str(absolute)})
        assert config.get_database_path() == absolute


class TestConfigLoading:
    """Tests for YAML loading."""

    def test_from_yaml_string(self):
        config = Config.from_yaml_string(
            """
logging:
  level: debug
  format: text
database:
  database_path: media.db
  enable_wal_mode: false
"""
        )
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "text"
        assert config.database.database_path == "media.db"
        assert config.database.enable_wal_mode is False

    def test_from_yaml_string_empty(self):
        """An empty document yields defaults."""
        assert Config.from_yaml_string("") == Config()

    def test_from_yaml_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "# reelnote settings\n"
            "database:\n"
            "  connection_timeout: 12\n"
            "logging:\n"
            "  third_party:\n"
            "    aiosqlite: ERROR\n",
            encoding="utf-8",
        )

        config = Config.from_yaml(path)

        assert config.database.connection_timeout == 12
        assert config.logging.third_party == {"aiosqlite": "ERROR"}

    def test_from_yaml_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_invalid_values(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("database:\n  connection_timeout: 0\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            Config.from_yaml(path)
