"""Configuration models using Pydantic for validation."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator
from ruamel.yaml import YAML

logger = structlog.get_logger(__name__)


class FileLoggingConfig(BaseModel):
    """Configuration for file-based logging.

    File logging uses daily rotation with 7-day retention.
    Log files are stored as reelnote.log in config_dir, rotated daily
    with format reelnote.log.YYYY-MM-DD.
    """

    enabled: bool = Field(
        default=False,
        description="Enable file logging (logs to reelnote.log in config_dir)",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    format: str = Field(
        default="json",
        description="Log format: json or text",
    )
    file: FileLoggingConfig = Field(
        default_factory=FileLoggingConfig,
        description="File logging configuration",
    )
    third_party: Dict[str, str] = Field(
        default_factory=dict,
        description="Log levels for third-party libraries (advanced)",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid format: {v}. Must be one of {valid_formats}")
        return v_lower


class DatabaseConfig(BaseModel):
    """Configuration for the SQLite database."""

    database_path: str = Field(
        default="reelnote.db",
        description="Database file path (relative paths resolve against config_dir)",
    )
    enable_wal_mode: bool = Field(
        default=True,
        description="Enable SQLite Write-Ahead Logging",
    )
    connection_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Connection timeout in seconds",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: str) -> str:
        """Reject empty database paths."""
        if not v or not v.strip():
            raise ValueError("database_path must not be empty")
        return v


def _get_default_config_dir() -> Path:
    """
    Get default config directory based on environment.

    Priority:
    1. REELNOTE_CONFIG_DIR environment variable
    2. $HOME/.reelnote otherwise
    """
    env_config_dir = os.environ.get("REELNOTE_CONFIG_DIR")
    if env_config_dir:
        return Path(env_config_dir)

    return Path.home() / ".reelnote"


class Config(BaseModel):
    """Main configuration class for reelnote.

    Environment Variables:
    - REELNOTE_CONFIG_DIR: Override config_dir

    Relative paths in config (database_path) are resolved against
    config_dir at runtime.
    """

    config_dir: Optional[Path] = Field(
        default=None,
        description="Configuration directory (database, logs). Resolved from REELNOTE_CONFIG_DIR or defaults.",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Database configuration",
    )

    def resolve_paths(self, create_dirs: bool = True) -> "Config":
        """
        Resolve config_dir from environment or defaults.

        Args:
            create_dirs: If True, create config_dir if it doesn't exist

        Returns:
            Self with resolved paths (for chaining)
        """
        if self.config_dir is None:
            object.__setattr__(self, "config_dir", _get_default_config_dir())

        if create_dirs:
            self.config_dir.mkdir(parents=True, exist_ok=True)

        logger.debug("paths_resolved", config_dir=str(self.config_dir))

        return self

    def get_database_path(self) -> Path:
        """
        Get absolute database path, resolved against config_dir.

        Returns:
            Absolute path to database file
        """
        db_path = Path(self.database.database_path)
        if db_path.is_absolute():
            return db_path
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / db_path

    def get_log_file_path(self) -> Path:
        """Get absolute path of the rotating log file."""
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / "reelnote.log"

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            pydantic.ValidationError: If configuration is invalid

        Example:
            >>> config = Config.from_yaml(Path("config.yaml"))
        """
        yaml_loader = YAML()
        yaml_loader.preserve_quotes = True

        with open(path, "r", encoding="utf-8") as f:
            data = yaml_loader.load(f)
        return cls.model_validate(_to_plain(data) or {})

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "Config":
        """
        Load configuration from YAML string.

        Example:
            >>> config = Config.from_yaml_string("logging:\\n  level: DEBUG")
        """
        data = yaml.safe_load(yaml_string)
        return cls.model_validate(data or {})


def _to_plain(data: Any) -> Any:
    """Convert ruamel CommentedMap/CommentedSeq trees to plain dicts and lists."""
    if isinstance(data, dict):
        return {str(k): _to_plain(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_to_plain(item) for item in data]
    return data
