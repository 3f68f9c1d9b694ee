"""Common utilities for configuration, logging, and string handling."""

from .config import Config, DatabaseConfig, FileLoggingConfig, LoggingConfig
from .logging_config import bind_context, clear_context, setup_logging
from .string_utils import normalize_string, slugify

__all__ = [
    "Config",
    "DatabaseConfig",
    "FileLoggingConfig",
    "LoggingConfig",
    "setup_logging",
    "bind_context",
    "clear_context",
    "normalize_string",
    "slugify",
]
