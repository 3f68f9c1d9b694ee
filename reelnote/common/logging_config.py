"""structlog setup for reelnote.

Events go through stdlib logging so the console and the optional rotating
``reelnote.log`` share one level. ``configure()`` calls ``setup_logging``
once per load; calling it again replaces the previous handlers.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from .config import Config

# aiosqlite logs every statement at DEBUG
LIBRARY_LEVELS: Dict[str, str] = {"aiosqlite": "WARNING"}

LOG_BACKUP_DAYS = 7


def setup_logging(config: Config) -> Optional[Path]:
    """
    Route structlog through stdlib logging using ``config.logging``.

    Returns:
        Path of the log file when file logging is enabled, else None
    """
    settings = config.logging
    level = getattr(logging, settings.level)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_path = None
    if settings.file.enabled:
        log_path = config.get_log_file_path()
        handlers.append(_rotating_file_handler(log_path))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        if isinstance(old, logging.FileHandler):
            old.close()
    for handler in handlers:
        handler.setLevel(level)
        root.addHandler(handler)
    root.setLevel(level)

    for library, library_level in {**LIBRARY_LEVELS, **settings.third_party}.items():
        logging.getLogger(library).setLevel(library_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _renderer(settings.format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return log_path


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _rotating_file_handler(log_path: Path) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_path),
        when="midnight",
        backupCount=LOG_BACKUP_DAYS,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    return handler


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every event logged from this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
