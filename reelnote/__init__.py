"""reelnote package initialization."""

from pathlib import Path
from typing import Optional

import structlog

from .common.config import Config, DatabaseConfig, FileLoggingConfig, LoggingConfig
from .common.logging_config import setup_logging
from .core.db import (
    Annotation,
    Category,
    DatabaseConnectionError,
    DatabaseError,
    DuplicateRecordError,
    MigrationError,
    MultimediaRepository,
    QueryError,
    RecordNotFoundError,
    RecordQuery,
    TransactionError,
    User,
    Video,
)
from .services import (
    Changeset,
    MultimediaService,
    NotFoundError,
    Result,
    ServiceError,
    ValidationError,
)

__version__ = "0.1.0"
__all__ = [
    "Config",
    "DatabaseConfig",
    "FileLoggingConfig",
    "LoggingConfig",
    "configure",
    "get_config",
    "get_repository",
    "get_multimedia_service",
    "shutdown",
    "MultimediaRepository",
    "RecordQuery",
    "MultimediaService",
    "Changeset",
    "Result",
    "Annotation",
    "Category",
    "User",
    "Video",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DuplicateRecordError",
    "MigrationError",
    "QueryError",
    "RecordNotFoundError",
    "TransactionError",
]

logger = structlog.get_logger(__name__)

_config: Optional[Config] = None
_repository: Optional[MultimediaRepository] = None
_service: Optional[MultimediaService] = None


async def configure(config_path: Optional[Path] = None, config: Optional[Config] = None) -> None:
    """
    Configure the reelnote package (async).

    Call once at application startup to load configuration, set up logging,
    and open and migrate the database.

    Path Resolution:
    - If config is provided, it is used as-is
    - Else if config_path is provided, load from that file
    - Otherwise look for config.yaml in REELNOTE_CONFIG_DIR (or the default
      config dir), then in the current directory, then fall back to defaults

    Example:
        >>> import reelnote
        >>> await reelnote.configure(config_path=Path("config.yaml"))
    """
    global _config, _repository

    from reelnote.common.config import _get_default_config_dir

    if config is not None:
        _config = config
    elif config_path is not None:
        _config = Config.from_yaml(config_path)
    else:
        default_config_path = _get_default_config_dir() / "config.yaml"
        cwd_config_path = Path.cwd() / "config.yaml"

        if default_config_path.exists():
            _config = Config.from_yaml(default_config_path)
            config_path = default_config_path
        elif cwd_config_path.exists():
            _config = Config.from_yaml(cwd_config_path)
            config_path = cwd_config_path
        elif _config is None:
            _config = Config()

    _config.resolve_paths(create_dirs=True)
    log_file = setup_logging(_config)

    if _repository is None:
        _repository = await MultimediaRepository.from_config(_config)

    logger.info(
        "reelnote_configured",
        version=__version__,
        config_path=str(config_path) if config_path else None,
        config_dir=str(_config.config_dir),
        database_path=str(_config.get_database_path()),
        log_file=str(log_file) if log_file else None,
    )


def get_config() -> Config:
    """
    Get current configuration, initializing with defaults if needed.

    Example:
        >>> import reelnote
        >>> reelnote.get_config().database.connection_timeout
        30
    """
    global _config
    if _config is None:
        _config = Config()
        setup_logging(_config)
    return _config


async def get_repository() -> MultimediaRepository:
    """
    Get the repository, initializing from the current config if needed.

    Example:
        >>> repo = await reelnote.get_repository()
        >>> rows = await repo.query("categories").order_by("name").execute()
    """
    global _repository

    if _repository is None:
        config = get_config()
        config.resolve_paths(create_dirs=True)
        _repository = await MultimediaRepository.from_config(config)
        logger.info(
            "repository_auto_initialized",
            database_path=str(config.get_database_path()),
        )

    return _repository


async def get_multimedia_service() -> MultimediaService:
    """Get the MultimediaService bound to the package repository."""
    global _service

    repository = await get_repository()
    if _service is None or _service.repository is not repository:
        _service = MultimediaService(repository)
    return _service


async def shutdown() -> None:
    """Close the package repository and forget cached state."""
    global _config, _repository, _service

    if _repository is not None:
        await _repository.close()
    _config = None
    _repository = None
    _service = None
