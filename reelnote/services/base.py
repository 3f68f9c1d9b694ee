"""Base service infrastructure and service-level exceptions.

- BaseService: repository access and a bound logger
- ServiceError, NotFoundError, ValidationError: exceptions the calling layer
  maps to responses (e.g. NotFoundError -> 404)
"""

from abc import ABC
from typing import Any, Dict, List, Optional

import structlog

from reelnote.core.db.repository import MultimediaRepository


# ==================== Exceptions ====================


class ServiceError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ServiceError):
    """Raised when input validation fails and the caller asked for an exception.

    Operations normally return a failed Result instead; ``Result.unwrap()``
    raises this with the field errors attached.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message, details={"errors": errors or {}})
        self.errors = errors or {}


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
    ):
        super().__init__(
            message,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ==================== Base Service ====================


class BaseService(ABC):
    """
    Abstract base class for service classes.

    Provides repository access and a structlog logger bound to the class name.
    """

    def __init__(self, repository: MultimediaRepository):
        """
        Initialize the service.

        Args:
            repository: MultimediaRepository for database operations
        """
        self._repository = repository
        self._logger = structlog.get_logger(self.__class__.__name__)

    @property
    def repository(self) -> MultimediaRepository:
        """Access the repository."""
        return self._repository

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Access the bound logger."""
        return self._logger
