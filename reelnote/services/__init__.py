"""Service layer for multimedia business logic.

Example:
    >>> from reelnote.services import MultimediaService
    >>> service = MultimediaService(repository)
    >>> videos = await service.list_user_videos(user)
"""

from .base import (
    BaseService,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from .changeset import Changeset, Result
from .multimedia_service import ANNOTATION_LIMIT, MultimediaService
from .schemas import AnnotationInput, CategoryInput, VideoInput

__all__ = [
    "BaseService",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "Changeset",
    "Result",
    "MultimediaService",
    "ANNOTATION_LIMIT",
    "AnnotationInput",
    "CategoryInput",
    "VideoInput",
]
