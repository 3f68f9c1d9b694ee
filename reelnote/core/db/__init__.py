"""Database module for the multimedia store."""

from .connection import DatabaseConnection
from .exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DuplicateRecordError,
    MigrationError,
    QueryError,
    RecordNotFoundError,
    TransactionError,
)
from .migrator import Migrator
from .models import Annotation, Category, User, Video
from .query import RecordQuery
from .repository import MultimediaRepository

__all__ = [
    "MultimediaRepository",
    "RecordQuery",
    "DatabaseConnection",
    "Migrator",
    "Annotation",
    "Category",
    "User",
    "Video",
    "DatabaseError",
    "DatabaseConnectionError",
    "MigrationError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "QueryError",
    "TransactionError",
]
