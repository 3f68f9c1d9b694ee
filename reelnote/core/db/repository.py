"""Multimedia repository: generic row CRUD over SQLite."""

import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

import aiosqlite
import structlog

from .connection import DatabaseConnection
from .exceptions import (
    DatabaseError,
    DuplicateRecordError,
    QueryError,
    RecordNotFoundError,
    TransactionError,
)
from .migrator import Migrator
from .query import RecordQuery

logger = structlog.get_logger(__name__)

Row = Dict[str, Any]

TABLE_COLUMNS: Dict[str, FrozenSet[str]] = {
    "users": frozenset({"id", "name", "username", "created_at"}),
    "categories": frozenset({"id", "name", "created_at"}),
    "videos": frozenset(
        {
            "id",
            "url",
            "title",
            "description",
            "slug",
            "user_id",
            "category_id",
            "created_at",
            "updated_at",
        }
    ),
    "annotations": frozenset({"id", "body", "at", "video_id", "user_id", "created_at"}),
}


class MultimediaRepository:
    """Repository for users, categories, videos and annotations.

    Exposes the small set of generic operations the service layer is built
    on (``get``, ``get_by``, ``insert``, ``update``, ``delete``, ``query``
    and ``preload_users``). Rows are returned as plain dictionaries.
    """

    def __init__(
        self,
        db_path: Path,
        enable_wal: bool = True,
        timeout: int = 30,
    ):
        """
        Initialize repository.

        Args:
            db_path: Absolute path to SQLite database file
            enable_wal: Enable Write-Ahead Logging mode
            timeout: Connection timeout in seconds
        """
        self.db_path = db_path
        self._db_connection = DatabaseConnection(db_path, enable_wal, timeout)
        self._connection: Optional[aiosqlite.Connection] = None
        self._in_transaction = False

    @classmethod
    async def from_config(cls, config: Any) -> "MultimediaRepository":
        """
        Create a connected, migrated repository from a Config.

        Args:
            config: Config instance; the database path is resolved against
                    its config_dir

        Returns:
            Initialized MultimediaRepository
        """
        db_path = config.get_database_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)

        repo = cls(
            db_path=db_path,
            enable_wal=config.database.enable_wal_mode,
            timeout=config.database.connection_timeout,
        )
        await repo.connect()

        # Reuse the open connection to avoid WAL conflicts
        migrator = Migrator(db_path, enable_wal=config.database.enable_wal_mode)
        await migrator.run_migrations(connection=repo._connection)

        logger.info("repository_initialized", db_path=str(db_path))

        return repo

    async def connect(self) -> None:
        """Establish database connection."""
        if self._connection is None:
            self._connection = await self._db_connection.connect()

    async def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            await self._db_connection.close()
            self._connection = None

    async def __aenter__(self) -> "MultimediaRepository":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @asynccontextmanager
    async def transaction(self) -> Any:
        """
        Explicit transaction context manager.

        Writes inside the block are committed together; any exception rolls
        all of them back. Store errors are re-raised as they are; anything
        else is wrapped in TransactionError.

        Example:
            async with repository.transaction():
                await repository.insert("categories", {"name": "Drama"})
                await repository.insert("categories", {"name": "Comedy"})
        """
        connection = self._require_connection()
        if self._in_transaction:
            raise TransactionError("Transaction already active", operation="begin")

        try:
            await connection.execute("BEGIN")
            self._in_transaction = True
            logger.debug("transaction_started")
            yield
            await connection.commit()
            logger.debug("transaction_committed")
        except Exception as e:
            await connection.rollback()
            logger.error("transaction_rolled_back", error=str(e))
            if isinstance(e, DatabaseError):
                raise
            raise TransactionError(f"Transaction failed: {e}", operation="rollback") from e
        finally:
            self._in_transaction = False

    def query(self, table: str) -> RecordQuery:
        """
        Create a new fluent query builder for a table.

        Raises:
            QueryError: If the table is unknown or there is no connection
        """
        connection = self._require_connection()
        return RecordQuery(connection, table, self._columns(table))

    # ==================== Generic CRUD ====================

    async def get(self, table: str, record_id: Any) -> Row:
        """
        Get a row by primary key.

        Raises:
            RecordNotFoundError: If no row has that id
        """
        row = await self.query(table).where("id", record_id).first()
        if row is None:
            raise RecordNotFoundError(
                f"{table} record not found: {record_id}",
                table=table,
                record_id=record_id,
            )
        return row

    async def get_by(self, table: str, **filters: Any) -> Optional[Row]:
        """Get the first row matching all equality filters, or None."""
        if not filters:
            raise QueryError(f"get_by on {table} requires at least one filter")

        query = self.query(table)
        for field, value in filters.items():
            query = query.where(field, value)
        return await query.first()

    async def insert(self, table: str, values: Dict[str, Any]) -> Row:
        """
        Insert a row and return it as stored.

        ``created_at`` (and ``updated_at`` where the table has one) are set
        automatically.

        Raises:
            DuplicateRecordError: On a uniqueness violation
            QueryError: On any other failure (including foreign keys)
        """
        columns = self._columns(table)
        now = datetime.now(timezone.utc).isoformat()
        values = {k: v for k, v in values.items() if k != "id"}
        values.setdefault("created_at", now)
        if "updated_at" in columns:
            values.setdefault("updated_at", now)
        self._check_fields(table, values)

        names = ", ".join(values.keys())
        placeholders = ", ".join("?" for _ in values)
        sql = f"INSERT INTO {table} ({names}) VALUES ({placeholders})"

        cursor = await self._execute_write(table, sql, tuple(values.values()))
        record_id = cursor.lastrowid
        await self._commit()

        logger.info("record_inserted", table=table, record_id=record_id)

        return await self.get(table, record_id)

    async def update(self, table: str, record_id: Any, values: Dict[str, Any]) -> Row:
        """
        Update columns of one row and return the row as stored.

        Raises:
            RecordNotFoundError: If no row has that id
            DuplicateRecordError: On a uniqueness violation
            QueryError: On any other failure
        """
        await self.get(table, record_id)

        values = {k: v for k, v in values.items() if k not in ("id", "created_at")}
        if "updated_at" in self._columns(table):
            values["updated_at"] = datetime.now(timezone.utc).isoformat()
        self._check_fields(table, values)

        if values:
            set_clause = ", ".join(f"{key} = ?" for key in values)
            sql = f"UPDATE {table} SET {set_clause} WHERE id = ?"
            await self._execute_write(table, sql, (*values.values(), record_id))
            await self._commit()

        logger.info("record_updated", table=table, record_id=record_id, fields=list(values))

        return await self.get(table, record_id)

    async def delete(self, table: str, record_id: Any) -> Row:
        """
        Delete one row and return its last stored state.

        Dependent rows declared ``ON DELETE CASCADE`` are removed by SQLite.

        Raises:
            RecordNotFoundError: If no row has that id
            QueryError: If a constraint blocks the delete
        """
        row = await self.get(table, record_id)

        await self._execute_write(table, f"DELETE FROM {table} WHERE id = ?", (record_id,))
        await self._commit()

        logger.info("record_deleted", table=table, record_id=record_id)

        return row

    async def preload_users(
        self, records: Union[Row, List[Row]], key: str = "user_id"
    ) -> Union[Row, List[Row]]:
        """
        Attach the referenced user row under ``"user"``.

        Accepts a single row or a list and returns the same shape. Users
        are fetched with one ``IN`` query.
        """
        single = isinstance(records, dict)
        rows = [records] if single else list(records)

        user_ids = sorted({row[key] for row in rows if row.get(key) is not None})
        users = await self.query("users").where_in("id", user_ids).execute()
        by_id = {user["id"]: user for user in users}

        loaded = [{**row, "user": by_id.get(row.get(key))} for row in rows]
        return loaded[0] if single else loaded

    # ==================== Accounts helpers ====================

    async def create_user(self, username: str, name: Optional[str] = None) -> Row:
        """Insert a user row. Accounts own users; this exists for seeding and tests."""
        return await self.insert("users", {"username": username, "name": name})

    async def get_user(self, user_id: int) -> Row:
        """Get a user by id, raising RecordNotFoundError if absent."""
        return await self.get("users", user_id)

    # ==================== Internals ====================

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise QueryError("No active connection")
        return self._connection

    def _columns(self, table: str) -> FrozenSet[str]:
        try:
            return TABLE_COLUMNS[table]
        except KeyError:
            raise QueryError(f"Unknown table: {table}") from None

    def _check_fields(self, table: str, values: Dict[str, Any]) -> None:
        unknown = set(values) - self._columns(table)
        if unknown:
            raise QueryError(f"Unknown columns for {table}: {sorted(unknown)}")

    async def _execute_write(self, table: str, sql: str, params: tuple) -> aiosqlite.Cursor:
        connection = self._require_connection()
        try:
            return await connection.execute(sql, params)
        except sqlite3.IntegrityError as e:
            if not self._in_transaction:
                await connection.rollback()
            message = str(e)
            logger.error("write_rejected", table=table, error=message)
            if message.startswith("UNIQUE constraint failed"):
                key = message.split(":", 1)[-1].strip()
                raise DuplicateRecordError(
                    f"Duplicate {table} record: {message}",
                    table=table,
                    key=key,
                ) from e
            raise QueryError(f"Write to {table} failed: {message}", query=sql, params=params) from e
        except sqlite3.Error as e:
            if not self._in_transaction:
                await connection.rollback()
            logger.error("write_failed", table=table, error=str(e))
            raise QueryError(f"Write to {table} failed: {e}", query=sql, params=params) from e

    async def _commit(self) -> None:
        if not self._in_transaction:
            await self._require_connection().commit()
