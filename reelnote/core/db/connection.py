"""SQLite connection setup for the multimedia store."""

from pathlib import Path
from typing import Any, Dict, Optional

import aiosqlite
import structlog

from .exceptions import DatabaseConnectionError

logger = structlog.get_logger(__name__)


class DatabaseConnection:
    """Opens one aiosqlite connection with the pragmas the schema depends on.

    Video owners, annotation authors and the annotation cascade are all
    foreign keys, so a connection on which SQLite will not enforce them is
    refused rather than returned.
    """

    def __init__(
        self,
        db_path: Path,
        enable_wal: bool = True,
        timeout: int = 30,
    ):
        self.db_path = db_path
        self.enable_wal = enable_wal
        self.timeout = timeout
        self._connection: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> aiosqlite.Connection:
        """
        Open the connection, or return the one already open.

        Raises:
            DatabaseConnectionError: If the file cannot be opened or foreign
                                     keys cannot be enabled
        """
        if self._connection is not None:
            return self._connection

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            connection = await aiosqlite.connect(str(self.db_path), timeout=self.timeout)
        except Exception as e:
            logger.error("database_connection_failed", db_path=str(self.db_path), error=str(e))
            raise DatabaseConnectionError(
                f"Failed to connect to database: {e}",
                path=self.db_path,
            ) from e

        connection.row_factory = aiosqlite.Row
        try:
            await self._configure(connection)
        except Exception as e:
            await connection.close()
            logger.error("database_setup_failed", db_path=str(self.db_path), error=str(e))
            if isinstance(e, DatabaseConnectionError):
                raise
            raise DatabaseConnectionError(
                f"Failed to configure database: {e}",
                path=self.db_path,
            ) from e

        self._connection = connection
        logger.info("database_connected", db_path=str(self.db_path), wal_mode=self.enable_wal)
        return connection

    async def _configure(self, connection: aiosqlite.Connection) -> None:
        await connection.execute("PRAGMA foreign_keys = ON")
        await connection.execute(f"PRAGMA busy_timeout = {int(self.timeout * 1000)}")
        if self.enable_wal:
            await connection.execute("PRAGMA journal_mode = WAL")

        pragmas = await self._read_pragmas(connection)
        if pragmas["foreign_keys"] != 1:
            raise DatabaseConnectionError(
                "SQLite build does not enforce foreign keys",
                path=self.db_path,
            )

    async def pragmas(self) -> Dict[str, Any]:
        """Current foreign_keys and journal_mode settings of the open connection."""
        if self._connection is None:
            raise DatabaseConnectionError("Not connected", path=self.db_path)
        return await self._read_pragmas(self._connection)

    @staticmethod
    async def _read_pragmas(connection: aiosqlite.Connection) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name in ("foreign_keys", "journal_mode"):
            cursor = await connection.execute(f"PRAGMA {name}")
            row = await cursor.fetchone()
            await cursor.close()
            values[name] = row[0] if row else None
        return values

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("database_closed", db_path=str(self.db_path))

    async def __aenter__(self) -> aiosqlite.Connection:
        return await self.connect()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
