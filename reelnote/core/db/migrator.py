"""Versioned SQL schema migrations."""

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import aiosqlite
import structlog

from .exceptions import MigrationError

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


@dataclass(frozen=True)
class MigrationFile:
    """A migration script on disk, e.g. ``001_initial_schema.sql``."""

    version: int
    filename: str
    sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode()).hexdigest()


class Migrator:
    """Applies pending ``NNN_description.sql`` scripts in version order.

    Applied versions are recorded in ``schema_migrations`` together with a
    SHA-256 checksum of the script; a script that changed after it was
    applied is reported as a MigrationError instead of being re-run.
    """

    def __init__(self, db_path: Path, migrations_dir: Path = MIGRATIONS_DIR, enable_wal: bool = True):
        self.db_path = db_path
        self.migrations_dir = migrations_dir
        self.enable_wal = enable_wal

    async def run_migrations(self, connection: Optional[aiosqlite.Connection] = None) -> List[int]:
        """
        Run all pending migrations.

        Args:
            connection: Existing connection to migrate through. When omitted a
                standalone connection to ``db_path`` is opened.

        Returns:
            Versions applied by this call

        Raises:
            MigrationError: If a script fails or an applied script was modified
        """
        if connection is not None:
            return await self._migrate(connection)

        async with aiosqlite.connect(str(self.db_path)) as db:
            await db.execute("PRAGMA foreign_keys = ON")
            if self.enable_wal:
                await db.execute("PRAGMA journal_mode = WAL")
            return await self._migrate(db)

    async def _migrate(self, db: aiosqlite.Connection) -> List[int]:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                filename TEXT NOT NULL,
                checksum TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
            """
        )
        await db.commit()

        applied = await self.applied_checksums(db)
        available = self.discover()

        for migration in available:
            recorded = applied.get(migration.version)
            if recorded is not None and recorded != migration.checksum:
                raise MigrationError(
                    f"Migration {migration.filename} was modified after it was applied",
                    version=migration.version,
                    filename=migration.filename,
                )

        pending = [m for m in available if m.version not in applied]
        if not pending:
            logger.info("no_pending_migrations", db_path=str(self.db_path))
            return []

        logger.info("migrations_pending", count=len(pending), db_path=str(self.db_path))

        for migration in pending:
            try:
                logger.info(
                    "migration_applying",
                    version=migration.version,
                    filename=migration.filename,
                )
                await db.executescript(migration.sql)
                await db.execute(
                    """
                    INSERT INTO schema_migrations (version, filename, checksum, applied_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        migration.version,
                        migration.filename,
                        migration.checksum,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                await db.commit()
            except Exception as e:
                await db.rollback()
                logger.error(
                    "migration_failed",
                    version=migration.version,
                    filename=migration.filename,
                    error=str(e),
                )
                raise MigrationError(
                    f"Migration {migration.filename} failed: {e}",
                    version=migration.version,
                    filename=migration.filename,
                ) from e

        logger.info("migrations_complete", applied=len(pending), db_path=str(self.db_path))
        return [m.version for m in pending]

    async def applied_checksums(self, db: aiosqlite.Connection) -> Dict[int, str]:
        """Map of applied version -> recorded checksum."""
        cursor = await db.execute("SELECT version, checksum FROM schema_migrations ORDER BY version")
        rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}

    def discover(self) -> List[MigrationFile]:
        """Read migration scripts from ``migrations_dir`` sorted by version."""
        if not self.migrations_dir.exists():
            logger.warning("migrations_dir_not_found", path=str(self.migrations_dir))
            return []

        migrations = []
        for sql_file in sorted(self.migrations_dir.glob("*.sql")):
            try:
                version = int(sql_file.stem.split("_")[0])
            except ValueError:
                logger.warning("migration_filename_invalid", filename=sql_file.name)
                continue
            migrations.append(
                MigrationFile(version=version, filename=sql_file.name, sql=sql_file.read_text())
            )

        migrations.sort(key=lambda m: m.version)
        return migrations
