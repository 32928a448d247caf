"""Database migrations: ordered SQL files tracked by version and checksum."""

import hashlib
import re
import time
from dataclasses import dataclass
from pathlib import Path

import asyncpg  # type: ignore[import-untyped]

from pybgpdisco.database.schema import TABLE_SCHEMA_MIGRATIONS
from pybgpdisco.monitoring.logger import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# 001_initial.sql -> version=1, name="initial"
_FILENAME = re.compile(r"^(?P<version>\d+)_(?P<name>\w+)$")


class MigrationError(Exception):
    """Exception raised when applied migrations do not match the files."""

    pass


@dataclass
class Migration:
    """One migration file."""

    version: int
    name: str
    file_path: Path

    @property
    def checksum(self) -> str:
        """SHA256 of the migration file."""
        return hashlib.sha256(self.file_path.read_bytes()).hexdigest()

    @property
    def sql(self) -> str:
        """Migration SQL content."""
        return self.file_path.read_text()


def load_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """
    Load migration files from a directory, sorted by version.

    Files not named ``NNN_name.sql`` are logged and ignored.
    """
    migrations = []
    for file_path in directory.glob("*.sql"):
        match = _FILENAME.match(file_path.stem)
        if not match:
            logger.warning("migration_invalid_filename", filename=file_path.name)
            continue
        migrations.append(
            Migration(
                version=int(match["version"]),
                name=match["name"],
                file_path=file_path,
            )
        )
    return sorted(migrations, key=lambda m: m.version)


class MigrationRunner:
    """Applies pending migrations, each in its own transaction."""

    def __init__(self, pool: asyncpg.Pool, directory: Path = MIGRATIONS_DIR) -> None:
        """
        Initialize migration runner.

        Args:
            pool: Database connection pool
            directory: Directory holding the migration files
        """
        self.pool = pool
        self.migrations_dir = directory

    async def _applied_checksums(self, conn: asyncpg.Connection) -> dict[int, str]:
        exists = await conn.fetchval(
            "SELECT to_regclass($1) IS NOT NULL", TABLE_SCHEMA_MIGRATIONS
        )
        if not exists:
            return {}
        rows = await conn.fetch(
            f"SELECT version, checksum FROM {TABLE_SCHEMA_MIGRATIONS} ORDER BY version"
        )
        return {row["version"]: row["checksum"] for row in rows}

    async def get_pending_migrations(self) -> list[Migration]:
        """
        Migrations not yet applied.

        Raises:
            MigrationError: If an applied migration file has changed
        """
        all_migrations = load_migrations(self.migrations_dir)

        async with self.pool.acquire() as conn:
            applied = await self._applied_checksums(conn)

        pending = []
        for migration in all_migrations:
            checksum = applied.get(migration.version)
            if checksum is None:
                pending.append(migration)
            elif checksum != migration.checksum:
                logger.error(
                    "migration_checksum_mismatch",
                    version=migration.version,
                    name=migration.name,
                    expected=checksum,
                    actual=migration.checksum,
                )
                raise MigrationError(
                    f"Migration {migration.version} checksum mismatch - "
                    f"file changed after it was applied"
                )
        return pending

    async def apply_migrations(self) -> int:
        """
        Apply all pending migrations in version order.

        Returns:
            Number of migrations applied
        """
        pending = await self.get_pending_migrations()
        if not pending:
            logger.info("migrations_up_to_date")
            return 0

        logger.info(
            "migrations_pending",
            count=len(pending),
            versions=[m.version for m in pending],
        )
        for migration in pending:
            await self._apply_migration(migration)

        logger.info("migrations_complete", applied_count=len(pending))
        return len(pending)

    async def _apply_migration(self, migration: Migration) -> None:
        start_time = time.monotonic()
        logger.info("migration_applying", version=migration.version, name=migration.name)

        async with self.pool.acquire() as conn:
            try:
                async with conn.transaction():
                    await conn.execute(migration.sql)
                    execution_time_ms = int((time.monotonic() - start_time) * 1000)
                    await conn.execute(
                        f"""
                        INSERT INTO {TABLE_SCHEMA_MIGRATIONS}
                        (version, name, checksum, execution_time_ms)
                        VALUES ($1, $2, $3, $4)
                        """,
                        migration.version,
                        migration.name,
                        migration.checksum,
                        execution_time_ms,
                    )
            except Exception as e:
                logger.error(
                    "migration_failed",
                    version=migration.version,
                    name=migration.name,
                    error=str(e),
                )
                raise

        logger.info(
            "migration_applied",
            version=migration.version,
            name=migration.name,
            duration_ms=execution_time_ms,
        )


async def apply_migrations(pool: asyncpg.Pool) -> int:
    """Apply all pending database migrations."""
    return await MigrationRunner(pool).apply_migrations()
