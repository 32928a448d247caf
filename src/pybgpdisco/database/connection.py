"""Database connection pool management using asyncpg."""

import asyncpg  # type: ignore[import-untyped]

from pybgpdisco.config import Settings
from pybgpdisco.monitoring.logger import get_logger

logger = get_logger(__name__)


class DatabasePool:
    """
    Manages the asyncpg connection pool.

    Discovery runs several devices concurrently; each device pipeline
    acquires a connection per store call, so the pool size bounds the
    number of in-flight queries rather than the number of devices.
    """

    def __init__(self) -> None:
        """Initialize database pool manager."""
        self.pool: asyncpg.Pool | None = None

    async def connect(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = 30.0,
        timeout: float = 5.0,
    ) -> None:
        """
        Create and initialize the connection pool.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            min_size: Minimum number of connections in pool (default: 2)
            max_size: Maximum number of connections in pool (default: 10)
            command_timeout: Command execution timeout in seconds (default: 30)
            timeout: Connection timeout in seconds (default: 5)

        Raises:
            asyncpg.PostgresError: If connection fails
        """
        logger.info(
            "database_pool_connecting",
            host=host,
            port=port,
            database=database,
            min_size=min_size,
            max_size=max_size,
        )

        try:
            self.pool = await asyncpg.create_pool(
                host=host,
                port=port,
                database=database,
                user=user,
                password=password,
                min_size=min_size,
                max_size=max_size,
                command_timeout=command_timeout,
                timeout=timeout,
            )

            async with self.pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
                logger.info("database_pool_connected", postgres_version=version)

        except Exception as e:
            logger.error("database_pool_connection_failed", error=str(e))
            raise

    async def connect_from_settings(self, settings: Settings) -> None:
        """Create the pool from application settings."""
        await self.connect(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    async def close(self) -> None:
        """Close the connection pool and cleanup resources."""
        if self.pool:
            logger.info("database_pool_closing")
            await self.pool.close()
            self.pool = None
            logger.info("database_pool_closed")

    def get_pool(self) -> asyncpg.Pool:
        """
        Get the connection pool.

        Raises:
            RuntimeError: If pool is not initialized
        """
        if self.pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self.pool
