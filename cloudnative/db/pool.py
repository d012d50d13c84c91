"""PostgreSQL connection pool management.

Provides the process-wide connection pool shared by PostgreSQL stores.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from cloudnative.config.models.database import DatabaseConfig
from cloudnative.db.errors import ConnectionError
from cloudnative.observability.logging import get_logger

logger = get_logger(__name__)


class PostgresPool:
    """Manages an asyncpg connection pool that connects on first use.

    Usage:
        pool = PostgresPool(DatabaseConfig())
        await pool.connect()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM items")
        finally:
            await pool.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize pool configuration.

        Args:
            config: Database section of the application settings
        """
        self._config = config
        self._pool: asyncpg.Pool | None = None

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    async def connect(self) -> None:
        """Initialize the connection pool."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._config.dsn,
                min_size=self._config.min_pool_size,
                max_size=self._config.max_pool_size,
                command_timeout=self._config.command_timeout,
            )
            logger.info(
                "postgres_pool_connected",
                host=self._config.host,
                database=self._config.name,
                max_size=self._config.max_pool_size,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("postgres_pool_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e

    async def close(self) -> None:
        """Close the connection pool gracefully."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection from the pool.

        Auto-connects if not already connected. PostgreSQL errors raised
        while the connection is held are wrapped in ConnectionError.
        """
        if self._pool is None:
            await self.connect()
        assert self._pool is not None

        try:
            async with self._pool.acquire() as connection:
                yield connection
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("postgres_connection_error", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e

    @property
    def is_connected(self) -> bool:
        """Check if pool is initialized."""
        return self._pool is not None
