"""
PostgreSQL access for subscribers, deliveries and calibration.

A thin asyncpg pool wrapper. Every pooled connection carries a
``lock_timeout`` so a poller queued behind another's claim gives up with
``LockNotAvailableError`` instead of hanging, and an ``application_name``
that identifies the service in ``pg_stat_activity``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Literal

import asyncpg

from watersense.config.settings import get_settings

logger = logging.getLogger(__name__)

APPLICATION_NAME = "watersense"

IsolationLevel = Literal["read_committed", "repeatable_read", "serializable"]


class Database:
    """
    asyncpg pool used by the repositories.

    Usage:
        db = Database()
        await db.connect()

        async with db.transaction(isolation="serializable") as conn:
            claimed_id = await conn.fetchval("UPDATE alert_notifications ...")

        await db.close()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        lock_timeout_ms: int | None = None,
    ):
        settings = get_settings()

        self._database_url = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size
        self._command_timeout = settings.db_command_timeout
        self._lock_timeout_ms = (
            settings.db_lock_timeout_ms if lock_timeout_ms is None else lock_timeout_ms
        )

        self._pool: asyncpg.Pool | None = None

    @property
    def server_settings(self) -> dict[str, str]:
        """Session settings applied to every pooled connection."""
        return {
            "application_name": APPLICATION_NAME,
            "lock_timeout": str(self._lock_timeout_ms),
        }

    async def connect(self) -> None:
        """Create the connection pool."""
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
                server_settings=self.server_settings,
            )
        except Exception as e:
            logger.error("Failed to connect to database: %s", e)
            raise

        logger.info(
            "Database connected (pool: %d-%d, lock_timeout: %dms)",
            self._min_size, self._max_size, self._lock_timeout_ms,
        )

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool, raising if not connected."""
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def transaction(
        self,
        isolation: IsolationLevel | None = None,
    ) -> AsyncIterator[asyncpg.Connection]:
        """
        Run a block in one transaction on one pooled connection.

        Commits when the block exits normally and rolls back if it raises.
        A SERIALIZABLE claim that loses a race surfaces here as
        ``asyncpg.SerializationError``; retrying is the caller's decision.

        Args:
            isolation: Isolation level (server default if None)
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction(isolation=isolation):
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement and return its command tag (e.g. ``UPDATE 3``)."""
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """True if the pool is up and answers ``SELECT 1``."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.debug("Database health check failed: %s", e)
            return False


def affected_rows(status: str) -> int:
    """Parse the row count from a command status like ``UPDATE 3``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0
