"""
PostgreSQL pool for user, chat and feedback storage.

A single asyncpg pool is shared by the API process. Repository methods run
one statement each, so queries go straight to the pool; no caller holds a
connection across awaits.
"""

import logging
from typing import Any

import asyncpg

from chat_backend.config.settings import get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the asyncpg pool used by ``UserRepository``.

    The pool is created by ``connect()`` during app startup (or by the CLI)
    and released by ``close()``. Until then ``health_check()`` reports
    False and queries raise.

    Usage:
        db = Database()
        await db.connect()
        status = await db.execute("DELETE FROM chat_entries WHERE user_id = $1", user_id)
        await db.close()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        settings = get_settings()

        # Credentials come from DATABASE_URL only
        self._database_url = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size
        self._command_timeout = settings.db_command_timeout

        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Create the pool. A second call is a no-op."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
        except Exception as e:
            logger.error("Could not reach storage: %s", e)
            raise

        logger.info("Storage pool ready (size %d-%d)", self._min_size, self._max_size)

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Storage pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement; returns the status tag (e.g. ``DELETE 3``)."""
        return await self.pool.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self.pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        return await self.pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self.pool.fetchval(query, *args)

    async def health_check(self) -> bool:
        """
        Whether storage answers a trivial query.

        Never raises: an unconnected pool or a driver failure both read as
        unhealthy.
        """
        if self._pool is None:
            return False
        try:
            return await self._pool.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.warning("Storage health check failed: %s", e)
            return False
