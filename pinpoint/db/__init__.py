from __future__ import annotations

import textwrap
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Iterator, Optional, Self

import asyncpg
import structlog

from ..config import Settings
from ..utils import timed

logger = structlog.get_logger()

SERVER_SETTINGS = {
    "timezone": "UTC",
}


class Database:
    """
    Handle to a Postgres database, backed by an asyncpg connection pool.

    The pool is created by ``connect`` and closed by ``disconnect``. It is
    created without any idle connections, so connecting succeeds even while
    the server is unreachable and errors surface on the first query instead.
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        max_size: int = 10,
        timeout: float = 10.0,
    ) -> None:
        self.dsn = dsn
        self.max_size = max_size
        self.timeout = timeout
        self._pool: asyncpg.Pool | None = None
        self._current_connection: ContextVar[asyncpg.Connection | None] = (
            ContextVar("connection", default=None)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            settings.database_url,
            max_size=settings.database_pool_size,
            timeout=settings.database_timeout,
        )

    @property
    def connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        assert self._pool is None, "Database is already connected"
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=0,
            max_size=self.max_size,
            timeout=self.timeout,
            command_timeout=self.timeout,
            server_settings=SERVER_SETTINGS,
        )
        logger.info("Database pool created", max_size=self.max_size)

    async def disconnect(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            logger.info("Database disconnected")

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    @contextmanager
    def set_connection(self, con: asyncpg.Connection) -> Iterator[None]:
        """
        Set the connection for the current task
        """

        logger.debug("Set current connection")
        reset_token = self._current_connection.set(con)
        try:
            yield
        finally:
            logger.debug("Release current connection")
            self._current_connection.reset(reset_token)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Get or acquire a connection for the current task.
        """

        # First try to use the connection assigned to this task
        if (con := self._current_connection.get()) is not None:
            logger.debug("Using existing connection")
            yield con
            return

        # Fall back to leasing a connection from the pool, and make it the
        # current connection so nested calls share it.
        if self._pool is None:
            raise ConnectionError("Database is not connected")

        logger.debug("Leasing connection from pool")
        async with self._pool.acquire(timeout=self.timeout) as con:
            with self.set_connection(con):
                yield con
        logger.debug("Released connection to pool")

    async def execute(
        self, sql: str, *args: Any, timeout: Optional[float] = None
    ) -> str:
        async with self.connection() as con:
            with log_query(sql):
                return await con.execute(sql, *args, timeout=timeout)

    async def fetch(
        self, sql: str, *args: Any, timeout: Optional[float] = None
    ) -> list[asyncpg.Record]:
        async with self.connection() as con:
            with log_query(sql):
                return await con.fetch(sql, *args, timeout=timeout)

    async def fetchrow(
        self, sql: str, *args: Any, timeout: Optional[float] = None
    ) -> asyncpg.Record | None:
        async with self.connection() as con:
            with log_query(sql):
                return await con.fetchrow(sql, *args, timeout=timeout)

    async def fetchval(
        self, sql: str, *args: Any, column: int = 0, timeout: Optional[float] = None
    ) -> Any:
        async with self.connection() as con:
            with log_query(sql):
                return await con.fetchval(sql, *args, column=column, timeout=timeout)


###########
# Helpers #
###########


@contextmanager
def log_query(sql: str) -> Iterator[None]:
    with timed("Execute query", sql=textwrap.shorten(sql, 100)):
        yield
