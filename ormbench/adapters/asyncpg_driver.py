"""
asyncpg adapter: server-side prepared statements over the binary protocol.

asyncpg only exposes coroutines, so the adapter owns a private event loop and
runs every call to completion on it; the runner stays synchronous.
"""

import asyncio
from typing import Any, Iterator

import asyncpg

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig
from ormbench.errors import ConnectionSetupError
from ormbench.logging_config import get_logger, log_performance
from ormbench.models import INSERT_COLUMNS, Book

logger = get_logger(__name__)


def build_insert_sql(table: str) -> str:
    placeholders = ", ".join(f"${i}" for i in range(1, len(INSERT_COLUMNS) + 1))
    return f'insert into "{table}" ({", ".join(INSERT_COLUMNS)}) values ({placeholders}) returning id'


def build_select_sql(table: str) -> str:
    return f'select * from "{table}" where price > $1 limit $2'


class AsyncpgAdapter(BackendAdapter):
    name = "asyncpg"

    def __init__(self, config: BackendConfig):
        super().__init__(config)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._conn: asyncpg.Connection | None = None
        self._insert_stmt = None
        self._select_stmt = None

    def _run(self, coro):
        return self._loop.run_until_complete(coro)

    @log_performance(logger, "connect asyncpg")
    async def _open(self) -> None:
        self._conn = await asyncpg.connect(dsn=self.config.postgres_dsn)
        self._insert_stmt = await self._conn.prepare(build_insert_sql(self.config.table))
        self._select_stmt = await self._conn.prepare(build_select_sql(self.config.table))

    def connect(self) -> None:
        self._loop = asyncio.new_event_loop()
        try:
            self._run(self._open())
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            self.close()
            raise ConnectionSetupError(f"asyncpg: {e}") from e
        logger.info("Connected to %s:%s/%s", self.config.pg_host, self.config.pg_port, self.config.pg_database)

    def insert_one(self, book: Book) -> Any:
        return self._run(self._insert_stmt.fetchval(*book.insert_values()))

    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        rows = self._run(self._select_stmt.fetch(price_greater_than, limit))
        for row in rows:
            yield Book(**dict(row))

    def close(self) -> None:
        if self._loop is None:
            return
        if self._conn is not None:
            self._run(self._conn.close())
            self._conn = None
        self._loop.close()
        self._loop = None
