"""psycopg adapter: plain prepared statements, rows mapped straight onto Book."""

from typing import Any, Iterator

import psycopg
from psycopg import sql
from psycopg.rows import class_row

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig
from ormbench.errors import ConnectionSetupError
from ormbench.logging_config import get_logger, log_performance
from ormbench.models import INSERT_COLUMNS, Book

logger = get_logger(__name__)


def build_insert_sql(table: str) -> sql.Composed:
    return sql.SQL("insert into {table} ({columns}) values ({values}) returning id").format(
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(map(sql.Identifier, INSERT_COLUMNS)),
        values=sql.SQL(", ").join(sql.Placeholder() * len(INSERT_COLUMNS)),
    )


def build_select_sql(table: str) -> sql.Composed:
    return sql.SQL("select * from {table} where price > %s limit %s").format(table=sql.Identifier(table))


class PsycopgAdapter(BackendAdapter):
    name = "psycopg"

    def __init__(self, config: BackendConfig):
        super().__init__(config)
        self._conn: psycopg.Connection | None = None
        self._insert_sql = build_insert_sql(config.table)
        self._select_sql = build_select_sql(config.table)

    @log_performance(logger, "connect psycopg")
    def connect(self) -> None:
        try:
            self._conn = psycopg.connect(self.config.postgres_dsn, autocommit=True)
        except psycopg.Error as e:
            raise ConnectionSetupError(f"psycopg: {e}") from e
        logger.info("Connected to %s:%s/%s", self.config.pg_host, self.config.pg_port, self.config.pg_database)

    def insert_one(self, book: Book) -> Any:
        row = self._conn.execute(self._insert_sql, book.insert_values(), prepare=True).fetchone()
        return row[0] if row is not None else None

    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        with self._conn.cursor(row_factory=class_row(Book)) as cur:
            cur.execute(self._select_sql, (price_greater_than, limit), prepare=True)
            yield from cur

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
