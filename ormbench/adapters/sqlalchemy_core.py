"""SQLAlchemy Core adapter: a mapped ``books`` table with compiled-statement caching."""

from typing import Any, Iterator

from sqlalchemy import (
    ARRAY,
    Column,
    DateTime,
    Double,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig
from ormbench.errors import ConnectionSetupError
from ormbench.logging_config import get_logger, log_performance
from ormbench.models import Book

logger = get_logger(__name__)

# Compiled statements are cached per engine; psycopg prepares them server-side
# on first use when prepare_threshold is 0.
QUERY_CACHE_SIZE = 64


def make_books_table(name: str, metadata: MetaData | None = None) -> Table:
    return Table(
        name,
        metadata if metadata is not None else MetaData(),
        Column("id", Integer, primary_key=True),
        Column("title", Text),
        Column("author_id", Integer),
        Column("tags", ARRAY(Text)),
        Column("price", Double),
        Column("publish_date", DateTime(timezone=True)),
        Column("text", Text),
        Column("text2", Text),
        Column("text3", Text),
    )


class SQLAlchemyCoreAdapter(BackendAdapter):
    name = "sqlalchemy"

    def __init__(self, config: BackendConfig):
        super().__init__(config)
        self.books = make_books_table(config.table)
        self._engine: Engine | None = None
        self._conn: Connection | None = None
        self._insert = insert(self.books).returning(self.books.c.id)

    @log_performance(logger, "connect sqlalchemy")
    def connect(self) -> None:
        try:
            self._engine = create_engine(
                self.config.sqlalchemy_url,
                pool_size=1,
                query_cache_size=QUERY_CACHE_SIZE,
                connect_args={"prepare_threshold": 0},
            )
            self._conn = self._engine.connect().execution_options(isolation_level="AUTOCOMMIT")
        except SQLAlchemyError as e:
            self.close()
            raise ConnectionSetupError(f"sqlalchemy: {e}") from e
        logger.info("Connected to %s", self._engine.url.render_as_string(hide_password=True))

    def insert_one(self, book: Book) -> Any:
        return self._conn.execute(self._insert, book.insert_document()).scalar_one()

    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        stmt = select(self.books).where(self.books.c.price > price_greater_than).limit(limit)
        result = self._conn.execute(stmt)
        for row in result.mappings():
            yield Book(**row)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
