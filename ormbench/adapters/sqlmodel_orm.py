"""SQLModel adapter: ORM unit of work, one session held for the whole run."""

from datetime import datetime
from functools import lru_cache
from typing import Any, Iterator

from sqlalchemy import ARRAY, Column, DateTime, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig
from ormbench.errors import ConnectionSetupError
from ormbench.logging_config import get_logger, log_performance
from ormbench.models import Book

logger = get_logger(__name__)


@lru_cache(maxsize=None)
def book_row_model(table: str) -> type[SQLModel]:
    """Build (once per table name) the mapped SQLModel class for *table*."""

    class BookRow(SQLModel, table=True):
        __tablename__ = table

        id: int | None = Field(default=None, primary_key=True)
        title: str
        author_id: int
        tags: list[str] = Field(sa_column=Column(ARRAY(Text)))
        price: float
        publish_date: datetime = Field(sa_column=Column(DateTime(timezone=True)))
        text: str
        text2: str
        text3: str

    return BookRow


class SQLModelAdapter(BackendAdapter):
    name = "sqlmodel"

    def __init__(self, config: BackendConfig):
        super().__init__(config)
        self.model = book_row_model(config.table)
        self._engine = None
        self._session: Session | None = None

    @log_performance(logger, "connect sqlmodel")
    def connect(self) -> None:
        try:
            self._engine = create_engine(self.config.sqlalchemy_url, pool_size=1)
            self._session = Session(self._engine, expire_on_commit=False)
            self._session.connection()
        except SQLAlchemyError as e:
            self.close()
            raise ConnectionSetupError(f"sqlmodel: {e}") from e
        logger.info("Connected to %s:%s/%s", self.config.pg_host, self.config.pg_port, self.config.pg_database)

    def insert_one(self, book: Book) -> Any:
        row = self.model(**book.insert_document())
        self._session.add(row)
        # Flush issues INSERT ... RETURNING id, populating the primary key.
        self._session.commit()
        # The row is not needed again; keep the identity map from growing.
        self._session.expunge(row)
        return row.id

    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        stmt = select(self.model).where(self.model.price > price_greater_than).limit(limit)
        try:
            for row in self._session.exec(stmt):
                yield Book(**row.model_dump())
        finally:
            self._session.expunge_all()

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
