"""pymongo adapter: documents in a ``books`` collection."""

from typing import Any, Iterator

import pymongo
from pymongo.errors import PyMongoError

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig
from ormbench.errors import ConnectionSetupError
from ormbench.logging_config import get_logger, log_performance
from ormbench.models import Book

logger = get_logger(__name__)


def document_to_book(doc: dict[str, Any]) -> Book:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Book(**doc)


class PymongoAdapter(BackendAdapter):
    name = "pymongo"

    def __init__(self, config: BackendConfig):
        super().__init__(config)
        self._client: pymongo.MongoClient | None = None
        self._books = None

    @log_performance(logger, "connect pymongo")
    def connect(self) -> None:
        try:
            self._client = pymongo.MongoClient(self.config.mongo_url, tz_aware=True)
            # MongoClient connects lazily; ping so setup failures surface here.
            self._client.admin.command("ping")
        except PyMongoError as e:
            self.close()
            raise ConnectionSetupError(f"pymongo: {e}") from e
        self._books = self._client[self.config.mongo_database][self.config.table]
        logger.info("Connected to %s/%s", self.config.mongo_url, self.config.mongo_database)

    def insert_one(self, book: Book) -> Any:
        # insert_one adds _id to the mapping it is given, never to the Book.
        return self._books.insert_one(book.insert_document()).inserted_id

    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        cursor = self._books.find({"price": {"$gt": price_greater_than}}, limit=limit)
        try:
            for doc in cursor:
                yield document_to_book(doc)
        finally:
            cursor.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._books = None
