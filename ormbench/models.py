from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Column order used by every SQL backend for inserts.
INSERT_COLUMNS = (
    "title",
    "author_id",
    "tags",
    "price",
    "publish_date",
    "text",
    "text2",
    "text3",
)


class Book(BaseModel):
    """
    The synthetic record written and read by every backend.

    ``id`` is assigned by the store and is never part of an insert.

    Freezing only blocks attribute assignment; ``tags`` is still a mutable
    list. Adapters must not change a record in place: ``insert_document``
    hands out a copy of the tags for drivers that mutate their input.
    """

    model_config = ConfigDict(frozen=True)

    id: int | str | None = None
    title: str
    author_id: int
    tags: list[str]
    price: float
    publish_date: datetime
    text: str
    text2: str
    text3: str

    def insert_values(self) -> tuple[Any, ...]:
        """Positional parameters in ``INSERT_COLUMNS`` order."""
        return tuple(getattr(self, column) for column in INSERT_COLUMNS)

    def insert_document(self) -> dict[str, Any]:
        """A fresh mapping of the insertable fields; callers may mutate it."""
        return {column: getattr(self, column) for column in INSERT_COLUMNS} | {"tags": list(self.tags)}


class BatchProgress(BaseModel):
    """One progress measurement of an insert workload."""

    index: int = Field(description="Loop counter at which the batch closed.")
    size: int
    elapsed: float = Field(description="Seconds since the previous measurement.")
    last_id: str | None = None


class BenchmarkSample(BaseModel):
    """Summary of one workload run."""

    backend: str
    mode: str
    operations: int = 0
    elapsed: float = 0.0
    rows_found: int | None = None
    batches: list[BatchProgress] = []
