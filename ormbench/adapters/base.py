from abc import ABC, abstractmethod
from typing import Any, Iterator

from ormbench.config import BackendConfig
from ormbench.models import Book


class BackendAdapter(ABC):
    """
    Insert/select contract implemented once per client library.

    An adapter owns exactly one connection or session, opened by ``connect``
    and held until ``close``. Driver errors from ``insert_one`` and
    ``select_where`` propagate unchanged; a result iterator may end early by
    raising ``EndOfResults``.
    """

    name: str = ""

    def __init__(self, config: BackendConfig):
        self.config = config

    @abstractmethod
    def connect(self) -> None:
        """Open the connection; raise ConnectionSetupError on failure."""

    @abstractmethod
    def insert_one(self, book: Book) -> Any:
        """Insert *book* and return the identifier assigned by the store."""

    @abstractmethod
    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        """Yield at most *limit* books with ``price > price_greater_than``."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Safe to call when not connected."""

    def __enter__(self) -> "BackendAdapter":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
