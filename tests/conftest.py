"""
Test configuration and fixtures for the ormbench test suite.
Provides in-memory fake adapters, deterministic clocks and record factories so
that the harness can be exercised without a database.
"""

from datetime import datetime, timezone
from typing import Any, Iterator

import pytest

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig, WorkloadConfig
from ormbench.errors import EndOfResults
from ormbench.generator import RecordGenerator
from ormbench.metrics import MetricsReporter
from ormbench.models import Book
from ormbench.runner import BenchmarkRunner


def make_book(**overrides: Any) -> Book:
    values = dict(
        title="Quis Nostrum",
        author_id=1,
        tags=["alias"] * 10,
        price=0.95,
        publish_date=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        text="dolor " * 10,
        text2="dolor " * 20,
        text3="dolor " * 30,
    )
    values.update(overrides)
    return Book(**values)


class FakeClock:
    """Advances by a fixed step on every reading."""

    def __init__(self, step: float = 0.5):
        self.step = step
        self.now = 0.0
        self.readings = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.readings += 1
        return value


class FakeAdapter(BackendAdapter):
    """
    In-memory adapter recording every call.

    Inserts return sequential identifiers 1..N. Each select yields up to
    ``rows_per_select`` rows; once ``total_rows`` (if set) is used up the
    iterator raises EndOfResults.
    """

    name = "fake"

    def __init__(
        self,
        config: BackendConfig | None = None,
        fail_insert_on: int | None = None,
        fail_select_on: int | None = None,
        rows_per_select: int = 100,
        total_rows: int | None = None,
        identifiers: list[Any] | None = None,
    ):
        super().__init__(config or BackendConfig())
        self.fail_insert_on = fail_insert_on
        self.fail_select_on = fail_select_on
        self.rows_per_select = rows_per_select
        self.remaining_rows = total_rows
        self.identifiers = identifiers
        self.insert_calls = 0
        self.select_calls = 0
        self.inserted: list[Book] = []
        self.connected = False
        self.closed = False

    def connect(self) -> None:
        self.connected = True

    def insert_one(self, book: Book) -> Any:
        self.insert_calls += 1
        if self.fail_insert_on is not None and self.insert_calls == self.fail_insert_on:
            raise RuntimeError("duplicate key value violates unique constraint")
        self.inserted.append(book)
        if self.identifiers is not None:
            return self.identifiers[self.insert_calls - 1]
        return self.insert_calls

    def select_where(self, price_greater_than: float, limit: int) -> Iterator[Book]:
        self.select_calls += 1
        if self.fail_select_on is not None and self.select_calls == self.fail_select_on:
            raise RuntimeError("canceling statement due to statement timeout")
        return self._rows(price_greater_than)

    def _rows(self, price_greater_than: float) -> Iterator[Book]:
        for i in range(self.rows_per_select):
            if self.remaining_rows is not None:
                if self.remaining_rows == 0:
                    raise EndOfResults()
                self.remaining_rows -= 1
            yield make_book(id=i + 1, price=min(price_greater_than + 0.01, 0.999))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def backend_config() -> BackendConfig:
    return BackendConfig()


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def generator() -> RecordGenerator:
    return RecordGenerator(seed=1234)


@pytest.fixture
def make_runner(generator, fake_clock):
    """Build a runner for the given workload sizes with a deterministic clock."""

    def _make(**workload: Any) -> BenchmarkRunner:
        return BenchmarkRunner(
            workload=WorkloadConfig(**workload),
            generator=generator,
            reporter=MetricsReporter(),
            clock=fake_clock,
        )

    return _make
