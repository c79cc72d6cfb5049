"""
Integration tests running both workloads against live PostgreSQL and MongoDB.

Connection settings come from the usual ORMBENCH_* variables; backends whose
server is unreachable are skipped.
"""

import psycopg
import pytest
from psycopg import sql

from ormbench.adapters import backend_names, get_adapter
from ormbench.config import BackendConfig, WorkloadConfig
from ormbench.errors import ConnectionSetupError
from ormbench.generator import RecordGenerator
from ormbench.runner import BenchmarkRunner

pytestmark = pytest.mark.integration

BOOKS_DDL = sql.SQL(
    """
    create table if not exists {table} (
        id serial primary key,
        title text,
        author_id integer,
        tags text[],
        price double precision,
        publish_date timestamptz,
        text text,
        text2 text,
        text3 text
    )
    """
)


@pytest.fixture(scope="module")
def config():
    return BackendConfig.from_env()


@pytest.fixture(scope="module", autouse=True)
def books_table(config):
    try:
        conn = psycopg.connect(config.postgres_dsn, autocommit=True)
    except psycopg.OperationalError:
        yield
        return
    with conn:
        conn.execute(BOOKS_DDL.format(table=sql.Identifier(config.table)))
        yield
        conn.execute(sql.SQL("truncate {table}").format(table=sql.Identifier(config.table)))


@pytest.mark.parametrize("name", backend_names())
class TestBackendWorkloads:
    """Each backend inserts then reads back a small workload."""

    def test_insert_then_select(self, name, config):
        adapter = get_adapter(name, config)
        try:
            adapter.connect()
        except ConnectionSetupError as e:
            pytest.skip(f"{name} unavailable: {e}")

        runner = BenchmarkRunner(
            workload=WorkloadConfig(total_count=20, batch_size=10, select_count=3, price_threshold=0.0),
            generator=RecordGenerator(seed=7),
        )
        try:
            inserted = runner.run_insert(adapter)
            selected = runner.run_select(adapter)
        finally:
            adapter.close()

        assert inserted.operations == 21
        assert len(inserted.batches) == 2
        assert 0 < selected.rows_found <= 3 * 100
