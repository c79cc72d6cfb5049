"""
Connection and workload settings.

Connection parameters are read from ``ORMBENCH_*`` environment variables so
that the same benchmark can be pointed at different servers without code
changes. Workload sizes default to the historical run shape.
"""

import os

from pydantic import BaseModel, Field
from sqlalchemy.engine import URL

DEFAULT_TOTAL_COUNT = 100_000
DEFAULT_BATCH_SIZE = 10_000
DEFAULT_SELECT_COUNT = 5_000
DEFAULT_PRICE_THRESHOLD = 0.9
DEFAULT_SELECT_LIMIT = 100

ENV_PREFIX = "ORMBENCH_"


class BackendConfig(BaseModel):
    """Connection parameters shared by every adapter."""

    pg_host: str = "localhost"
    pg_port: int = Field(default=5432, ge=1, le=65535)
    pg_user: str = "postgres"
    pg_password: str = ""
    pg_database: str = "booktown"
    pg_sslmode: str = "prefer"
    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "booktown"
    table: str = "books"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "BackendConfig":
        """Build a config from ``ORMBENCH_<FIELD>`` variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        return cls.model_validate(values)

    @property
    def postgres_dsn(self) -> str:
        """libpq-style URL understood by both psycopg and asyncpg."""
        return self.sqlalchemy_url.set(drivername="postgresql").render_as_string(hide_password=False)

    @property
    def sqlalchemy_url(self) -> URL:
        return URL.create(
            "postgresql+psycopg",
            username=self.pg_user,
            password=self.pg_password or None,
            host=self.pg_host,
            port=self.pg_port,
            database=self.pg_database,
            query={"sslmode": self.pg_sslmode},
        )


class WorkloadConfig(BaseModel):
    """Fixed sizes of the insert and select workloads."""

    total_count: int = Field(default=DEFAULT_TOTAL_COUNT, ge=0)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    select_count: int = Field(default=DEFAULT_SELECT_COUNT, ge=0)
    price_threshold: float = DEFAULT_PRICE_THRESHOLD
    select_limit: int = Field(default=DEFAULT_SELECT_LIMIT, ge=1)

    @property
    def iteration_count(self) -> int:
        # Inserts run 0..total_count inclusive, one more than total_count.
        return self.total_count + 1 if self.total_count > 0 else 0
