"""Backend registry: maps a backend name to the adapter class that implements it.

Adapter modules are imported on demand so that resolving one backend never
imports the client libraries of the others.
"""

import importlib

from ormbench.adapters.base import BackendAdapter
from ormbench.config import BackendConfig
from ormbench.errors import UnknownBackendError

BACKENDS: dict[str, str] = {
    "sqlalchemy": "ormbench.adapters.sqlalchemy_core:SQLAlchemyCoreAdapter",
    "asyncpg": "ormbench.adapters.asyncpg_driver:AsyncpgAdapter",
    "psycopg": "ormbench.adapters.psycopg_driver:PsycopgAdapter",
    "sqlmodel": "ormbench.adapters.sqlmodel_orm:SQLModelAdapter",
    "pymongo": "ormbench.adapters.pymongo_store:PymongoAdapter",
}


def backend_names() -> list[str]:
    return sorted(BACKENDS)


def get_adapter_class(name: str) -> type[BackendAdapter]:
    try:
        target = BACKENDS[name]
    except KeyError:
        raise UnknownBackendError(name, backend_names()) from None
    module_name, cls_name = target.split(":")
    module = importlib.import_module(module_name)
    return getattr(module, cls_name)


def get_adapter(name: str, config: BackendConfig) -> BackendAdapter:
    """Construct the (not yet connected) adapter registered as *name*."""
    return get_adapter_class(name)(config)


__all__ = [
    "BACKENDS",
    "BackendAdapter",
    "backend_names",
    "get_adapter",
    "get_adapter_class",
]
