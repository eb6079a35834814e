"""Storage backends."""

from plotgrid.storage.cache import PlotCache
from plotgrid.storage.dialect import PostgresDialect, SQLDialect, SQLiteDialect
from plotgrid.storage.errors import (
    PlotStorageError,
    ProviderClosedError,
    StorageUnavailableError,
)
from plotgrid.storage.factory import build_provider, create_provider
from plotgrid.storage.postgres import AsyncpgExecutor, NetworkedSQLProvider
from plotgrid.storage.protocol import (
    LevelPredicate,
    PlotProvider,
    QueryExecutor,
    all_levels_loaded,
)
from plotgrid.storage.provider import DataProvider
from plotgrid.storage.sqlite import EmbeddedSQLProvider, SQLiteExecutor

__all__ = [
    "PlotProvider",
    "QueryExecutor",
    "LevelPredicate",
    "all_levels_loaded",
    "PlotCache",
    "SQLDialect",
    "SQLiteDialect",
    "PostgresDialect",
    "DataProvider",
    "EmbeddedSQLProvider",
    "SQLiteExecutor",
    "NetworkedSQLProvider",
    "AsyncpgExecutor",
    "build_provider",
    "create_provider",
    "PlotStorageError",
    "StorageUnavailableError",
    "ProviderClosedError",
]
