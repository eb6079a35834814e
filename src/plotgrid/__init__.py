"""plotgrid: plot persistence and allocation on an infinite 2D grid.

Usage:
    from plotgrid import EmbeddedSQLProvider, Plot

    provider = await EmbeddedSQLProvider.create("plots.db", cache_size=256)

    free = await provider.get_next_free_plot("world")
    provider.save_plot(free.with_owner("Alice"))

    plot = provider.get_plot("world", free.x, free.z)  # cache-first, never waits
    mine = await provider.get_plots_by_owner("Alice")

    await provider.close()
"""

__version__ = "0.1.0"

# Core primitives
from plotgrid.core import (
    Plot,
    PlotKey,
    find_free_in_ring,
    find_next_free,
    iter_ring,
    ring_candidates,
    ring_size,
)

# Storage
from plotgrid.storage import (
    DataProvider,
    EmbeddedSQLProvider,
    NetworkedSQLProvider,
    PlotCache,
    PlotProvider,
    PlotStorageError,
    ProviderClosedError,
    QueryExecutor,
    StorageUnavailableError,
    create_provider,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Plot",
    "PlotKey",
    "ring_size",
    "ring_candidates",
    "iter_ring",
    "find_free_in_ring",
    "find_next_free",
    # Storage
    "PlotProvider",
    "QueryExecutor",
    "PlotCache",
    "DataProvider",
    "EmbeddedSQLProvider",
    "NetworkedSQLProvider",
    "create_provider",
    # Errors
    "PlotStorageError",
    "StorageUnavailableError",
    "ProviderClosedError",
]
