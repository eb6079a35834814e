"""Storage protocols for swappable backends.

Two seams:
- QueryExecutor: runs parameterized SQL on a bounded worker pool
- PlotProvider: the plot CRUD and search surface callers depend on

Usage:
    provider = await EmbeddedSQLProvider.create("plots.db")
    plot = provider.get_plot("world", 0, 0)
    free = await provider.get_next_free_plot("world")
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from plotgrid.core.plot import Plot

Row = dict[str, Any]
"""Result row with lower-case column names."""

RowCallback = Callable[[Row], None]

LevelPredicate = Callable[[str], bool]
"""Returns True when a level is currently loaded."""


def all_levels_loaded(level_name: str) -> bool:
    """Default level predicate: every level counts as loaded."""
    return True


@runtime_checkable
class QueryExecutor(Protocol):
    """Async statement runner with a fixed number of workers.

    Statements are dispatched in call order; with more than one worker their
    completion order is not guaranteed. Driver failures surface as
    StorageUnavailableError.
    """

    async def connect(self) -> None:
        """Open the underlying connections."""
        ...

    async def close(self) -> None:
        """Release the underlying connections."""
        ...

    async def execute_generic(self, sql: str) -> None:
        """Run a statement without parameters (DDL)."""
        ...

    async def execute_change(self, sql: str, params: Any) -> int:
        """Run an UPDATE/DELETE. Returns the affected row count."""
        ...

    async def execute_insert(self, sql: str, params: Any) -> int | None:
        """Run an INSERT. Returns the new row id when the driver reports one."""
        ...

    async def execute_select(
        self, sql: str, params: Any, on_row: RowCallback | None = None
    ) -> list[Row]:
        """Run a SELECT, calling on_row for each row as it arrives."""
        ...


@runtime_checkable
class PlotProvider(Protocol):
    """Plot persistence and allocation surface shared by every backend."""

    def save_plot(self, plot: Plot) -> bool:
        """Submit a write. True once submitted."""
        ...

    def delete_plot(self, plot: Plot) -> bool:
        """Submit a delete and cache the empty sentinel. True once submitted."""
        ...

    def get_plot(self, level_name: str, x: int, z: int) -> Plot:
        """Cache-first read that never waits on storage."""
        ...

    async def fetch_plot(self, level_name: str, x: int, z: int) -> Plot:
        """Cache-first read that waits for the point query on a miss."""
        ...

    async def get_plots_by_owner(self, owner: str, level_name: str = "") -> list[Plot]:
        """Owner's plots on loaded levels, sorted by level name."""
        ...

    async def get_next_free_plot(
        self, level_name: str, limit_xz: int | None = None
    ) -> Plot | None:
        """First unclaimed cell in spiral order, or None past the ring limit."""
        ...

    async def claim_next_free_plot(
        self, level_name: str, owner: str, limit_xz: int | None = None
    ) -> Plot | None:
        """Claim the next free cell for owner, waiting for the write."""
        ...

    async def drain(self) -> None:
        """Wait for every submitted statement."""
        ...

    async def close(self) -> None:
        """Release the backend. Not idempotent."""
        ...
