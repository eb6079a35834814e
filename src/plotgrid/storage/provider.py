"""Plot provider shared by every SQL backend.

DataProvider holds all CRUD and allocation logic. Backends differ only in the
QueryExecutor they run statements on and the SQLDialect that renders them.

Read contract:
    get_plot() never waits on storage. On a cache miss it caches and returns
    the empty sentinel, then dispatches the point query; when the row
    arrives the cache is updated. The cache is the channel through which the
    real value becomes visible. fetch_plot() is the awaited variant.

Write contract:
    save_plot() and delete_plot() refresh the cache and return True as soon
    as the statement is submitted. Failures of submitted statements are
    logged, not raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import replace
from functools import partial
from typing import Any

from plotgrid.core.plot import Plot, PlotKey, plot_from_row, plot_params
from plotgrid.core.spiral import Coordinate, find_next_free
from plotgrid.storage import dialect as sql
from plotgrid.storage.cache import PlotCache
from plotgrid.storage.dialect import SQLDialect
from plotgrid.storage.errors import PlotStorageError, ProviderClosedError
from plotgrid.storage.protocol import LevelPredicate, QueryExecutor, Row, all_levels_loaded

logger = logging.getLogger(__name__)


class DataProvider:
    """Cache-fronted plot storage over an async query executor.

    Args:
        executor: Statement runner owning the connection/worker pool.
        dialect: Statement set and parameter binding for the executor's database.
        cache_size: Maximum cached plots (0 disables the cache).
        is_level_loaded: Predicate used to filter owner listings.
        search_limit: Default ring limit for next-free searches (0 = unlimited).
    """

    def __init__(
        self,
        executor: QueryExecutor,
        dialect: SQLDialect,
        cache_size: int = 0,
        is_level_loaded: LevelPredicate | None = None,
        search_limit: int = 0,
    ) -> None:
        self._executor = executor
        self._dialect = dialect
        self._cache = PlotCache(cache_size)
        self._is_level_loaded = is_level_loaded or all_levels_loaded
        self._search_limit = search_limit
        self._tasks: set[asyncio.Task[Any]] = set()
        self._pending_loads: dict[PlotKey, asyncio.Task[Plot]] = {}
        self._claim_lock = asyncio.Lock()
        self._open = False

    @property
    def cache(self) -> PlotCache:
        return self._cache

    @property
    def dialect(self) -> SQLDialect:
        return self._dialect

    @property
    def is_open(self) -> bool:
        return self._open

    # Lifecycle

    async def open(self) -> None:
        """Connect the executor and bootstrap the schema."""
        await self._executor.connect()
        await self._dialect.ensure_schema(self._executor)
        self._open = True
        logger.debug("%s data provider registered", self._dialect.name)

    async def close(self) -> None:
        """Wait for submitted statements, then release the executor.

        Calling close() twice is not supported.
        """
        self._check_open()
        await self.drain()
        self._open = False
        await self._executor.close()
        logger.debug("%s data provider closed", self._dialect.name)

    async def drain(self) -> None:
        """Wait until every statement dispatched so far has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def __aenter__(self) -> DataProvider:
        if not self._open:
            await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _check_open(self) -> None:
        if not self._open:
            raise ProviderClosedError(f"{self._dialect.name} data provider is not open")

    # Statement plumbing

    def _submit(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task[Any]:
        """Dispatch a statement in the background, in call order."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(partial(self._task_done, description))
        return task

    def _task_done(self, description: str, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background %s failed", description, exc_info=exc)

    async def _change(self, statement: str, params: dict[str, Any]) -> int:
        rendered, args = self._dialect.render(statement, params)
        return await self._executor.execute_change(rendered, args)

    async def _insert(self, statement: str, params: dict[str, Any]) -> int | None:
        rendered, args = self._dialect.render(statement, params)
        return await self._executor.execute_insert(rendered, args)

    async def _select(self, statement: str, params: dict[str, Any]) -> list[Row]:
        rendered, args = self._dialect.render(statement, params)
        return await self._executor.execute_select(rendered, args)

    # Writes

    def save_plot(self, plot: Plot) -> bool:
        """Submit an update-by-id (id >= 0) or an upsert by coordinate.

        Returns:
            True once submitted; the outcome is not observed.
        """
        self._check_open()
        self._pending_loads.pop(plot.key, None)
        self._cache.put(plot)
        self._submit(self._persist(plot), f"save of plot {plot.key}")
        return True

    async def _persist(self, plot: Plot) -> Plot:
        params = plot_params(plot)
        if plot.id >= 0:
            await self._change(sql.SAVE_PLOT_BY_ID, params)
            return plot

        new_id = await self._insert(self._dialect.upsert_plot, params)
        if new_id is None:
            return plot
        stored = replace(plot, id=new_id)
        # Only attach the id if nothing replaced the entry in the meantime
        if self._cache.get(*plot.key) == plot:
            self._cache.put(stored)
        return stored

    def delete_plot(self, plot: Plot) -> bool:
        """Submit a delete and cache the empty sentinel for the coordinate."""
        self._check_open()
        if plot.id >= 0:
            statement, params = sql.REMOVE_PLOT_BY_ID, {"id": plot.id}
        else:
            statement = sql.REMOVE_PLOT_BY_XZ
            params = {"level": plot.level_name, "x": plot.x, "z": plot.z}
        self._pending_loads.pop(plot.key, None)
        self._cache.put(Plot.empty(plot.level_name, plot.x, plot.z))
        self._submit(self._change(statement, params), f"delete of plot {plot.key}")
        return True

    # Reads

    def get_plot(self, level_name: str, x: int, z: int) -> Plot:
        """Cache-first read that never waits on storage.

        Returns:
            The cached plot, or on a miss the empty sentinel (also cached)
            while the point query runs in the background.
        """
        cached = self._cache.get(level_name, x, z)
        if cached is not None:
            return cached
        self._check_open()

        placeholder = Plot.empty(level_name, x, z)
        self._cache.put(placeholder)
        self._dispatch_load(level_name, x, z)
        return placeholder

    async def fetch_plot(self, level_name: str, x: int, z: int) -> Plot:
        """Cache-first read that waits for the point query on a miss.

        If a get_plot() load for the coordinate is still in flight, waits for
        that load instead of returning its placeholder.
        """
        key: PlotKey = (level_name, x, z)
        pending = self._pending_loads.get(key)
        if pending is None:
            cached = self._cache.get(level_name, x, z)
            if cached is not None:
                return cached
            self._check_open()
            pending = self._dispatch_load(level_name, x, z)
        resolved = await asyncio.shield(pending)
        return self._cache.get(level_name, x, z) or resolved

    def _dispatch_load(self, level_name: str, x: int, z: int) -> asyncio.Task[Plot]:
        key: PlotKey = (level_name, x, z)
        task = self._submit(self._load_plot(level_name, x, z), f"load of plot {key}")
        self._pending_loads[key] = task
        return task

    async def _load_plot(self, level_name: str, x: int, z: int) -> Plot:
        """Run the point query and publish the result unless a write superseded it."""
        key: PlotKey = (level_name, x, z)
        this_load = asyncio.current_task()
        try:
            rows = await self._select(sql.GET_PLOT, {"level": level_name, "x": x, "z": z})
        finally:
            current = self._pending_loads.get(key)
            if current is this_load:
                del self._pending_loads[key]

        plot = plot_from_row(rows[0], level_name, x, z) if rows else Plot.empty(level_name, x, z)
        if current is this_load:
            self._cache.put(plot)
        return plot

    async def get_plots_by_owner(self, owner: str, level_name: str = "") -> list[Plot]:
        """Owner's plots on currently loaded levels, sorted by level name."""
        self._check_open()
        if level_name:
            rows = await self._select(
                sql.GET_PLOTS_BY_OWNER_AND_LEVEL, {"owner": owner, "level": level_name}
            )
        else:
            rows = await self._select(sql.GET_PLOTS_BY_OWNER, {"owner": owner})

        plots: list[Plot] = []
        for row in rows:
            try:
                plot = plot_from_row(row)
            except ValueError:
                logger.warning("Skipping plot row %r without usable coordinates", row.get("id"))
                continue
            if self._is_level_loaded(plot.level_name):
                plots.append(plot)
        plots.sort(key=lambda plot: plot.level_name)
        return plots

    # Allocation

    async def _occupied_in_ring(self, level_name: str, radius: int) -> set[Coordinate]:
        rows = await self._select(sql.GET_EXISTING_XZ, {"level": level_name, "radius": radius})
        occupied = {(int(row["x"]), int(row["z"])) for row in rows}
        # Claims saved but not yet applied by the store
        return occupied | self._cache.claimed_in_ring(level_name, radius)

    async def get_next_free_plot(
        self, level_name: str, limit_xz: int | None = None
    ) -> Plot | None:
        """First unclaimed cell in spiral order.

        Args:
            level_name: Level to search.
            limit_xz: Number of rings to examine (0 or negative = unlimited,
                None = the provider's search_limit).

        Returns:
            Empty sentinel for the free cell (cached), or None if the ring
            limit is exhausted.
        """
        self._check_open()
        if limit_xz is None:
            limit_xz = self._search_limit
        cell = await find_next_free(partial(self._occupied_in_ring, level_name), limit_xz)
        if cell is None:
            return None
        plot = Plot.empty(level_name, *cell)
        self._cache.put(plot)
        return plot

    async def claim_next_free_plot(
        self, level_name: str, owner: str, limit_xz: int | None = None
    ) -> Plot | None:
        """Find the next free cell and claim it for owner.

        Claims are serialized per provider and each waits for its write, so
        two callers in this process never receive the same cell.

        Raises:
            PlotStorageError: If the claim could not be stored. The cell is
                left free in the cache.
        """
        async with self._claim_lock:
            free = await self.get_next_free_plot(level_name, limit_xz)
            if free is None:
                return None
            claimed = free.with_owner(owner)
            self._pending_loads.pop(claimed.key, None)
            self._cache.put(claimed)
            try:
                return await self._persist(claimed)
            except PlotStorageError:
                if self._cache.get(*claimed.key) == claimed:
                    self._cache.put(free)
                raise
