"""Embedded SQLite backend.

Statements run on a fixed pool of aiosqlite connections; each connection
owns its own worker thread, so the pool size is the worker limit.

Usage:
    provider = await EmbeddedSQLProvider.create("plots.db", cache_size=256)
    provider.save_plot(Plot("world", 0, 0, owner="Alice"))
    await provider.close()
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import aiosqlite

from plotgrid.storage.dialect import SQLiteDialect
from plotgrid.storage.errors import ProviderClosedError, StorageUnavailableError
from plotgrid.storage.protocol import LevelPredicate, QueryExecutor, Row, RowCallback
from plotgrid.storage.provider import DataProvider
from plotgrid.storage.retry import connect_with_retry

if TYPE_CHECKING:
    from plotgrid.config import PlotStoreSettings, SQLiteSettings


class SQLiteExecutor:
    """QueryExecutor over a queue of aiosqlite connections.

    Args:
        path: Database file (":memory:" gives every worker a private database).
        worker_limit: Number of connections, i.e. concurrent statements.
        connect_attempts: Connection attempts before giving up.
        connect_backoff: Base delay in seconds between attempts.
    """

    def __init__(
        self,
        path: str = "plots.db",
        worker_limit: int = 2,
        connect_attempts: int = 1,
        connect_backoff: float = 0.0,
    ):
        if worker_limit < 1:
            raise ValueError(f"worker_limit must be >= 1, got {worker_limit}")
        self._path = path
        self._worker_limit = worker_limit
        self._connect_attempts = connect_attempts
        self._connect_backoff = connect_backoff
        self._idle: asyncio.Queue[aiosqlite.Connection] | None = None
        self._connections: list[aiosqlite.Connection] = []

    @property
    def path(self) -> str:
        return self._path

    async def connect(self) -> None:
        await connect_with_retry(
            self._open_connections,
            attempts=self._connect_attempts,
            backoff=self._connect_backoff,
            retry_on=(sqlite3.Error, OSError),
            target=f"sqlite database {self._path!r}",
        )

    async def _open_connections(self) -> None:
        idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        connections: list[aiosqlite.Connection] = []
        try:
            for _ in range(self._worker_limit):
                conn = await aiosqlite.connect(self._path)
                conn.row_factory = aiosqlite.Row
                connections.append(conn)
                idle.put_nowait(conn)
        except BaseException:
            for conn in connections:
                await conn.close()
            raise
        self._connections = connections
        self._idle = idle

    async def close(self) -> None:
        connections, self._connections = self._connections, []
        self._idle = None
        for conn in connections:
            await conn.close()

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Check out a connection; waiters are served in call order."""
        if self._idle is None:
            raise ProviderClosedError("sqlite executor is not connected")
        idle = self._idle
        conn = await idle.get()
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"sqlite statement failed: {e}") from e
        finally:
            idle.put_nowait(conn)

    async def execute_generic(self, sql: str) -> None:
        async with self._connection() as conn:
            await conn.execute(sql)
            await conn.commit()

    async def execute_change(self, sql: str, params: Any) -> int:
        async with self._connection() as conn:
            cursor = await conn.execute(sql, params)
            await conn.commit()
            return cursor.rowcount

    async def execute_insert(self, sql: str, params: Any) -> int | None:
        async with self._connection() as conn:
            cursor = await conn.execute(sql, params)
            await conn.commit()
            return cursor.lastrowid

    async def execute_select(
        self, sql: str, params: Any, on_row: RowCallback | None = None
    ) -> list[Row]:
        rows: list[Row] = []
        async with self._connection() as conn:
            async with conn.execute(sql, params) as cursor:
                async for raw in cursor:
                    row = {key.lower(): raw[key] for key in raw.keys()}
                    if on_row is not None:
                        on_row(row)
                    rows.append(row)
        return rows


class EmbeddedSQLProvider(DataProvider):
    """Plot provider backed by a local SQLite file.

    Args:
        path: Database file.
        cache_size: Maximum cached plots (0 disables the cache).
        is_level_loaded: Predicate used to filter owner listings.
        worker_limit: Concurrent statements.
        search_limit: Default ring limit for next-free searches (0 = unlimited).
        executor: Replacement executor (tests, custom pools).
    """

    def __init__(
        self,
        path: str = "plots.db",
        cache_size: int = 0,
        is_level_loaded: LevelPredicate | None = None,
        worker_limit: int = 2,
        search_limit: int = 0,
        executor: QueryExecutor | None = None,
    ) -> None:
        super().__init__(
            executor or SQLiteExecutor(path, worker_limit=worker_limit),
            SQLiteDialect(),
            cache_size=cache_size,
            is_level_loaded=is_level_loaded,
            search_limit=search_limit,
        )

    @classmethod
    def from_settings(
        cls,
        store: PlotStoreSettings,
        sqlite: SQLiteSettings,
        is_level_loaded: LevelPredicate | None = None,
    ) -> EmbeddedSQLProvider:
        executor = SQLiteExecutor(
            sqlite.file,
            worker_limit=store.worker_limit,
            connect_attempts=store.connect_attempts,
            connect_backoff=store.connect_backoff,
        )
        return cls(
            sqlite.file,
            cache_size=store.cache_size,
            is_level_loaded=is_level_loaded,
            search_limit=store.search_limit,
            executor=executor,
        )

    @classmethod
    async def create(cls, path: str = "plots.db", **kwargs: Any) -> EmbeddedSQLProvider:
        """Construct and open a provider."""
        provider = cls(path, **kwargs)
        await provider.open()
        return provider
