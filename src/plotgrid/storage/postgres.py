"""Networked PostgreSQL backend.

Statements run on an asyncpg pool whose max_size is the worker limit.

Usage:
    provider = await NetworkedSQLProvider.create(dsn="postgresql://user@db/plots")
    free = await provider.get_next_free_plot("world")
    await provider.close()
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import asyncpg

from plotgrid.storage.dialect import PostgresDialect
from plotgrid.storage.errors import ProviderClosedError, StorageUnavailableError
from plotgrid.storage.protocol import LevelPredicate, QueryExecutor, Row, RowCallback
from plotgrid.storage.provider import DataProvider
from plotgrid.storage.retry import connect_with_retry

if TYPE_CHECKING:
    from plotgrid.config import PlotStoreSettings, PostgresSettings

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _affected_rows(status: str) -> int:
    """Row count from a command status such as 'DELETE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, IndexError):
        return 0


class AsyncpgExecutor:
    """QueryExecutor over an asyncpg connection pool.

    Args:
        dsn: Connection URI; when given, host/port/user/password/database are ignored.
        worker_limit: Pool size, i.e. concurrent statements.
        connect_attempts: Connection attempts before giving up.
        connect_backoff: Base delay in seconds between attempts.
        **connect_kwargs: host, port, user, password, database.
    """

    def __init__(
        self,
        dsn: str | None = None,
        worker_limit: int = 2,
        connect_attempts: int = 1,
        connect_backoff: float = 0.0,
        **connect_kwargs: Any,
    ):
        if worker_limit < 1:
            raise ValueError(f"worker_limit must be >= 1, got {worker_limit}")
        self._dsn = dsn
        self._worker_limit = worker_limit
        self._connect_attempts = connect_attempts
        self._connect_backoff = connect_backoff
        self._connect_kwargs = {k: v for k, v in connect_kwargs.items() if v is not None}
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        await connect_with_retry(
            self._create_pool,
            attempts=self._connect_attempts,
            backoff=self._connect_backoff,
            retry_on=_DRIVER_ERRORS,
            target="postgres server",
        )

    async def _create_pool(self) -> None:
        if self._dsn:
            kwargs: dict[str, Any] = {"dsn": self._dsn}
        else:
            kwargs = dict(self._connect_kwargs)
        self._pool = await asyncpg.create_pool(min_size=1, max_size=self._worker_limit, **kwargs)

    async def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise ProviderClosedError("postgres executor is not connected")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except _DRIVER_ERRORS as e:
            raise StorageUnavailableError(f"postgres statement failed: {e}") from e

    async def execute_generic(self, sql: str) -> None:
        async with self._connection() as conn:
            await conn.execute(sql)

    async def execute_change(self, sql: str, params: Any) -> int:
        async with self._connection() as conn:
            status = await conn.execute(sql, *params)
        return _affected_rows(status)

    async def execute_insert(self, sql: str, params: Any) -> int | None:
        async with self._connection() as conn:
            # Upserts end in RETURNING id
            return await conn.fetchval(sql, *params)

    async def execute_select(
        self, sql: str, params: Any, on_row: RowCallback | None = None
    ) -> list[Row]:
        rows: list[Row] = []
        async with self._connection() as conn:
            for record in await conn.fetch(sql, *params):
                row = {key.lower(): value for key, value in record.items()}
                if on_row is not None:
                    on_row(row)
                rows.append(row)
        return rows


class NetworkedSQLProvider(DataProvider):
    """Plot provider backed by a PostgreSQL server.

    Args:
        dsn: Connection URI.
        cache_size: Maximum cached plots (0 disables the cache).
        is_level_loaded: Predicate used to filter owner listings.
        worker_limit: Concurrent statements.
        search_limit: Default ring limit for next-free searches (0 = unlimited).
        executor: Replacement executor (tests, custom pools).
        **connect_kwargs: host, port, user, password, database when no dsn is given.
    """

    def __init__(
        self,
        dsn: str | None = None,
        cache_size: int = 0,
        is_level_loaded: LevelPredicate | None = None,
        worker_limit: int = 2,
        search_limit: int = 0,
        executor: QueryExecutor | None = None,
        **connect_kwargs: Any,
    ) -> None:
        super().__init__(
            executor or AsyncpgExecutor(dsn, worker_limit=worker_limit, **connect_kwargs),
            PostgresDialect(),
            cache_size=cache_size,
            is_level_loaded=is_level_loaded,
            search_limit=search_limit,
        )

    @classmethod
    def from_settings(
        cls,
        store: PlotStoreSettings,
        postgres: PostgresSettings,
        is_level_loaded: LevelPredicate | None = None,
    ) -> NetworkedSQLProvider:
        executor = AsyncpgExecutor(
            postgres.dsn,
            worker_limit=store.worker_limit,
            connect_attempts=store.connect_attempts,
            connect_backoff=store.connect_backoff,
            host=postgres.host,
            port=postgres.port,
            user=postgres.user,
            password=postgres.password.get_secret_value() if postgres.password else None,
            database=postgres.database,
        )
        return cls(
            postgres.dsn,
            cache_size=store.cache_size,
            is_level_loaded=is_level_loaded,
            search_limit=store.search_limit,
            executor=executor,
        )

    @classmethod
    async def create(cls, dsn: str | None = None, **kwargs: Any) -> NetworkedSQLProvider:
        """Construct and open a provider."""
        provider = cls(dsn, **kwargs)
        await provider.open()
        return provider
