"""Shared test fixtures."""

import asyncio
import sys
from typing import Any

import pytest
import pytest_asyncio

# Ensure src is in path
sys.path.insert(0, "src")

from plotgrid import EmbeddedSQLProvider, Plot
from plotgrid.storage import SQLiteExecutor, StorageUnavailableError
from plotgrid.storage.postgres import NetworkedSQLProvider


class CountingSQLiteExecutor(SQLiteExecutor):
    """SQLite executor that counts ring occupancy queries."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.ring_queries = 0

    async def execute_select(self, sql, params, on_row=None):
        if "abs(x)" in sql:
            self.ring_queries += 1
        return await super().execute_select(sql, params, on_row)


class FakeExecutor:
    """In-process QueryExecutor recording every statement.

    rows_for(sql, params) supplies SELECT results. select_gate, when set to an
    unset asyncio.Event, holds SELECTs until the test releases it.
    """

    def __init__(self) -> None:
        self.statements: list[tuple[str, str, Any]] = []
        self.rows_for = lambda sql, params: []
        self.next_id = 1
        self.fail_writes = False
        self.fail_reads = False
        self.select_gate: asyncio.Event | None = None
        self.connected = False
        self.closed = False

    def of_kind(self, kind: str) -> list[tuple[str, Any]]:
        return [(sql, params) for k, sql, params in self.statements if k == kind]

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.closed = True

    async def execute_generic(self, sql):
        self.statements.append(("generic", sql, None))

    async def execute_change(self, sql, params):
        self.statements.append(("change", sql, params))
        if self.fail_writes:
            raise StorageUnavailableError("writes are failing")
        return 1

    async def execute_insert(self, sql, params):
        self.statements.append(("insert", sql, params))
        if self.fail_writes:
            raise StorageUnavailableError("writes are failing")
        new_id = self.next_id
        self.next_id += 1
        return new_id

    async def execute_select(self, sql, params, on_row=None):
        self.statements.append(("select", sql, params))
        if self.select_gate is not None:
            await self.select_gate.wait()
        if self.fail_reads:
            raise StorageUnavailableError("reads are failing")
        rows = list(self.rows_for(sql, params))
        for row in rows:
            if on_row is not None:
                on_row(row)
        return rows


@pytest.fixture
def db_path(tmp_path) -> str:
    """Fresh SQLite file path."""
    return str(tmp_path / "plots.db")


@pytest_asyncio.fixture
async def provider(db_path):
    """Open SQLite provider with a cache large enough for every test."""
    provider = await EmbeddedSQLProvider.create(db_path, cache_size=128)
    yield provider
    if provider.is_open:
        await provider.close()


@pytest_asyncio.fixture
async def counting_provider(db_path):
    """SQLite provider whose executor counts ring occupancy queries."""
    executor = CountingSQLiteExecutor(db_path)
    provider = EmbeddedSQLProvider(db_path, cache_size=128, executor=executor)
    await provider.open()
    yield provider, executor
    if provider.is_open:
        await provider.close()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest_asyncio.fixture
async def fake_provider(fake_executor):
    """PostgreSQL-dialect provider running on the recording executor."""
    provider = NetworkedSQLProvider(executor=fake_executor, cache_size=64)
    await provider.open()
    yield provider
    if provider.is_open:
        await provider.close()


@pytest.fixture
def claimed():
    """Factory for claimed plots."""

    def make(x: int, z: int, level: str = "world", owner: str = "Alice", **kwargs: Any) -> Plot:
        return Plot(level, x, z, owner=owner, **kwargs)

    return make
