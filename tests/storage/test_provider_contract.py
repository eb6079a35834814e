"""Contract tests for DataProvider on a recording executor.

Runs the PostgreSQL variant without a server: the fake executor records the
rendered statements and lets tests control when SELECTs resolve.

Critical Invariants:
- Writes report success on submission; failures are logged, not raised
- A point query resolving after a newer write never overwrites the cache
- Awaited reads surface StorageUnavailableError
"""

import asyncio
import logging

import pytest

from plotgrid import Plot
from plotgrid.storage import StorageUnavailableError
from plotgrid.storage.dialect import PostgresDialect


def alice_row(**overrides):
    row = {
        "id": 11,
        "name": "home",
        "owner": "Alice",
        "helpers": "Bob",
        "denied": "",
        "biome": "",
        "pvp": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_open_bootstraps_schema(fake_provider, fake_executor) -> None:
    assert fake_executor.connected
    assert len(fake_executor.of_kind("generic")) == 3


@pytest.mark.asyncio
async def test_close_drains_then_releases(fake_provider, fake_executor) -> None:
    fake_provider.save_plot(Plot("world", 0, 0, owner="Alice"))

    await fake_provider.close()

    assert fake_executor.closed
    assert len(fake_executor.of_kind("insert")) == 1


@pytest.mark.asyncio
async def test_new_plot_is_upserted_with_positional_args(fake_provider, fake_executor) -> None:
    fake_provider.save_plot(Plot("world", 1, 2, owner="Alice", helpers=("a", "b"), pvp=True))
    await fake_provider.drain()

    [(statement, args)] = fake_executor.of_kind("insert")
    assert statement.startswith("INSERT INTO plots")
    assert "$9" in statement
    assert args == ("world", 1, 2, "", "Alice", "a,b", "", "", 1)
    assert fake_provider.get_plot("world", 1, 2).id == 1


@pytest.mark.asyncio
async def test_persisted_plot_is_updated_by_id(fake_provider, fake_executor) -> None:
    fake_provider.save_plot(Plot("world", 1, 2, owner="Alice", denied=("Eve",), id=7))
    await fake_provider.drain()

    [(statement, args)] = fake_executor.of_kind("change")
    assert statement.startswith("UPDATE plots SET")
    assert args == ("", "Alice", "", "Eve", "", None, 7)


@pytest.mark.asyncio
async def test_delete_statement_depends_on_id(fake_provider, fake_executor) -> None:
    fake_provider.delete_plot(Plot("world", 1, 2, owner="Alice", id=7))
    fake_provider.delete_plot(Plot("world", 3, 4, owner="Alice"))
    await fake_provider.drain()

    by_id, by_xz = fake_executor.of_kind("change")
    assert by_id == ("DELETE FROM plots WHERE id = $1", (7,))
    assert by_xz[1] == ("world", 3, 4)
    assert fake_provider.get_plot("world", 3, 4).is_empty


@pytest.mark.asyncio
async def test_write_failure_is_logged_not_raised(fake_provider, fake_executor, caplog) -> None:
    caplog.set_level(logging.ERROR, logger="plotgrid.storage.provider")
    fake_executor.fail_writes = True

    assert fake_provider.save_plot(Plot("world", 0, 0, owner="Alice")) is True
    assert fake_provider.delete_plot(Plot("world", 0, 1, owner="Alice")) is True
    await fake_provider.drain()

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Background save") for message in messages)
    assert any(message.startswith("Background delete") for message in messages)


@pytest.mark.asyncio
async def test_get_plot_resolves_through_cache(fake_provider, fake_executor) -> None:
    fake_executor.rows_for = lambda statement, args: [alice_row()]

    assert fake_provider.get_plot("world", 5, 5).is_empty
    await fake_provider.drain()

    plot = fake_provider.get_plot("world", 5, 5)
    assert plot == Plot("world", 5, 5, name="home", owner="Alice", helpers=("Bob",), id=11)
    assert len(fake_executor.of_kind("select")) == 1


@pytest.mark.asyncio
async def test_cache_hit_skips_storage(fake_provider, fake_executor) -> None:
    fake_provider.save_plot(Plot("world", 5, 5, owner="Alice"))

    fake_provider.get_plot("world", 5, 5)
    await fake_provider.fetch_plot("world", 5, 5)

    assert fake_executor.of_kind("select") == []


@pytest.mark.asyncio
async def test_late_load_does_not_overwrite_newer_write(fake_provider, fake_executor) -> None:
    """A point query resolving after a save must not resurrect the old row."""
    fake_executor.rows_for = lambda statement, args: [alice_row()]
    fake_executor.select_gate = asyncio.Event()

    fake_provider.get_plot("world", 5, 5)
    await asyncio.sleep(0)
    fake_provider.save_plot(Plot("world", 5, 5, owner="Bob"))
    fake_executor.select_gate.set()
    await fake_provider.drain()

    assert fake_provider.get_plot("world", 5, 5).owner == "Bob"


@pytest.mark.asyncio
async def test_late_load_does_not_undo_delete(fake_provider, fake_executor) -> None:
    fake_executor.rows_for = lambda statement, args: [alice_row()]
    fake_executor.select_gate = asyncio.Event()

    fake_provider.get_plot("world", 5, 5)
    await asyncio.sleep(0)
    fake_provider.delete_plot(Plot("world", 5, 5))
    fake_executor.select_gate.set()
    await fake_provider.drain()

    assert fake_provider.get_plot("world", 5, 5).is_empty


@pytest.mark.asyncio
async def test_loads_may_complete_out_of_order(fake_provider, fake_executor) -> None:
    """Each load publishes its own coordinate regardless of completion order."""
    fake_executor.rows_for = lambda statement, args: [alice_row(name=f"{args[1]}:{args[2]}")]

    fake_provider.get_plot("world", 1, 1)
    fake_provider.get_plot("world", 2, 2)
    await fake_provider.drain()

    assert fake_provider.get_plot("world", 1, 1).name == "1:1"
    assert fake_provider.get_plot("world", 2, 2).name == "2:2"


@pytest.mark.asyncio
async def test_fetch_plot_propagates_storage_failure(fake_provider, fake_executor) -> None:
    fake_executor.fail_reads = True

    with pytest.raises(StorageUnavailableError):
        await fake_provider.fetch_plot("world", 0, 0)


@pytest.mark.asyncio
async def test_get_plot_never_raises_on_storage_failure(fake_provider, fake_executor) -> None:
    fake_executor.fail_reads = True

    assert fake_provider.get_plot("world", 0, 0).is_empty
    await fake_provider.drain()


@pytest.mark.asyncio
async def test_ring_queries_use_positional_radius(fake_provider, fake_executor) -> None:
    occupied = {(0, 0)}
    fake_executor.rows_for = lambda statement, args: (
        [{"x": x, "z": z} for x, z in occupied] if "abs(x)" in statement else []
    )

    plot = await fake_provider.get_next_free_plot("world")

    assert (plot.x, plot.z) == (0, 1)
    ring_args = [args for _, args in fake_executor.of_kind("select")]
    assert ring_args == [("world", 0), ("world", 1)]


@pytest.mark.asyncio
async def test_owner_listing_sorts_and_filters(fake_executor) -> None:
    from plotgrid.storage import NetworkedSQLProvider

    rows = [
        {"id": 1, "level": "world2", "x": 0, "z": 0, "owner": "Alice"},
        {"id": 2, "level": "world", "x": 0, "z": 1, "owner": "Alice"},
        {"id": 3, "level": "arena", "x": 0, "z": 2, "owner": "Alice"},
    ]
    fake_executor.rows_for = lambda statement, args: rows
    provider = NetworkedSQLProvider(
        executor=fake_executor, is_level_loaded=lambda level: level != "world2"
    )
    await provider.open()

    plots = await provider.get_plots_by_owner("Alice")

    assert [plot.level_name for plot in plots] == ["arena", "world"]
    [(statement, args)] = fake_executor.of_kind("select")
    assert statement.endswith("WHERE owner = $1")
    assert args == ("Alice",)
    await provider.close()


def test_networked_provider_uses_postgres_dialect(fake_executor) -> None:
    from plotgrid.storage import NetworkedSQLProvider

    provider = NetworkedSQLProvider(executor=fake_executor)

    assert isinstance(provider.dialect, PostgresDialect)
    assert not provider.is_open


@pytest.mark.asyncio
async def test_configured_search_limit_applies_by_default(fake_executor) -> None:
    from plotgrid.storage import NetworkedSQLProvider

    fake_executor.rows_for = lambda statement, args: [{"x": 0, "z": 0}]
    provider = NetworkedSQLProvider(executor=fake_executor, search_limit=1)
    await provider.open()

    assert await provider.get_next_free_plot("world") is None
    assert (await provider.get_next_free_plot("world", limit_xz=2)).key == ("world", 0, 1)
    await provider.close()


@pytest.mark.asyncio
async def test_failed_claim_leaves_cell_free(fake_provider, fake_executor) -> None:
    """A claim whose write fails must not keep the cell reserved in the cache."""
    fake_executor.fail_writes = True

    with pytest.raises(StorageUnavailableError):
        await fake_provider.claim_next_free_plot("world", "Alice")

    assert not fake_provider.get_plot("world", 0, 0).is_claimed
    fake_executor.fail_writes = False
    assert (await fake_provider.get_next_free_plot("world")).key == ("world", 0, 0)

    claimed = await fake_provider.claim_next_free_plot("world", "Alice")
    assert claimed.key == ("world", 0, 0)
    assert claimed.owner == "Alice"


def test_backends_satisfy_plot_provider(fake_executor) -> None:
    from plotgrid.storage import EmbeddedSQLProvider, NetworkedSQLProvider, PlotProvider

    assert isinstance(NetworkedSQLProvider(executor=fake_executor), PlotProvider)
    assert isinstance(EmbeddedSQLProvider(executor=fake_executor), PlotProvider)
