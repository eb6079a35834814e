"""SQL dialects for the plot backends.

Every statement is written once with named placeholders (":level"). A dialect
renders it for its driver and owns the statements that genuinely differ
between flavours: the upsert and the schema bootstrap.

    SQLiteDialect    named binding, INSERT OR REPLACE upsert
    PostgresDialect  positional $n binding, ON CONFLICT upsert
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plotgrid.storage.protocol import QueryExecutor

_PLACEHOLDER = re.compile(r"(?<!:):([A-Za-z_]\w*)")

PLOT_COLUMNS = "id, level, x, z, name, owner, helpers, denied, biome, pvp"

GET_PLOT = (
    "SELECT id, name, owner, helpers, denied, biome, pvp FROM plots "
    "WHERE level = :level AND x = :x AND z = :z"
)
SAVE_PLOT_BY_ID = (
    "UPDATE plots SET name = :name, owner = :owner, helpers = :helpers, denied = :denied, "
    "biome = :biome, pvp = :pvp WHERE id = :id"
)
REMOVE_PLOT_BY_ID = "DELETE FROM plots WHERE id = :id"
REMOVE_PLOT_BY_XZ = "DELETE FROM plots WHERE level = :level AND x = :x AND z = :z"
GET_PLOTS_BY_OWNER = f"SELECT {PLOT_COLUMNS} FROM plots WHERE owner = :owner"
GET_PLOTS_BY_OWNER_AND_LEVEL = (
    f"SELECT {PLOT_COLUMNS} FROM plots WHERE owner = :owner AND level = :level"
)
GET_EXISTING_XZ = (
    "SELECT x, z FROM plots WHERE level = :level AND ("
    "(abs(x) = :radius AND abs(z) <= :radius) OR "
    "(abs(z) = :radius AND abs(x) <= :radius))"
)


@lru_cache(maxsize=64)
def _compile_positional(sql: str) -> tuple[str, tuple[str, ...]]:
    """Rewrite :name placeholders to $n, reusing n for repeated names."""
    order: list[str] = []

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in order:
            order.append(name)
        return f"${order.index(name) + 1}"

    return _PLACEHOLDER.sub(substitute, sql), tuple(order)


def placeholder_names(sql: str) -> tuple[str, ...]:
    """Named placeholders of a statement in first-appearance order."""
    return _compile_positional(sql)[1]


class SQLDialect:
    """Statement set and binding style for one SQL flavour."""

    name: str = "sql"
    upsert_plot: str = ""

    def render(self, sql: str, params: dict[str, Any]) -> tuple[str, Any]:
        """Turn a named-placeholder statement into (sql, driver arguments)."""
        raise NotImplementedError

    async def ensure_schema(self, executor: QueryExecutor) -> None:
        """Create the plots table if absent and apply additive migrations."""
        raise NotImplementedError


class SQLiteDialect(SQLDialect):
    """Embedded SQLite: named parameters passed as a mapping."""

    name = "sqlite"
    upsert_plot = (
        f"INSERT OR REPLACE INTO plots ({PLOT_COLUMNS}) VALUES ("
        "(SELECT id FROM plots WHERE level = :level AND x = :x AND z = :z), "
        ":level, :x, :z, :name, :owner, :helpers, :denied, :biome, :pvp)"
    )
    create_table = (
        "CREATE TABLE IF NOT EXISTS plots ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, level TEXT, X INTEGER, Z INTEGER, "
        "name TEXT, owner TEXT, helpers TEXT, denied TEXT, biome TEXT, pvp INTEGER)"
    )
    create_index = "CREATE INDEX IF NOT EXISTS plots_level_xz ON plots (level, X, Z)"
    table_info = "PRAGMA table_info(plots)"
    add_pvp_column = "ALTER TABLE plots ADD COLUMN pvp INTEGER"

    def render(self, sql: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        names = placeholder_names(sql)
        return sql, {name: params[name] for name in names}

    async def ensure_schema(self, executor: QueryExecutor) -> None:
        await executor.execute_generic(self.create_table)
        # SQLite has no ADD COLUMN IF NOT EXISTS
        columns = await executor.execute_select(self.table_info, {})
        if not any(str(column["name"]).lower() == "pvp" for column in columns):
            await executor.execute_generic(self.add_pvp_column)
        await executor.execute_generic(self.create_index)


class PostgresDialect(SQLDialect):
    """Networked PostgreSQL: positional $n parameters passed as a tuple."""

    name = "postgres"
    upsert_plot = (
        "INSERT INTO plots (level, x, z, name, owner, helpers, denied, biome, pvp) VALUES ("
        ":level, :x, :z, :name, :owner, :helpers, :denied, :biome, :pvp) "
        "ON CONFLICT (level, x, z) DO UPDATE SET name = EXCLUDED.name, "
        "owner = EXCLUDED.owner, helpers = EXCLUDED.helpers, denied = EXCLUDED.denied, "
        "biome = EXCLUDED.biome, pvp = EXCLUDED.pvp RETURNING id"
    )
    create_table = (
        "CREATE TABLE IF NOT EXISTS plots ("
        "id SERIAL PRIMARY KEY, level TEXT NOT NULL, x INTEGER NOT NULL, z INTEGER NOT NULL, "
        "name TEXT, owner TEXT, helpers TEXT, denied TEXT, biome TEXT, pvp INTEGER)"
    )
    add_pvp_column = "ALTER TABLE plots ADD COLUMN IF NOT EXISTS pvp INTEGER"
    create_unique_index = (
        "CREATE UNIQUE INDEX IF NOT EXISTS plots_level_x_z ON plots (level, x, z)"
    )

    def render(self, sql: str, params: dict[str, Any]) -> tuple[str, tuple[Any, ...]]:
        positional, names = _compile_positional(sql)
        return positional, tuple(params[name] for name in names)

    async def ensure_schema(self, executor: QueryExecutor) -> None:
        await executor.execute_generic(self.create_table)
        await executor.execute_generic(self.add_pvp_column)
        await executor.execute_generic(self.create_unique_index)
