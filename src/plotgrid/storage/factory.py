"""Provider construction from settings.

Usage:
    provider = await create_provider(is_level_loaded=server.is_level_loaded)
"""

from __future__ import annotations

from plotgrid.config import PlotStoreSettings, PostgresSettings, SQLiteSettings
from plotgrid.storage.postgres import NetworkedSQLProvider
from plotgrid.storage.protocol import LevelPredicate, PlotProvider
from plotgrid.storage.provider import DataProvider
from plotgrid.storage.sqlite import EmbeddedSQLProvider


def build_provider(
    settings: PlotStoreSettings | None = None,
    is_level_loaded: LevelPredicate | None = None,
    sqlite: SQLiteSettings | None = None,
    postgres: PostgresSettings | None = None,
) -> DataProvider:
    """Build the configured provider without opening it.

    Args:
        settings: Store settings (loaded from the environment when omitted).
        is_level_loaded: Predicate used to filter owner listings.
        sqlite: SQLite settings, used when settings.provider == "sqlite".
        postgres: PostgreSQL settings, used when settings.provider == "postgres".
    """
    settings = settings or PlotStoreSettings()
    if settings.provider == "sqlite":
        return EmbeddedSQLProvider.from_settings(
            settings, sqlite or SQLiteSettings(), is_level_loaded
        )
    elif settings.provider == "postgres":
        return NetworkedSQLProvider.from_settings(
            settings, postgres or PostgresSettings(), is_level_loaded
        )
    else:
        raise ValueError(f"Unknown plot provider: {settings.provider}")


async def create_provider(
    settings: PlotStoreSettings | None = None,
    is_level_loaded: LevelPredicate | None = None,
    sqlite: SQLiteSettings | None = None,
    postgres: PostgresSettings | None = None,
) -> PlotProvider:
    """Build the configured provider and open it (connect + schema bootstrap)."""
    provider = build_provider(settings, is_level_loaded, sqlite=sqlite, postgres=postgres)
    await provider.open()
    return provider
