"""Configuration module using Pydantic Settings.

Provides typed configuration for the plot store with environment variable support.

Usage:
    from plotgrid.config import PlotStoreSettings, SQLiteSettings

    store = PlotStoreSettings(cache_size=512)
    sqlite = SQLiteSettings(file="plots.db")
"""

from plotgrid.config.settings import PlotStoreSettings, PostgresSettings, SQLiteSettings

__all__ = [
    "PlotStoreSettings",
    "SQLiteSettings",
    "PostgresSettings",
]
