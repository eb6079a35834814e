"""Configuration settings using Pydantic Settings.

Provides typed configuration with environment variable support for the plot
store and its two backends.

Usage:
    from plotgrid.config import PlotStoreSettings, SQLiteSettings

    # Load from environment variables (PLOTGRID_*, PLOTGRID_SQLITE_*)
    store = PlotStoreSettings()
    sqlite = SQLiteSettings()

    # Or override with explicit values
    store = PlotStoreSettings(provider="postgres", cache_size=1024)
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PlotStoreSettings(BaseSettings):  # type: ignore[misc]
    """Configuration shared by every plot provider.

    Attributes:
        provider: Backend to use (sqlite or postgres).
        cache_size: Maximum cached plots (0 disables the cache).
        worker_limit: Concurrent statements per provider.
        search_limit: Default ring limit for next-free-plot searches (0 = unlimited).
        connect_attempts: Connection attempts before the backend is unavailable.
        connect_backoff: Base delay in seconds between connection attempts.

    Environment Variables:
        PLOTGRID_PROVIDER
        PLOTGRID_CACHE_SIZE
        PLOTGRID_WORKER_LIMIT
        PLOTGRID_SEARCH_LIMIT
        PLOTGRID_CONNECT_ATTEMPTS
        PLOTGRID_CONNECT_BACKOFF
    """

    model_config = SettingsConfigDict(
        env_prefix="PLOTGRID_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: Literal["sqlite", "postgres"] = "sqlite"
    cache_size: int = Field(default=256, ge=0)
    worker_limit: int = Field(default=2, ge=1)
    search_limit: int = 0
    connect_attempts: int = Field(default=3, ge=1)
    connect_backoff: float = Field(default=0.5, ge=0.0)


class SQLiteSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the embedded SQLite backend.

    Environment Variables:
        PLOTGRID_SQLITE_FILE
    """

    model_config = SettingsConfigDict(
        env_prefix="PLOTGRID_SQLITE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    file: str = "plots.db"


class PostgresSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the networked PostgreSQL backend.

    Attributes:
        dsn: Connection URI; overrides the individual fields when set.
        host: Server host.
        port: Server port.
        user: Login role.
        password: Login password (prefer environment variable).
        database: Database name.

    Environment Variables:
        PLOTGRID_POSTGRES_DSN
        PLOTGRID_POSTGRES_HOST
        PLOTGRID_POSTGRES_PORT
        PLOTGRID_POSTGRES_USER
        PLOTGRID_POSTGRES_PASSWORD
        PLOTGRID_POSTGRES_DATABASE
    """

    model_config = SettingsConfigDict(
        env_prefix="PLOTGRID_POSTGRES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dsn: str | None = None
    host: str = "127.0.0.1"
    port: int = 5432
    user: str = "plotgrid"
    password: SecretStr | None = None
    database: str = "plotgrid"
