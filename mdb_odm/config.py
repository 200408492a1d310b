"""
Configuration management for MDB_ODM.

Settings come from environment variables and are re-read every time a
DatabaseConfig is built, so changing the environment between connections
takes effect on the next client creation.
"""

import logging
import os

from .constants import (DEFAULT_ADAPTER, DEFAULT_DB_URL, DEFAULT_MAX_POOL_SIZE,
                        DEFAULT_SERVER_SELECTION_TIMEOUT_MS)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def env(key: str, default: str = "") -> str:
    """Return the environment variable `key`, or `default` when unset or blank."""
    value = os.getenv(key)
    return value if value else default


def _int_setting(key: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{key} must be an integer", config_key=key, config_value=raw
        ) from None


class DatabaseConfig:
    """
    Database connection configuration.

    Example:
        # Using environment variables
        config = DatabaseConfig()

        # Or using direct parameters
        config = DatabaseConfig(adapter="mock", database="my_db")
    """

    def __init__(
        self,
        adapter: str | None = None,
        url: str | None = None,
        database: str | None = None,
        max_pool_size: int | None = None,
        server_selection_timeout_ms: int | None = None,
    ):
        """
        Initialize configuration.

        Args:
            adapter: Adapter name (defaults to DB_ADAPTER env var or "default")
            url: MongoDB connection URI (defaults to DB_URL env var)
            database: Database name (defaults to DB_DATABASE env var)
            max_pool_size: Maximum connection pool size (defaults to
                DB_MAX_POOL_SIZE, then the deprecated DB_POOL_SIZE, then 10)
            server_selection_timeout_ms: Server selection timeout in ms
                (defaults to DB_SERVER_SELECTION_TIMEOUT_MS or 5000)
        """
        self.adapter = (adapter or env("DB_ADAPTER", DEFAULT_ADAPTER)).lower()
        self.url = url or env("DB_URL", DEFAULT_DB_URL)
        self.database = database if database is not None else env("DB_DATABASE", "")
        self.max_pool_size = max_pool_size or self._max_pool_size_from_env()
        self.server_selection_timeout_ms = server_selection_timeout_ms or _int_setting(
            "DB_SERVER_SELECTION_TIMEOUT_MS",
            env("DB_SERVER_SELECTION_TIMEOUT_MS", str(DEFAULT_SERVER_SELECTION_TIMEOUT_MS)),
        )

    @staticmethod
    def _max_pool_size_from_env() -> int:
        legacy = env("DB_POOL_SIZE")
        if legacy:
            logger.warning(
                "The `DB_POOL_SIZE` setting is deprecated. Use `DB_MAX_POOL_SIZE` instead."
            )
        current = env("DB_MAX_POOL_SIZE")
        if current:
            return _int_setting("DB_MAX_POOL_SIZE", current)
        if legacy:
            return _int_setting("DB_POOL_SIZE", legacy)
        return DEFAULT_MAX_POOL_SIZE

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(adapter={self.adapter!r}, url={self.url!r}, "
            f"database={self.database!r}, max_pool_size={self.max_pool_size})"
        )
