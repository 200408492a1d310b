"""
Shared MongoDB connection handler.

Resolves the configured adapter, creates one client per process and hands out
database handles on top of it. The client is created lazily on the first
`get_connection()` call and lives until `close_connections()` is called
(typically from a shutdown hook), so every model and query shares one
connection pool.

Usage:
    from mdb_odm.database import connection_handler

    db = await connection_handler.get_connection()
    ...
    await connection_handler.close_connections()
"""

import logging
import threading
from typing import Any, Callable

from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import (ConnectionFailure, InvalidOperation,
                            OperationFailure, ServerSelectionTimeoutError)
from pymongo.uri_parser import parse_uri

from ..config import DatabaseConfig, env
from ..constants import (DEFAULT_ADAPTER, DEFAULT_DB_URL,
                         FALLBACK_DATABASE_NAME, MOCK_ADAPTER)
from ..exceptions import ConfigurationError
from ..observability import get_logger as get_contextual_logger

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

ClientFactory = Callable[..., Any]

ADAPTERS: dict[str, ClientFactory] = {
    DEFAULT_ADAPTER: AsyncIOMotorClient,
    MOCK_ADAPTER: AsyncMongoMockClient,
}
"""Registered adapters, keyed by the name accepted in DB_ADAPTER."""


class ConnectionHandler:
    """
    Owns the process-wide client.

    Concurrent first callers converge on a single client: creation happens
    synchronously under a lock, so there is never more than one client in
    flight, neither across coroutines nor across threads.
    """

    def __init__(self, adapters: dict[str, ClientFactory] | None = None):
        """
        Args:
            adapters: Adapter registry (defaults to ADAPTERS)
        """
        self._adapters = dict(adapters if adapters is not None else ADAPTERS)
        self._client: Any | None = None
        self._lock = threading.Lock()

    @property
    def adapter_names(self) -> list[str]:
        return list(self._adapters)

    @property
    def client(self) -> Any | None:
        """The cached client, or None when no connection is open."""
        return self._client

    async def get_connection(self) -> Any:
        """
        Returns a handle to the configured database.

        Connections are pooled by the client, so there is no need to hold on
        to the returned handle or to request several.

        Raises:
            ConfigurationError: If DB_ADAPTER names an unregistered adapter
        """
        client = self._get_client()
        return client[self._database_name()]

    async def close_connections(self) -> None:
        """
        Close the open client, if any.

        Safe to call repeatedly and before any connection was opened.
        """
        with self._lock:
            client, self._client = self._client, None

        if client is None:
            return

        try:
            client.close()
            contextual_logger.info("MongoDB client closed")
        except InvalidOperation as e:
            logger.warning(f"Error closing MongoDB client: {e}")

    async def verify(self) -> bool:
        """
        Ping the server through the cached client.

        Returns:
            True if a client is open and responsive, False otherwise
        """
        if self._client is None:
            logger.warning("MongoDB client is None - cannot verify")
            return False

        try:
            await self._client["admin"].command("ping")
            logger.debug("MongoDB client verification successful")
            return True
        except (
            ConnectionFailure,
            ServerSelectionTimeoutError,
            OperationFailure,
            InvalidOperation,
        ) as e:
            logger.exception(f"MongoDB client verification failed: {e}")
            return False

    def _get_client(self) -> Any:
        # Fast path: return existing client if already initialized
        if self._client is not None:
            return self._client

        with self._lock:
            # Double-check: another thread may have created it while we waited
            if self._client is None:
                self._client = self._create_client(DatabaseConfig())
            return self._client

    def _create_client(self, config: DatabaseConfig) -> Any:
        adapter = self._adapters.get(config.adapter)
        if adapter is None:
            valid_names = ", ".join(f"'{name}'" for name in self._adapters)
            raise ConfigurationError(
                f"{config.adapter} is not a valid adapter name. Must be one of {valid_names}."
            )

        logger.info(
            f"Creating MongoDB client with adapter={config.adapter}, "
            f"max_pool_size={config.max_pool_size}"
        )

        try:
            client = adapter(
                config.url,
                maxPoolSize=config.max_pool_size,
                serverSelectionTimeoutMS=config.server_selection_timeout_ms,
                appname="MDB_ODM",
            )
        except (ConnectionFailure, ServerSelectionTimeoutError, ValueError, TypeError) as e:
            logger.error(f"Failed to create MongoDB client: {e}", exc_info=True)
            raise

        contextual_logger.info(
            "MongoDB client created successfully",
            extra={"adapter": config.adapter, "max_pool_size": config.max_pool_size},
        )
        return client

    @staticmethod
    def _database_name() -> str:
        # Only the database name is re-read once a client exists
        database = env("DB_DATABASE")
        if database:
            return database
        url = env("DB_URL", DEFAULT_DB_URL)
        return parse_uri(url).get("database") or FALLBACK_DATABASE_NAME


connection_handler = ConnectionHandler()
"""Default handler shared by every model that does not get one passed in."""
