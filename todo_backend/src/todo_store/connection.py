"""MongoDB connection lifecycle built on the async Motor driver."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from .errors import ConfigurationError, NotConnectedError, StoreConnectionError
from .settings import Settings

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]


class ConnectionState(enum.Enum):
    """States of the connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


def _default_client_factory(uri: str, **kwargs: Any) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(uri, **kwargs)


# PUBLIC_INTERFACE
class ConnectionManager:
    """
    Owns the single client handle to the store.

    The handle exists if and only if the state is CONNECTED. ``connect`` and
    ``disconnect`` are idempotent, and ``get_store`` refuses to hand out a
    database handle while disconnected.

    Usage:
        manager = ConnectionManager(get_settings())
        async with manager:
            db = manager.get_store()
    """

    def __init__(self, settings: Settings, client_factory: Optional[ClientFactory] = None) -> None:
        if not settings.db_uri:
            raise ConfigurationError("DB_URI is not defined in the environment variables")
        if not settings.database_name:
            raise ConfigurationError("Database name is not defined in the configuration")
        self._settings = settings
        self._client_factory = client_factory or _default_client_factory
        self._client: Optional[Any] = None
        self._state = ConnectionState.DISCONNECTED
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    async def connect(self) -> None:
        """
        Open the client and verify the transport with a ping.

        No-op when already connected.

        Raises:
            StoreConnectionError: if the server cannot be reached.
        """
        async with self._lock:
            if self._state is ConnectionState.CONNECTED:
                return

            client = self._client_factory(
                self._settings.db_uri,
                server_api=ServerApi("1", strict=True, deprecation_errors=True),
            )
            try:
                await client.admin.command("ping")
            except PyMongoError as exc:
                client.close()
                logger.error(
                    "Failed to connect to the database",
                    extra={"database": self._settings.database_name},
                )
                raise StoreConnectionError(f"Could not connect to the database: {exc}") from exc

            self._client = client
            self._state = ConnectionState.CONNECTED
            logger.info("Connected to the database", extra={"database": self._settings.database_name})

    async def disconnect(self) -> None:
        """
        Close the client. No-op when already disconnected.

        The handle is released even if the driver fails to close cleanly.

        Raises:
            StoreConnectionError: if the driver reported an error while closing.
        """
        async with self._lock:
            if self._state is ConnectionState.DISCONNECTED:
                return

            client, self._client = self._client, None
            self._state = ConnectionState.DISCONNECTED
            try:
                client.close()
            except PyMongoError as exc:
                logger.warning("Database client did not close cleanly", exc_info=True)
                raise StoreConnectionError(f"Error while closing the database connection: {exc}") from exc
            logger.info("Closed database connection", extra={"database": self._settings.database_name})

    def get_store(self) -> AsyncIOMotorDatabase:
        """
        Return the live database handle for the configured database name.

        Raises:
            NotConnectedError: if called while disconnected.
        """
        if self._state is not ConnectionState.CONNECTED or self._client is None:
            raise NotConnectedError("Database client is not connected. Call connect() first.")
        return self._client[self._settings.database_name]

    async def __aenter__(self) -> "ConnectionManager":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
