"""Connection pool for the PostgreSQL read store.

This module provides connection pooling using asyncpg.Pool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import asyncpg

from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.observability import (
    ConnectionProbe,
    DefaultConnectionProbe,
)

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings

# Errors asyncpg raises for server, protocol and network failures.
DRIVER_ERRORS: tuple[type[Exception], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


class ConnectionPool:
    """Shared asyncpg connection pool for read-side queries.

    Wraps asyncpg.Pool so that acquisition and release failures surface as
    DatabaseConnectionError and every connection carries the configured
    server-side statement timeout.

    Attributes:
        _settings: Database configuration settings
        _pool: The underlying asyncpg pool, None until open() is awaited
        _probe: Observability probe for monitoring
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        probe: ConnectionProbe | None = None,
    ):
        """Initialize the connection pool.

        Args:
            settings: Database connection settings
            probe: Optional observability probe
        """
        self._settings = settings
        self._probe = probe or DefaultConnectionProbe()
        self._pool: asyncpg.Pool | None = None

    @property
    def is_open(self) -> bool:
        """Whether open() has created the underlying pool."""
        return self._pool is not None

    def _server_settings(self) -> dict[str, str]:
        """Session settings applied to every pooled connection."""
        server_settings = {"default_transaction_read_only": "on"}
        if self._settings.statement_timeout_seconds > 0:
            server_settings["statement_timeout"] = str(
                self._settings.statement_timeout_seconds * 1000
            )
        return server_settings

    async def open(self) -> None:
        """Create the underlying asyncpg pool.

        Raises:
            DatabaseConnectionError: If the pool cannot be created.
        """
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                min_size=self._settings.pool_min_connections,
                max_size=self._settings.pool_max_connections,
                host=self._settings.host,
                port=self._settings.port,
                database=self._settings.database,
                user=self._settings.username,
                password=self._settings.password.get_secret_value(),
                server_settings=self._server_settings(),
            )
            self._probe.pool_initialized(
                min_conn=self._settings.pool_min_connections,
                max_conn=self._settings.pool_max_connections,
            )
        except DRIVER_ERRORS as e:
            self._probe.pool_initialization_failed(error=e)
            raise DatabaseConnectionError(
                f"Failed to initialize connection pool: {e}"
            ) from e

    async def acquire(self) -> asyncpg.Connection:
        """Get a connection from the pool.

        Returns:
            A pooled asyncpg connection. Callers must hand it back via release().

        Raises:
            DatabaseConnectionError: If pool is not initialized or acquisition fails.
        """
        if self._pool is None:
            raise DatabaseConnectionError("Connection pool not initialized")

        try:
            conn = await self._pool.acquire()
        except DRIVER_ERRORS as e:
            self._probe.connection_acquire_failed(error=e)
            raise DatabaseConnectionError(f"Cannot acquire connection: {e}") from e

        self._probe.connection_acquired_from_pool()
        return conn

    async def release(self, conn: asyncpg.Connection) -> None:
        """Return a connection to the pool.

        Args:
            conn: The connection to return.

        Raises:
            DatabaseConnectionError: If the pool rejects the connection.
        """
        if self._pool is None:
            return

        try:
            await self._pool.release(conn)
        except DRIVER_ERRORS as e:
            self._probe.connection_return_failed(error=e)
            raise DatabaseConnectionError(f"Cannot release connection: {e}") from e

        self._probe.connection_returned_to_pool()

    async def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool is not None:
            await self._pool.close()
            self._probe.pool_closed()
            self._pool = None
