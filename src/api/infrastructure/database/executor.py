"""asyncpg implementation of the QueryExecutor port.

Single-row statements borrow a pooled connection for the duration of one
``fetchrow`` call. Multi-row statements stream through a server-side cursor
inside a read-only transaction; the connection stays checked out until the
returned cursor is closed.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, AsyncIterator

from infrastructure.database.connection_pool import DRIVER_ERRORS
from infrastructure.database.exceptions import QueryExecutionError

if TYPE_CHECKING:
    import asyncpg
    from asyncpg.transaction import Transaction

    from infrastructure.database.connection_pool import ConnectionPool


class AsyncpgRowCursor:
    """Row cursor over an asyncpg server-side cursor.

    Owns the connection and transaction opened by AsyncpgQueryExecutor.fetch.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        connection: asyncpg.Connection,
        transaction: Transaction,
        query: str,
        args: tuple[Any, ...],
        prefetch: int,
    ):
        self._pool = pool
        self._connection = connection
        self._transaction = transaction
        self._query = query
        self._args = args
        self._prefetch = prefetch
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aiter__(self) -> AsyncIterator[asyncpg.Record]:
        try:
            async for record in self._connection.cursor(
                self._query, *self._args, prefetch=self._prefetch
            ):
                yield record
        except DRIVER_ERRORS as e:
            raise QueryExecutionError(
                f"Reading rows failed: {e}", query=self._query
            ) from e

    async def close(self) -> None:
        """End the read-only transaction and return the connection.

        Safe to call more than once; only the first call does any work.

        Raises:
            QueryExecutionError: If the transaction cannot be ended.
            DatabaseConnectionError: If the connection cannot be returned.
        """
        if self._closed:
            return
        self._closed = True

        try:
            await self._transaction.rollback()
        except DRIVER_ERRORS as e:
            raise QueryExecutionError(
                f"Closing rows failed: {e}", query=self._query
            ) from e
        finally:
            await self._pool.release(self._connection)


class AsyncpgQueryExecutor:
    """QueryExecutor backed by a shared ConnectionPool."""

    def __init__(self, pool: ConnectionPool, prefetch: int = 100):
        """Initialize the executor.

        Args:
            pool: An opened connection pool.
            prefetch: Rows fetched per round trip by multi-row cursors.
        """
        self._pool = pool
        self._prefetch = prefetch

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """Execute a statement and return its first row, or None.

        Raises:
            DatabaseConnectionError: If no connection can be acquired.
            QueryExecutionError: If the statement fails.
        """
        conn = await self._pool.acquire()
        try:
            return await conn.fetchrow(query, *args)
        except DRIVER_ERRORS as e:
            raise QueryExecutionError(
                f"Query execution failed: {e}", query=query
            ) from e
        finally:
            await self._pool.release(conn)

    async def fetch(self, query: str, *args: Any) -> AsyncpgRowCursor:
        """Open a cursor over every row the statement returns.

        Raises:
            DatabaseConnectionError: If no connection can be acquired.
            QueryExecutionError: If the transaction cannot be started.
        """
        conn = await self._pool.acquire()
        transaction = conn.transaction(readonly=True)
        try:
            await transaction.start()
        except DRIVER_ERRORS as e:
            await self._pool.release(conn)
            raise QueryExecutionError(
                f"Starting read transaction failed: {e}", query=query
            ) from e
        except asyncio.CancelledError:
            await self._pool.release(conn)
            raise

        return AsyncpgRowCursor(
            pool=self._pool,
            connection=conn,
            transaction=transaction,
            query=query,
            args=args,
            prefetch=self._prefetch,
        )
