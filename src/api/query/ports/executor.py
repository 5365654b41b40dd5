"""Statement execution ports for the Querying bounded context.

The query layer never talks to a driver directly. It hands a parameterized
statement (``$1, $2, ...`` placeholders plus positional arguments) to a
QueryExecutor supplied by the caller's infrastructure.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Protocol, Sequence, runtime_checkable

# A result row addressed by ordinal position (asyncpg.Record, tuple, ...).
Row = Sequence[Any]


@runtime_checkable
class RowCursor(Protocol):
    """Open result set of a multi-row statement.

    Rows are consumed with ``async for``. The cursor holds a connection and
    must be closed exactly once, whether or not iteration succeeded.
    """

    def __aiter__(self) -> AsyncIterator[Row]:
        """Iterate the remaining rows in statement order."""
        ...

    async def close(self) -> None:
        """Release the cursor and its connection.

        Raises:
            DatabaseError: If the underlying resources cannot be released.
        """
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """Executes read statements against the store.

    Implementations raise DatabaseError subclasses for every storage failure;
    absence of rows is never an error at this level.
    """

    async def fetchrow(self, query: str, *args: Any) -> Row | None:
        """Execute a statement and return its first row, or None."""
        ...

    async def fetch(self, query: str, *args: Any) -> RowCursor:
        """Execute a statement and return a cursor over all of its rows."""
        ...
