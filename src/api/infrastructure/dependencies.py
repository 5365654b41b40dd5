"""Shared infrastructure dependencies.

Provides ONLY raw database infrastructure resources (connection pools).
Does NOT import from bounded contexts to maintain DDD boundaries.
"""

from functools import lru_cache

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.database.executor import AsyncpgQueryExecutor
from infrastructure.settings import get_database_settings


@lru_cache
def get_connection_pool() -> ConnectionPool:
    """Get application-scoped connection pool (singleton).

    The pool is created closed; the application opens it on startup and
    closes it on shutdown.

    Returns:
        ConnectionPool instance configured from the environment.
    """
    settings = get_database_settings()
    return ConnectionPool(settings)


def get_query_executor() -> AsyncpgQueryExecutor:
    """Get a statement executor bound to the shared connection pool."""
    return AsyncpgQueryExecutor(get_connection_pool())
