"""Database infrastructure - shared connection primitives."""

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    QueryExecutionError,
)

__all__ = [
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryExecutionError",
]
