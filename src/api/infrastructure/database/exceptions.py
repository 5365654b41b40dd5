"""Database-specific exceptions shared by read-side adapters."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass


class QueryExecutionError(DatabaseError):
    """Raised when executing a statement or reading its rows fails."""

    def __init__(self, message: str, query: str | None = None):
        super().__init__(message)
        self.query = query
