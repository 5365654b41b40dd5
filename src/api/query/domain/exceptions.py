"""Caller-facing errors of the Querying bounded context.

Every read operation fails with exactly one of three kinds. The message is a
stable translation key; lookup details travel in ``details`` and the storage
error, if any, only as ``__cause__``, so driver text never reaches callers.
"""

from __future__ import annotations

from typing import Any


class QueryError(Exception):
    """Base exception for read-side query failures.

    Attributes:
        message: Translation key describing the failure.
        error_id: Stable identifier of the raising call site.
        details: Lookup name and identifying key for observability.
    """

    def __init__(self, message: str, error_id: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.error_id = error_id
        self.details = details

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"error_id={self.error_id!r}, details={self.details!r})"
        )


class InvalidArgumentError(QueryError):
    """Raised when a query cannot be constructed. Nothing was executed."""

    pass


class NotFoundError(QueryError):
    """Raised when a single-row lookup matched no row.

    Collection queries never raise this; they return an empty result.
    """

    pass


class InternalError(QueryError):
    """Raised for execution, decoding, cursor release and cancellation failures."""

    pass
