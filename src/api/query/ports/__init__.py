"""Query ports (interfaces) module.

Ports define the contracts between the application layer and infrastructure:
the instance repository consumed by the application services and the
statement executor consumed by the repository.
"""

from query.ports.executor import QueryExecutor, Row, RowCursor
from query.ports.repositories import IInstanceQueryRepository

__all__ = ["IInstanceQueryRepository", "QueryExecutor", "Row", "RowCursor"]
