"""Composable search predicates for read-side statements.

Each predicate is bound to a logical column and renders itself into a
SQLAlchemy clause against a concrete InstanceSchema. Values always travel as
bound parameters; no predicate ever places caller data in statement text.
Applying predicates yields the logical AND of all of them, so the order in
which callers list them does not change the result set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol, runtime_checkable

from sqlalchemy import Select, String, any_, bindparam, func, literal
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.sql.elements import ColumnElement

from query.domain.exceptions import InvalidArgumentError
from query.infrastructure.schema import ColumnRef, InstanceColumn, InstanceSchema


@runtime_checkable
class SearchQuery(Protocol):
    """A single filter term of a search."""

    column: ColumnRef

    def to_clause(self, schema: InstanceSchema) -> ColumnElement[bool]:
        """Render the boolean condition for this predicate."""
        ...

    def apply(self, select: Select, schema: InstanceSchema) -> Select:
        """Return `select` narrowed by this predicate."""
        ...


class _Predicate:
    """Shared apply() for predicates that render a single clause."""

    def to_clause(self, schema: InstanceSchema) -> ColumnElement[bool]:
        raise NotImplementedError

    def apply(self, select: Select, schema: InstanceSchema) -> Select:
        return select.where(self.to_clause(schema))


@dataclass(frozen=True)
class EqualsQuery(_Predicate):
    """``<column> = $n``"""

    column: ColumnRef
    value: Any

    def to_clause(self, schema: InstanceSchema) -> ColumnElement[bool]:
        return schema.column(self.column) == self.value


@dataclass(frozen=True)
class ListQuery(_Predicate):
    """``<column> = ANY($n)`` with the values bound as one array parameter.

    An empty list is rejected at construction: it must neither silently match
    nothing nor be dropped and match everything.
    """

    column: ColumnRef
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise InvalidArgumentError(
                "Errors.Query.InvalidRequest",
                error_id="QUERY-LsT0e",
                column=str(self.column),
                reason="empty value list",
            )

    def to_clause(self, schema: InstanceSchema) -> ColumnElement[bool]:
        column = schema.column(self.column)
        values = bindparam(
            f"{column.name}_list",
            value=list(self.values),
            type_=ARRAY(column.type),
            unique=True,
        )
        return column == any_(values)


class TextComparison(Enum):
    """How a TextQuery compares column and value."""

    EQUALS = "equals"
    EQUALS_IGNORE_CASE = "equals_ignore_case"
    STARTS_WITH = "starts_with"
    CONTAINS = "contains"


@dataclass(frozen=True)
class TextQuery(_Predicate):
    """Text comparison; LIKE wildcards inside the value are escaped."""

    column: ColumnRef
    value: str
    comparison: TextComparison = TextComparison.EQUALS

    def to_clause(self, schema: InstanceSchema) -> ColumnElement[bool]:
        column = schema.column(self.column)
        if self.comparison is TextComparison.EQUALS_IGNORE_CASE:
            return func.lower(column) == func.lower(literal(self.value, String))
        if self.comparison is TextComparison.STARTS_WITH:
            return column.startswith(self.value, autoescape=True)
        if self.comparison is TextComparison.CONTAINS:
            return column.contains(self.value, autoescape=True)
        return column == self.value


@dataclass(frozen=True)
class SearchRequest:
    """Pagination and ordering of a collection query.

    Zero offset or limit means "not set".
    """

    offset: int = 0
    limit: int = 0
    sorting_column: ColumnRef | None = None
    asc: bool = False

    def __post_init__(self) -> None:
        if self.offset < 0 or self.limit < 0:
            raise InvalidArgumentError(
                "Errors.Query.InvalidRequest",
                error_id="QUERY-pG4n8",
                offset=self.offset,
                limit=self.limit,
            )

    def apply(self, select: Select, schema: InstanceSchema) -> Select:
        if self.offset > 0:
            select = select.offset(self.offset)
        if self.limit > 0:
            select = select.limit(self.limit)
        if self.sorting_column is not None:
            column = schema.column(self.sorting_column)
            select = select.order_by(column.asc() if self.asc else column.desc())
        return select


@dataclass(frozen=True)
class InstanceSearchQueries:
    """Predicates and pagination for an instance collection query."""

    request: SearchRequest = field(default_factory=SearchRequest)
    queries: tuple[SearchQuery, ...] = ()

    def apply(self, select: Select, schema: InstanceSchema) -> Select:
        select = self.request.apply(select, schema)
        for query in self.queries:
            select = query.apply(select, schema)
        return select


def new_instance_ids_query(*ids: str) -> ListQuery:
    """Predicate matching instances whose id is one of `ids`.

    Raises:
        InvalidArgumentError: If no id is given.
    """
    return ListQuery(InstanceColumn.ID, tuple(dict.fromkeys(ids)))


def instance_queries(
    queries: Iterable[SearchQuery] = (),
    request: SearchRequest | None = None,
) -> InstanceSearchQueries:
    """Bundle predicates and an optional pagination request."""
    return InstanceSearchQueries(
        request=request or SearchRequest(),
        queries=tuple(queries),
    )
