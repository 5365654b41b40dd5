"""Statement builder for instance read queries.

Builds SQLAlchemy selects from an InstanceSchema and compiles them into
PostgreSQL text with ``$1, $2, ...`` placeholders, numbered in the order the
parameters appear, plus the matching positional argument list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql.asyncpg import PGDialect_asyncpg
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import FromClause, Join

from query.domain.exceptions import InvalidArgumentError
from query.infrastructure.predicates import (
    InstanceSearchQueries,
    SearchQuery,
    SearchRequest,
)
from query.infrastructure.schema import ColumnRef, InstanceSchema

COUNT_LABEL = "count"

# Statements are executed by asyncpg, which expects numbered placeholders.
_DIALECT = PGDialect_asyncpg(paramstyle="numeric_dollar")


@dataclass(frozen=True)
class Statement:
    """Compiled statement ready for a QueryExecutor."""

    text: str
    args: tuple[Any, ...]


@dataclass(frozen=True)
class InstanceStatement:
    """An instance select under construction.

    Every method returns a new value; instances are never modified in place.
    `source` is the FROM clause the builder started from. Predicates and sort
    columns may only reference tables it already covers.
    """

    schema: InstanceSchema
    select: Select
    source: FromClause
    sort_columns: tuple[ColumnRef, ...] = ()

    def where(self, *queries: SearchQuery) -> InstanceStatement:
        stmt = self.select
        for query in queries:
            stmt = query.apply(stmt, self.schema)
        return self._with(stmt)

    def paginate(self, request: SearchRequest) -> InstanceStatement:
        return self._with(
            request.apply(self.select, self.schema), request.sorting_column
        )

    def search(self, queries: InstanceSearchQueries) -> InstanceStatement:
        return self._with(
            queries.apply(self.select, self.schema), queries.request.sorting_column
        )

    def _with(
        self, stmt: Select, sorting_column: ColumnRef | None = None
    ) -> InstanceStatement:
        sort_columns = self.sort_columns
        if sorting_column is not None:
            sort_columns = (*sort_columns, sorting_column)
        return InstanceStatement(
            schema=self.schema,
            select=stmt,
            source=self.source,
            sort_columns=sort_columns,
        )

    def _reads_outside_source(self) -> bool:
        froms = self.select.get_final_froms()
        if len(froms) != 1 or froms[0] is not self.source:
            return True
        tables = (
            (self.source.left, self.source.right)
            if isinstance(self.source, Join)
            else (self.source,)
        )
        return any(
            not any(self.schema.column(ref).table is t for t in tables)
            for ref in self.sort_columns
        )

    def to_sql(self) -> Statement:
        """Compile into positional PostgreSQL text and arguments.

        Raises:
            InvalidArgumentError: If the select cannot be rendered
                or reads from a table outside its source.
        """
        if self._reads_outside_source():
            raise InvalidArgumentError(
                "Errors.Query.SQLStatement", error_id="QUERY-M9fow"
            )
        try:
            compiled = self.select.compile(
                dialect=_DIALECT,
                compile_kwargs={"render_postcompile": True},
            )
            params = compiled.params
            args = tuple(params[name] for name in compiled.positiontup or ())
            text = str(compiled)
        except (SQLAlchemyError, KeyError) as e:
            raise InvalidArgumentError(
                "Errors.Query.SQLStatement", error_id="QUERY-M9fow"
            ) from e
        return Statement(text=text, args=args)


class StatementBuilder:
    """Creates instance selects over a fixed projection."""

    def __init__(self, schema: InstanceSchema):
        self._schema = schema

    @property
    def schema(self) -> InstanceSchema:
        return self._schema

    def select_instance(self) -> InstanceStatement:
        """Single instance by its own columns."""
        source = self._schema.instances
        stmt = select(*self._schema.projection).select_from(source)
        return InstanceStatement(schema=self._schema, select=stmt, source=source)

    def select_instance_by_domain(self) -> InstanceStatement:
        """Single instance joined against its domain bindings."""
        source = self._schema.domain_join()
        stmt = select(*self._schema.projection).select_from(source)
        return InstanceStatement(schema=self._schema, select=stmt, source=source)

    def select_instances(self) -> InstanceStatement:
        """Instance collection with the total match count on every row."""
        stmt = select(
            *self._schema.projection,
            func.count().over().label(COUNT_LABEL),
        ).select_from(self._schema.instances)
        return InstanceStatement(
            schema=self._schema, select=stmt, source=self._schema.instances
        )
