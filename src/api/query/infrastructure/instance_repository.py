"""PostgreSQL implementation of IInstanceQueryRepository.

Resolves instances by id or by bound domain and lists them through the
composable predicates. Reads only the projection tables; nothing is cached,
so every call is one statement against the store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from infrastructure.database.exceptions import DatabaseError
from query.domain.exceptions import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from query.domain.instance import Instance, Instances, RequestedInstance
from query.infrastructure.observability import (
    DefaultInstanceRepositoryProbe,
    InstanceRepositoryProbe,
)
from query.infrastructure.predicates import EqualsQuery, InstanceSearchQueries
from query.infrastructure.scanner import scan_instance, scan_instances
from query.infrastructure.schema import (
    InstanceColumn,
    InstanceDomainColumn,
    InstanceSchema,
    build_instance_schema,
)
from query.infrastructure.statement import (
    InstanceStatement,
    Statement,
    StatementBuilder,
)
from query.ports.repositories import IInstanceQueryRepository
from shared_kernel.query_context import (
    ContextCancelledError,
    ContextDeadlineExceededError,
)

if TYPE_CHECKING:
    from query.ports.executor import QueryExecutor
    from shared_kernel.instance_context import InstanceContext
    from shared_kernel.query_context import QueryContext

# Failures of the store or of the caller's context; all surface as InternalError.
_EXECUTION_ERRORS = (
    DatabaseError,
    ContextCancelledError,
    ContextDeadlineExceededError,
)


def strip_port(host: str) -> str:
    """Drop a ``:port`` suffix, keeping everything before the first colon."""
    return host.split(":", 1)[0]


class InstanceQueryRepository(IInstanceQueryRepository):
    """Read-only repository over the instance projection tables."""

    def __init__(
        self,
        executor: QueryExecutor,
        schema: InstanceSchema | None = None,
        probe: InstanceRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with a statement executor.

        Args:
            executor: Executes compiled statements against the store
            schema: Table descriptor; the default projection tables if omitted
            probe: Optional domain probe for observability
        """
        self._executor = executor
        self._builder = StatementBuilder(schema or build_instance_schema())
        self._probe = probe or DefaultInstanceRepositoryProbe()

    async def get_current(
        self, ctx: QueryContext, current: InstanceContext
    ) -> Instance:
        """Load the instance a request was already resolved to."""
        lookup = "instance_by_id"
        probe = self._probe.with_context(ctx.observation)
        statement = self._compile(
            lookup,
            probe,
            self._builder.select_instance().where(
                EqualsQuery(InstanceColumn.ID, current.instance_id)
            ),
        )
        instance = await self._fetch_one(
            ctx,
            probe,
            statement,
            lookup=lookup,
            key=current.instance_id,
            host=current.requested_domain,
        )
        probe.instance_retrieved(lookup, instance.id)
        return instance

    async def get_by_host(self, ctx: QueryContext, host: str) -> RequestedInstance:
        """Resolve the instance bound to `host`, ignoring any port."""
        lookup = "instance_by_host"
        domain = strip_port(host)
        probe = self._probe.with_context(ctx.observation)
        statement = self._compile(
            lookup,
            probe,
            self._builder.select_instance_by_domain().where(
                EqualsQuery(InstanceDomainColumn.DOMAIN, domain)
            ),
        )
        instance = await self._fetch_one(
            ctx, probe, statement, lookup=lookup, key=domain, host=host
        )
        probe.instance_retrieved(lookup, instance.id)
        return instance

    async def search(
        self, ctx: QueryContext, queries: InstanceSearchQueries
    ) -> Instances:
        """List instances matching every predicate in `queries`."""
        lookup = "search_instances"
        probe = self._probe.with_context(ctx.observation)
        statement = self._compile(
            lookup, probe, self._builder.select_instances().search(queries)
        )

        try:
            instances = await ctx.run(self._fetch_all(statement, lookup))
        except _EXECUTION_ERRORS as e:
            probe.instance_lookup_failed(lookup, "", e)
            raise InternalError(
                "Errors.Internal", error_id="QUERY-3j98f", lookup=lookup
            ) from e
        except InternalError as e:
            probe.instance_lookup_failed(lookup, "", e)
            raise

        probe.instances_listed(returned=len(instances.instances), total=instances.count)
        return instances

    def _compile(
        self,
        lookup: str,
        probe: InstanceRepositoryProbe,
        statement: InstanceStatement,
    ) -> Statement:
        try:
            return statement.to_sql()
        except InvalidArgumentError as e:
            e.details.setdefault("lookup", lookup)
            probe.statement_rejected(lookup, e)
            raise

    async def _fetch_one(
        self,
        ctx: QueryContext,
        probe: InstanceRepositoryProbe,
        statement: Statement,
        *,
        lookup: str,
        key: str,
        host: str,
    ) -> Instance:
        try:
            row = await ctx.run(
                self._executor.fetchrow(statement.text, *statement.args)
            )
        except _EXECUTION_ERRORS as e:
            probe.instance_lookup_failed(lookup, key, e)
            raise InternalError(
                "Errors.Internal", error_id="QUERY-d9nw", lookup=lookup, key=key
            ) from e

        try:
            return scan_instance(row, host, lookup=lookup, key=key)
        except InternalError as e:
            probe.instance_lookup_failed(lookup, key, e)
            raise
        except NotFoundError:
            probe.instance_not_found(lookup, key)
            raise

    async def _fetch_all(self, statement: Statement, lookup: str) -> Instances:
        # The cursor is opened and closed inside a single ctx.run.
        cursor = await self._executor.fetch(statement.text, *statement.args)
        return await scan_instances(cursor, lookup=lookup)
