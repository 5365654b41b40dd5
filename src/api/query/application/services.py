"""Application services for the Querying bounded context."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langcodes import Language

from query.application.observability import (
    DefaultInstanceQueryServiceProbe,
    InstanceQueryServiceProbe,
)
from query.domain.exceptions import QueryError
from query.domain.instance import Instance, Instances, RequestedInstance
from query.domain.value_objects import UNDEFINED_LANGUAGE
from query.ports.repositories import IInstanceQueryRepository

if TYPE_CHECKING:
    from query.infrastructure.predicates import InstanceSearchQueries
    from shared_kernel.instance_context import InstanceContext
    from shared_kernel.query_context import QueryContext


class InstanceQueryService:
    """Application service for resolving and listing instances.

    Wraps the instance repository with observability and applies the
    configured per-call timeout to contexts that carry no deadline of
    their own.
    """

    def __init__(
        self,
        repository: IInstanceQueryRepository,
        probe: InstanceQueryServiceProbe | None = None,
        default_timeout_seconds: float | None = None,
    ):
        """Initialize the service.

        Args:
            repository: The instance repository for reads.
            probe: Optional domain probe for observability.
            default_timeout_seconds: Upper bound for every call, or None.
        """
        self._repository = repository
        self._probe = probe or DefaultInstanceQueryServiceProbe()
        self._default_timeout = default_timeout_seconds

    async def current_instance(
        self, ctx: QueryContext, current: InstanceContext
    ) -> Instance:
        """Load the instance the request was resolved to upstream.

        Raises:
            NotFoundError: If the instance does not exist.
            InternalError: On storage failure, cancellation or timeout.
        """
        probe = self._probe.with_context(ctx.observation)
        try:
            instance = await self._repository.get_current(
                ctx.bounded(self._default_timeout), current
            )
        except QueryError as e:
            probe.instance_resolution_failed("current", e.error_id, e.message)
            raise
        probe.instance_resolved("current", instance.id)
        return instance

    async def instance_by_host(
        self, ctx: QueryContext, host: str
    ) -> RequestedInstance:
        """Resolve the instance owning the request host.

        Raises:
            NotFoundError: If no instance is bound to the host.
            InternalError: On storage failure, cancellation or timeout.
        """
        probe = self._probe.with_context(ctx.observation)
        try:
            instance = await self._repository.get_by_host(
                ctx.bounded(self._default_timeout), host
            )
        except QueryError as e:
            probe.instance_resolution_failed("host", e.error_id, e.message)
            raise
        probe.instance_resolved("host", instance.instance_id)
        return instance

    async def search_instances(
        self, ctx: QueryContext, queries: InstanceSearchQueries
    ) -> Instances:
        """List instances matching `queries` with the total match count."""
        probe = self._probe.with_context(ctx.observation)
        result = await self._repository.search(
            ctx.bounded(self._default_timeout), queries
        )
        probe.instances_searched(returned=len(result.instances), total=result.count)
        return result

    async def default_language(
        self, ctx: QueryContext, current: InstanceContext
    ) -> Language:
        """Return the default language of the current instance.

        Never raises for a failed lookup: any query error yields the
        undefined language ``und`` instead.
        """
        probe = self._probe.with_context(ctx.observation)
        try:
            instance = await self._repository.get_current(
                ctx.bounded(self._default_timeout), current
            )
        except QueryError as e:
            probe.default_language_fallback(current.instance_id, e.error_id)
            return UNDEFINED_LANGUAGE
        return instance.default_language
