"""Repository interfaces (ports) for the Querying bounded context.

These protocols define the contracts for reading instance snapshots
without specifying implementation details.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from query.domain.instance import Instance, Instances, RequestedInstance

if TYPE_CHECKING:
    from query.infrastructure.predicates import InstanceSearchQueries
    from shared_kernel.instance_context import InstanceContext
    from shared_kernel.query_context import QueryContext


@runtime_checkable
class IInstanceQueryRepository(Protocol):
    """Read-only repository resolving and listing instances.

    Every call reads the store; nothing is cached. Implementations honor the
    QueryContext's cancellation and deadline and report them as
    InternalError.
    """

    async def get_current(
        self, ctx: QueryContext, current: InstanceContext
    ) -> Instance:
        """Load the instance a request was already resolved to.

        Args:
            ctx: Cancellation and observability context of the caller.
            current: Instance id and request host attached upstream.

        Returns:
            The instance, with ``host`` set to ``current.requested_domain``.

        Raises:
            NotFoundError: If no instance has that id.
            InternalError: On storage failure, cancellation or timeout.
            InvalidArgumentError: If the statement cannot be built.
        """
        ...

    async def get_by_host(self, ctx: QueryContext, host: str) -> RequestedInstance:
        """Resolve the instance bound to a request host.

        Args:
            ctx: Cancellation and observability context of the caller.
            host: Raw host, optionally with a ``:port`` suffix.

        Raises:
            NotFoundError: If no domain binding matches the host exactly.
            InternalError: On storage failure, cancellation or timeout.
            InvalidArgumentError: If the statement cannot be built.
        """
        ...

    async def search(
        self, ctx: QueryContext, queries: InstanceSearchQueries
    ) -> Instances:
        """List instances matching all predicates of `queries`.

        Raises:
            InvalidArgumentError: If the statement cannot be built.
            InternalError: On storage failure, cancellation or timeout.
        """
        ...
