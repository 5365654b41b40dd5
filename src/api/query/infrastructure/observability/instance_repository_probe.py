"""Domain probe for instance read repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of instance lookups and listings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class InstanceRepositoryProbe(Protocol):
    """Domain probe for instance repository operations."""

    def instance_retrieved(self, lookup: str, instance_id: str) -> None:
        """Record that an instance was loaded."""
        ...

    def instance_not_found(self, lookup: str, key: str) -> None:
        """Record that a single-row lookup matched nothing."""
        ...

    def instance_lookup_failed(self, lookup: str, key: str, error: Exception) -> None:
        """Record that a lookup failed for a reason other than absence."""
        ...

    def instances_listed(self, returned: int, total: int) -> None:
        """Record that a collection query completed."""
        ...

    def statement_rejected(self, lookup: str, error: Exception) -> None:
        """Record that a statement could not be built."""
        ...

    def with_context(self, context: ObservationContext) -> InstanceRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultInstanceRepositoryProbe:
    """Default implementation of InstanceRepositoryProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(
        self, context: ObservationContext
    ) -> DefaultInstanceRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultInstanceRepositoryProbe(logger=self._logger, context=context)

    def instance_retrieved(self, lookup: str, instance_id: str) -> None:
        """Record that an instance was loaded."""
        self._logger.debug(
            "instance_retrieved",
            lookup=lookup,
            retrieved_instance_id=instance_id,
            **self._get_context_kwargs(),
        )

    def instance_not_found(self, lookup: str, key: str) -> None:
        """Record that a single-row lookup matched nothing."""
        self._logger.info(
            "instance_not_found",
            lookup=lookup,
            key=key,
            **self._get_context_kwargs(),
        )

    def instance_lookup_failed(self, lookup: str, key: str, error: Exception) -> None:
        """Record that a lookup failed for a reason other than absence."""
        cause = error.__cause__ or error
        self._logger.error(
            "instance_lookup_failed",
            lookup=lookup,
            key=key,
            error=str(cause),
            error_type=type(cause).__name__,
            **self._get_context_kwargs(),
        )

    def instances_listed(self, returned: int, total: int) -> None:
        """Record that a collection query completed."""
        self._logger.debug(
            "instances_listed",
            returned=returned,
            total=total,
            **self._get_context_kwargs(),
        )

    def statement_rejected(self, lookup: str, error: Exception) -> None:
        """Record that a statement could not be built."""
        cause = error.__cause__ or error
        self._logger.warning(
            "instance_statement_rejected",
            lookup=lookup,
            error=str(cause),
            **self._get_context_kwargs(),
        )
