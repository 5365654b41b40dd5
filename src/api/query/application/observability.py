"""Domain probes for Querying application layer.

Following Domain Oriented Observability pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class InstanceQueryServiceProbe(Protocol):
    """Domain probe for instance query service operations."""

    def instance_resolved(self, lookup: str, instance_id: str) -> None:
        """Record that a request was resolved to an instance."""
        ...

    def instance_resolution_failed(
        self, lookup: str, error_id: str, message: str
    ) -> None:
        """Record that resolving an instance failed."""
        ...

    def instances_searched(self, returned: int, total: int) -> None:
        """Record a completed instance search."""
        ...

    def default_language_fallback(self, instance_id: str, reason: str) -> None:
        """Record that the undefined language was returned instead of an error."""
        ...

    def with_context(self, context: ObservationContext) -> InstanceQueryServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultInstanceQueryServiceProbe:
    """Default implementation using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(
        self, context: ObservationContext
    ) -> DefaultInstanceQueryServiceProbe:
        return DefaultInstanceQueryServiceProbe(logger=self._logger, context=context)

    def instance_resolved(self, lookup: str, instance_id: str) -> None:
        self._logger.info(
            "instance_resolved",
            lookup=lookup,
            resolved_instance_id=instance_id,
            **self._get_context_kwargs(),
        )

    def instance_resolution_failed(
        self, lookup: str, error_id: str, message: str
    ) -> None:
        self._logger.warning(
            "instance_resolution_failed",
            lookup=lookup,
            error_id=error_id,
            message=message,
            **self._get_context_kwargs(),
        )

    def instances_searched(self, returned: int, total: int) -> None:
        self._logger.info(
            "instances_searched",
            returned=returned,
            total=total,
            **self._get_context_kwargs(),
        )

    def default_language_fallback(self, instance_id: str, reason: str) -> None:
        self._logger.warning(
            "default_language_fallback",
            fallback_instance_id=instance_id,
            reason=reason,
            **self._get_context_kwargs(),
        )
