"""Dependency injection for Query bounded context.

Provides dependencies local to the Query context only. The connection pool
and its executor come from infrastructure.dependencies.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from infrastructure.dependencies import get_query_executor
from infrastructure.logging import configure_logging
from infrastructure.settings import QuerySettings, get_query_settings, get_settings
from query.application.observability import (
    DefaultInstanceQueryServiceProbe,
    InstanceQueryServiceProbe,
)
from query.application.services import InstanceQueryService
from query.infrastructure.instance_repository import InstanceQueryRepository
from query.infrastructure.observability import DefaultInstanceRepositoryProbe
from query.infrastructure.schema import InstanceSchema, build_instance_schema

if TYPE_CHECKING:
    from query.ports.executor import QueryExecutor


def get_instance_query_service_probe() -> InstanceQueryServiceProbe:
    """Get InstanceQueryServiceProbe instance.

    Returns:
        DefaultInstanceQueryServiceProbe instance for observability
    """
    return DefaultInstanceQueryServiceProbe()


def schema_from_settings(settings: QuerySettings) -> InstanceSchema:
    """Describe the read tables named by `settings`."""
    return build_instance_schema(
        schema_name=settings.projection_schema,
        instance_table=settings.instance_table,
        domain_table=settings.domain_table,
    )


def build_instance_query_service(
    executor: QueryExecutor,
    settings: QuerySettings | None = None,
    probe: InstanceQueryServiceProbe | None = None,
) -> InstanceQueryService:
    """Compose an InstanceQueryService over `executor`.

    Args:
        executor: Statement executor for the read tables.
        settings: Table names and default timeout; read from the
            environment if omitted.
        probe: Optional service probe.

    Returns:
        A service backed by an InstanceQueryRepository.
    """
    settings = settings or get_query_settings()
    repository = InstanceQueryRepository(
        executor=executor,
        schema=schema_from_settings(settings),
        probe=DefaultInstanceRepositoryProbe(),
    )
    return InstanceQueryService(
        repository=repository,
        probe=probe or get_instance_query_service_probe(),
        default_timeout_seconds=settings.default_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_instance_query_service() -> InstanceQueryService:
    """Get the application-scoped InstanceQueryService (cached).

    Configures logging from the application settings, then composes the
    service over the shared connection pool. The pool must be opened before
    the first call is awaited.
    """
    settings = get_settings()
    configure_logging(debug=settings.debug)
    return build_instance_query_service(get_query_executor(), settings.query)
