"""Query application layer.

Contains application services that orchestrate instance reads
and provide the public API for the Querying bounded context.
"""

from query.application.services import InstanceQueryService

__all__ = ["InstanceQueryService"]
