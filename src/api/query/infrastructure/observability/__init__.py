"""Observability probes for Querying infrastructure."""

from query.infrastructure.observability.instance_repository_probe import (
    DefaultInstanceRepositoryProbe,
    InstanceRepositoryProbe,
)

__all__ = [
    "DefaultInstanceRepositoryProbe",
    "InstanceRepositoryProbe",
]
