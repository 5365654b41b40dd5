"""Probes for the shared database infrastructure.

The connection pool reports its lifecycle through a ConnectionProbe so the
pool itself never touches the logger.
"""

from infrastructure.observability.probes import (
    ConnectionProbe,
    DefaultConnectionProbe,
)

__all__ = [
    "ConnectionProbe",
    "DefaultConnectionProbe",
]
