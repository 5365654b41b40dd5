"""Instance context value object for the resolved request instance.

This module contains the pure value object that represents the instance a
request was already resolved to by upstream request handling. It is
framework-agnostic and contains no lookup logic, making it safe for the
shared kernel.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InstanceContext:
    """Resolved instance identity for the current request.

    Attributes:
        instance_id: The instance identifier attached by request handling.
        requested_domain: The host the request was addressed to, echoed back
            unaltered on the loaded instance.
    """

    instance_id: str
    requested_domain: str = ""
