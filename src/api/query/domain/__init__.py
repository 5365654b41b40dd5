"""Domain layer for the Querying bounded context."""

from query.domain.exceptions import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    QueryError,
)
from query.domain.instance import Instance, Instances, RequestedInstance
from query.domain.value_objects import (
    UNDEFINED_LANGUAGE,
    SetupStep,
    parse_language_tag,
)

__all__ = [
    "Instance",
    "Instances",
    "InternalError",
    "InvalidArgumentError",
    "NotFoundError",
    "QueryError",
    "RequestedInstance",
    "SetupStep",
    "UNDEFINED_LANGUAGE",
    "parse_language_tag",
]
