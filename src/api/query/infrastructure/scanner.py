"""Row scanners mapping instance statements onto the domain model.

Columns are read by ordinal position in INSTANCE_PROJECTION order; the
statement builder selects them in the same order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from infrastructure.database.exceptions import DatabaseError
from query.domain.exceptions import InternalError, NotFoundError
from query.domain.instance import Instance, Instances
from query.domain.value_objects import SetupStep, parse_language_tag
from query.infrastructure.schema import INSTANCE_PROJECTION
from query.ports.executor import Row, RowCursor

_INSTANCE_WIDTH = len(INSTANCE_PROJECTION)

# Errors raised while decoding a row that does not fit the projection.
_DECODE_ERRORS = (IndexError, TypeError, ValueError)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected text column, got {type(value).__name__}")
    return value


def _timestamp(value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise TypeError(f"expected timestamp column, got {type(value).__name__}")
    return value


def _decode_instance(row: Row, host: str = "") -> Instance:
    """Build an Instance from the first projection columns of `row`."""
    if len(row) < _INSTANCE_WIDTH:
        raise IndexError(f"row has {len(row)} columns, expected {_INSTANCE_WIDTH}")

    instance_id = _text(row[0])
    if not instance_id:
        raise ValueError("instance id is empty")

    sequence = row[3]
    if not isinstance(sequence, int) or sequence < 0:
        raise ValueError(f"invalid sequence {sequence!r}")

    return Instance(
        id=instance_id,
        creation_date=_timestamp(row[1]),
        change_date=_timestamp(row[2]),
        sequence=sequence,
        global_org_id=_text(row[4]),
        iam_project_id=_text(row[5]),
        console_id=_text(row[6]),
        console_app_id=_text(row[7]),
        setup_started=SetupStep(row[8] or 0),
        setup_done=SetupStep(row[9] or 0),
        default_language=parse_language_tag(_text(row[10])),
        host=host,
    )


def scan_instance(row: Row | None, host: str = "", **details: Any) -> Instance:
    """Map the single row of an instance lookup.

    Args:
        row: The row returned by the executor, None when nothing matched.
        host: Request host echoed onto the instance.
        details: Lookup context attached to raised errors.

    Raises:
        NotFoundError: If no row matched.
        InternalError: If the row does not decode into an Instance.
    """
    if row is None:
        raise NotFoundError(
            "Errors.Instance.NotFound", error_id="QUERY-n0wng", **details
        )
    try:
        return _decode_instance(row, host)
    except _DECODE_ERRORS as e:
        raise InternalError("Errors.Internal", error_id="QUERY-d9nw", **details) from e


async def _collect(cursor: RowCursor) -> Instances:
    instances: list[Instance] = []
    count = 0
    async for row in cursor:
        instances.append(_decode_instance(row))
        # Identical on every row; keep the last one read.
        count = row[_INSTANCE_WIDTH]
        if not isinstance(count, int) or count < 0:
            raise ValueError(f"invalid count {count!r}")
    return Instances(instances=instances, count=count)


async def scan_instances(cursor: RowCursor, **details: Any) -> Instances:
    """Map every row of an instance collection query.

    The cursor is always closed. A failed read discards everything decoded
    so far; an empty result is a valid, empty collection.

    Raises:
        InternalError: If reading or decoding any row fails, or if the
            cursor cannot be closed.
    """
    try:
        instances = await _collect(cursor)
    except (DatabaseError, *_DECODE_ERRORS) as e:
        raise InternalError(
            "Errors.Internal", error_id="QUERY-3j98f", **details
        ) from e
    finally:
        close_error = await _close(cursor)

    if close_error is not None:
        raise InternalError(
            "Errors.Query.CloseRows", error_id="QUERY-8nlWW", **details
        ) from close_error
    return instances


async def _close(cursor: RowCursor) -> DatabaseError | None:
    try:
        await cursor.close()
    except DatabaseError as e:
        return e
    return None
