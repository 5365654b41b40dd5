"""Unit test fixtures with faked statement execution."""

import asyncio
from datetime import datetime, timezone

import pytest

from infrastructure.database.exceptions import QueryExecutionError

CREATED = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
CHANGED = datetime(2024, 3, 2, 17, 5, tzinfo=timezone.utc)


def make_instance_row(
    instance_id="instance-1",
    *,
    sequence=42,
    language="en",
    setup_started=3,
    setup_done=2,
    count=None,
):
    """Build a row in projection order, optionally with a trailing count."""
    row = [
        instance_id,
        CREATED,
        CHANGED,
        sequence,
        "org-1",
        "project-1",
        "console-client-1",
        "console-app-1",
        setup_started,
        setup_done,
        language,
    ]
    if count is not None:
        row.append(count)
    return tuple(row)


class FakeCursor:
    """In-memory RowCursor recording how it was consumed."""

    def __init__(self, rows=(), fail_at=None, close_error=None):
        self._rows = list(rows)
        self._fail_at = fail_at
        self._close_error = close_error
        self.close_calls = 0
        self.rows_read = 0

    async def __aiter__(self):
        for index, row in enumerate(self._rows):
            if index == self._fail_at:
                raise QueryExecutionError("connection reset by peer")
            self.rows_read += 1
            yield row

    async def close(self):
        self.close_calls += 1
        if self._close_error is not None:
            raise self._close_error


class FakeExecutor:
    """In-memory QueryExecutor returning canned rows."""

    def __init__(self, row=None, cursor=None, error=None, delay=None):
        self.row = row
        self.cursor = cursor if cursor is not None else FakeCursor()
        self.error = error
        self.delay = delay
        self.calls = []
        self.cancelled = False

    async def _wait(self):
        if self.delay is None:
            return
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise

    async def fetchrow(self, query, *args):
        self.calls.append((query, args))
        await self._wait()
        if self.error is not None:
            raise self.error
        return self.row

    async def fetch(self, query, *args):
        self.calls.append((query, args))
        await self._wait()
        if self.error is not None:
            raise self.error
        return self.cursor


@pytest.fixture
def instance_row():
    """Factory for instance rows in projection order."""
    return make_instance_row


@pytest.fixture
def fake_cursor():
    """FakeCursor class for building cursors in tests."""
    return FakeCursor


@pytest.fixture
def fake_executor():
    """FakeExecutor class for building executors in tests."""
    return FakeExecutor


@pytest.fixture
def instance_schema():
    """Default instance read-table descriptor."""
    from query.infrastructure.schema import build_instance_schema

    return build_instance_schema()


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
        pool_min_connections=2,
        pool_max_connections=5,
        statement_timeout_seconds=15,
    )
