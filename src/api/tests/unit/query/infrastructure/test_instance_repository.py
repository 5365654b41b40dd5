"""Unit tests for InstanceQueryRepository.

The executor is faked; statements are compiled for real so the tests see the
text and arguments the store would receive.
"""

import asyncio
import re
from dataclasses import replace
from unittest.mock import MagicMock, create_autospec

import pytest
from sqlalchemy.exc import CompileError

from infrastructure.database.exceptions import QueryExecutionError
from query.domain.exceptions import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from query.domain.instance import RequestedInstance
from query.infrastructure.instance_repository import (
    InstanceQueryRepository,
    strip_port,
)
from query.infrastructure.observability import InstanceRepositoryProbe
from query.infrastructure.predicates import (
    EqualsQuery,
    instance_queries,
    new_instance_ids_query,
)
from query.infrastructure.schema import InstanceColumn, InstanceDomainColumn
from query.ports.repositories import IInstanceQueryRepository
from shared_kernel.instance_context import InstanceContext
from shared_kernel.observability_context import ObservationContext
from shared_kernel.query_context import (
    ContextCancelledError,
    ContextDeadlineExceededError,
    QueryContext,
)


@pytest.fixture
def probe():
    probe = create_autospec(InstanceRepositoryProbe, instance=True)
    probe.with_context.return_value = probe
    return probe


@pytest.fixture
def make_repository(probe):
    def _make(executor):
        return InstanceQueryRepository(executor=executor, probe=probe)

    return _make


class BrokenQuery:
    """Predicate whose select cannot be compiled."""

    column = InstanceColumn.ID

    def to_clause(self, schema):
        raise NotImplementedError

    def apply(self, select, schema):
        broken = MagicMock()
        broken.get_final_froms.return_value = select.get_final_froms()
        broken.compile.side_effect = CompileError("unsupported construct")
        return broken


class TestStripPort:
    @pytest.mark.parametrize(
        "host,expected",
        [
            ("acme.example.com", "acme.example.com"),
            ("acme.example.com:8080", "acme.example.com"),
            ("localhost:", "localhost"),
            ("a:b:c", "a"),
            ("", ""),
        ],
    )
    def test_keeps_everything_before_first_colon(self, host, expected):
        assert strip_port(host) == expected


class TestGetCurrent:
    """Tests for resolving the already-resolved instance."""

    def test_implements_port(self, make_repository, fake_executor):
        assert isinstance(make_repository(fake_executor()), IInstanceQueryRepository)

    @pytest.mark.asyncio
    async def test_loads_instance_by_id(
        self, make_repository, fake_executor, instance_row, probe
    ):
        executor = fake_executor(row=instance_row("instance-1"))
        repository = make_repository(executor)

        instance = await repository.get_current(
            QueryContext(), InstanceContext("instance-1", "acme.example.com")
        )

        assert instance.id == "instance-1"
        assert instance.host == "acme.example.com"
        query, args = executor.calls[0]
        assert args == ("instance-1",)
        assert re.search(r"projections\.instances\.id = \$1\b", query)
        probe.instance_retrieved.assert_called_once_with(
            "instance_by_id", "instance-1"
        )

    @pytest.mark.asyncio
    async def test_missing_instance_is_not_found(
        self, make_repository, fake_executor, probe
    ):
        repository = make_repository(fake_executor(row=None))

        with pytest.raises(NotFoundError) as exc_info:
            await repository.get_current(QueryContext(), InstanceContext("missing"))

        assert exc_info.value.details == {"lookup": "instance_by_id", "key": "missing"}
        probe.instance_not_found.assert_called_once_with("instance_by_id", "missing")

    @pytest.mark.asyncio
    async def test_storage_failure_is_internal(
        self, make_repository, fake_executor, probe
    ):
        failure = QueryExecutionError("relation does not exist")
        repository = make_repository(fake_executor(error=failure))

        with pytest.raises(InternalError) as exc_info:
            await repository.get_current(QueryContext(), InstanceContext("instance-1"))

        assert exc_info.value.message == "Errors.Internal"
        assert exc_info.value.__cause__ is failure
        assert "relation" not in str(exc_info.value)
        probe.instance_lookup_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_undecodable_row_is_internal(
        self, make_repository, fake_executor, instance_row, probe
    ):
        repository = make_repository(fake_executor(row=instance_row(sequence=-3)))

        with pytest.raises(InternalError):
            await repository.get_current(QueryContext(), InstanceContext("instance-1"))

        probe.instance_lookup_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancelled_context_is_internal_not_not_found(
        self, make_repository, fake_executor
    ):
        """A cancelled lookup must never look like an absent instance."""
        executor = fake_executor(row=None)
        repository = make_repository(executor)
        ctx = QueryContext()
        ctx.cancel()

        with pytest.raises(InternalError) as exc_info:
            await repository.get_current(ctx, InstanceContext("instance-1"))

        assert isinstance(exc_info.value.__cause__, ContextCancelledError)

    @pytest.mark.asyncio
    async def test_cancellation_aborts_running_statement(
        self, make_repository, fake_executor, instance_row
    ):
        executor = fake_executor(row=instance_row(), delay=10)
        repository = make_repository(executor)
        ctx = QueryContext()

        task = asyncio.create_task(
            repository.get_current(ctx, InstanceContext("instance-1"))
        )
        await asyncio.sleep(0.01)
        ctx.cancel()

        with pytest.raises(InternalError) as exc_info:
            await task

        assert isinstance(exc_info.value.__cause__, ContextCancelledError)
        assert executor.cancelled is True

    @pytest.mark.asyncio
    async def test_deadline_is_internal(
        self, make_repository, fake_executor, instance_row
    ):
        executor = fake_executor(row=instance_row(), delay=10)
        repository = make_repository(executor)

        with pytest.raises(InternalError) as exc_info:
            await repository.get_current(
                QueryContext.with_timeout(0.01), InstanceContext("instance-1")
            )

        assert isinstance(exc_info.value.__cause__, ContextDeadlineExceededError)
        assert executor.cancelled is True

    @pytest.mark.asyncio
    async def test_probe_receives_observation_context(
        self, make_repository, fake_executor, instance_row, probe
    ):
        observation = ObservationContext(request_id="req-1")
        repository = make_repository(fake_executor(row=instance_row()))

        await repository.get_current(
            QueryContext(observation=observation), InstanceContext("instance-1")
        )

        probe.with_context.assert_called_with(observation)


class TestGetByHost:
    """Tests for resolving an instance from the request host."""

    @pytest.mark.asyncio
    async def test_matches_domain_binding(
        self, make_repository, fake_executor, instance_row
    ):
        executor = fake_executor(row=instance_row())
        repository = make_repository(executor)

        instance = await repository.get_by_host(QueryContext(), "acme.example.com")

        assert isinstance(instance, RequestedInstance)
        assert instance.instance_id == "instance-1"
        assert instance.requested_domain == "acme.example.com"
        query, args = executor.calls[0]
        assert args == ("acme.example.com",)
        assert "JOIN projections.instance_domains" in query

    @pytest.mark.asyncio
    async def test_port_is_ignored_for_matching(
        self, make_repository, fake_executor, instance_row
    ):
        executor = fake_executor(row=instance_row())
        repository = make_repository(executor)

        with_port = await repository.get_by_host(
            QueryContext(), "acme.example.com:8080"
        )
        without_port = await repository.get_by_host(QueryContext(), "acme.example.com")

        assert executor.calls[0] == executor.calls[1]
        assert with_port.requested_domain == "acme.example.com:8080"
        assert replace(with_port, host="") == replace(without_port, host="")

    @pytest.mark.asyncio
    async def test_unknown_host_is_not_found(self, make_repository, fake_executor):
        repository = make_repository(fake_executor(row=None))

        with pytest.raises(NotFoundError) as exc_info:
            await repository.get_by_host(QueryContext(), "unknown.example.com:443")

        assert exc_info.value.details == {
            "lookup": "instance_by_host",
            "key": "unknown.example.com",
        }

    @pytest.mark.asyncio
    async def test_cancelled_context_is_internal(self, make_repository, fake_executor):
        repository = make_repository(fake_executor(row=None))
        ctx = QueryContext()
        ctx.cancel()

        with pytest.raises(InternalError):
            await repository.get_by_host(ctx, "acme.example.com")


class TestSearch:
    """Tests for instance collection queries."""

    @pytest.mark.asyncio
    async def test_returns_instances_with_total(
        self, make_repository, fake_executor, fake_cursor, instance_row, probe
    ):
        cursor = fake_cursor(
            [instance_row("instance-1", count=12), instance_row("instance-2", count=12)]
        )
        executor = fake_executor(cursor=cursor)
        repository = make_repository(executor)

        result = await repository.search(
            QueryContext(),
            instance_queries([new_instance_ids_query("instance-1", "instance-2")]),
        )

        assert [i.id for i in result.instances] == ["instance-1", "instance-2"]
        assert result.count == 12
        assert cursor.close_calls == 1
        query, args = executor.calls[0]
        assert "count(*) OVER ()" in query
        assert args == (["instance-1", "instance-2"],)
        probe.instances_listed.assert_called_once_with(returned=2, total=12)

    @pytest.mark.asyncio
    async def test_no_match_is_empty_not_error(
        self, make_repository, fake_executor, fake_cursor
    ):
        repository = make_repository(fake_executor(cursor=fake_cursor([])))

        result = await repository.search(
            QueryContext(),
            instance_queries([EqualsQuery(InstanceColumn.GLOBAL_ORG_ID, "none")]),
        )

        assert result.instances == []
        assert result.count == 0

    @pytest.mark.asyncio
    async def test_storage_failure_is_internal(self, make_repository, fake_executor):
        failure = QueryExecutionError("could not start transaction")
        repository = make_repository(fake_executor(error=failure))

        with pytest.raises(InternalError) as exc_info:
            await repository.search(QueryContext(), instance_queries())

        assert exc_info.value.error_id == "QUERY-3j98f"
        assert exc_info.value.__cause__ is failure

    @pytest.mark.asyncio
    async def test_read_failure_is_internal(
        self, make_repository, fake_executor, fake_cursor, instance_row, probe
    ):
        cursor = fake_cursor(
            [instance_row(count=2), instance_row("instance-2", count=2)], fail_at=1
        )
        repository = make_repository(fake_executor(cursor=cursor))

        with pytest.raises(InternalError):
            await repository.search(QueryContext(), instance_queries())

        assert cursor.close_calls == 1
        probe.instance_lookup_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancelled_context_is_internal(
        self, make_repository, fake_executor, fake_cursor
    ):
        executor = fake_executor(cursor=fake_cursor([]))
        repository = make_repository(executor)
        ctx = QueryContext()
        ctx.cancel()

        with pytest.raises(InternalError) as exc_info:
            await repository.search(ctx, instance_queries())

        assert isinstance(exc_info.value.__cause__, ContextCancelledError)
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_rejected_statement_is_not_executed(
        self, make_repository, fake_executor, probe
    ):
        executor = fake_executor()
        repository = make_repository(executor)

        with pytest.raises(InvalidArgumentError) as exc_info:
            await repository.search(QueryContext(), instance_queries([BrokenQuery()]))

        assert exc_info.value.details["lookup"] == "search_instances"
        assert executor.calls == []
        probe.statement_rejected.assert_called_once()

    @pytest.mark.asyncio
    async def test_domain_predicate_is_rejected_not_cross_joined(
        self, make_repository, fake_executor, probe
    ):
        executor = fake_executor()
        repository = make_repository(executor)

        with pytest.raises(InvalidArgumentError) as exc_info:
            await repository.search(
                QueryContext(),
                instance_queries(
                    [EqualsQuery(InstanceDomainColumn.DOMAIN, "acme.example.com")]
                ),
            )

        assert exc_info.value.error_id == "QUERY-M9fow"
        assert executor.calls == []
        probe.statement_rejected.assert_called_once()
