"""Unit tests for ObservationContext."""

from shared_kernel.observability_context import ObservationContext


class TestObservationContext:
    def test_as_dict_omits_unset_fields(self):
        assert ObservationContext().as_dict() == {}

    def test_as_dict_merges_extra(self):
        context = ObservationContext(
            request_id="req-1", user_id="user-1", extra={"route": "/instances"}
        )

        assert context.as_dict() == {
            "request_id": "req-1",
            "user_id": "user-1",
            "route": "/instances",
        }

    def test_with_instance_returns_new_context(self):
        context = ObservationContext(request_id="req-1")

        updated = context.with_instance("instance-1")

        assert updated.instance_id == "instance-1"
        assert updated.request_id == "req-1"
        assert context.instance_id is None

    def test_with_extra_accumulates(self):
        context = ObservationContext(extra={"a": 1}).with_extra(b=2)

        assert context.extra == {"a": 1, "b": 2}
