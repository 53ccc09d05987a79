"""Unit tests for ReplicaGroupInventory use case."""

import pytest

from agswitch.adapters.fakes import FakeClusterGateway
from agswitch.domain.exceptions import (
    GatewayError,
    GatewayUnavailable,
    HadrNotEnabledError,
)
from agswitch.domain.replica_group import ReplicaRole
from agswitch.usecases.inventory import ReplicaGroupInventory

from tests.core.unit.builders import ASYNC, SYNC, make_group


@pytest.fixture
def cluster(gateway: FakeClusterGateway) -> FakeClusterGateway:
    gateway.add_group("AG1", primary="SQL1", replicas={"SQL1": ASYNC, "SQL2": ASYNC})
    gateway.add_group("AG2", primary="SQL2", replicas={"SQL1": SYNC, "SQL2": SYNC})
    gateway.add_group("AG3", primary="SQL3", replicas={"SQL3": SYNC, "SQL4": SYNC})
    return gateway


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.ReplicaGroupInventory")
class TestReplicaGroupInventory:
    """Test discovery and classification of replica groups."""

    def test_lists_groups_visible_from_node(self, cluster, make_context) -> None:
        groups = ReplicaGroupInventory(make_context()).list_groups("SQL2")

        assert [g.name for g in groups] == ["AG1", "AG2"]

    def test_classifies_role_and_mode(self, cluster, make_context) -> None:
        ag1, ag2 = ReplicaGroupInventory(make_context()).list_groups("SQL2")

        assert ag1.local_role is ReplicaRole.SECONDARY
        assert ag1.original_mode is ASYNC
        assert ag1.primary_endpoint == "SQL1"
        assert ag2.local_role is ReplicaRole.PRIMARY
        assert ag2.original_mode is SYNC

    def test_mixed_modes_classify_as_asynchronous(self, gateway, make_context) -> None:
        gateway.add_group(
            "AG1", primary="SQL1", replicas={"SQL1": SYNC, "SQL2": SYNC, "SQL3": ASYNC}
        )
        (group,) = ReplicaGroupInventory(make_context()).list_groups("SQL2")
        assert group.original_mode is ASYNC
        assert group.current_mode is ASYNC

    def test_no_groups(self, gateway, make_context, logger) -> None:
        assert ReplicaGroupInventory(make_context()).list_groups("SQL2") == []
        assert any("0 replica group(s)" in m for m in logger.infos)

    def test_hadr_disabled_raises(self, cluster, make_context) -> None:
        cluster.hadr_enabled = False
        with pytest.raises(HadrNotEnabledError, match="not enabled on SQL2"):
            ReplicaGroupInventory(make_context()).list_groups("SQL2")

    def test_unreachable_node_raises(self, cluster, make_context) -> None:
        cluster.unreachable_nodes.add("SQL2")
        with pytest.raises(GatewayUnavailable):
            ReplicaGroupInventory(make_context()).list_groups("SQL2")

    def test_rejected_server_property_propagates(self, cluster, make_context) -> None:
        cluster.fail_on("query_server_property")

        with pytest.raises(GatewayError, match="query_server_property rejected") as exc_info:
            ReplicaGroupInventory(make_context()).list_groups("SQL2")

        assert not isinstance(exc_info.value, GatewayUnavailable)
        assert cluster.calls_for("list_groups") == []

    def test_rejected_group_listing_propagates(self, cluster, make_context) -> None:
        cluster.fail_on("list_groups")

        with pytest.raises(GatewayError, match="list_groups rejected"):
            ReplicaGroupInventory(make_context()).list_groups("SQL2")

        assert cluster.calls_for("list_replicas") == []

    def test_group_with_unreadable_replicas_is_skipped(
        self, cluster, make_context, logger
    ) -> None:
        cluster.fail_on("list_replicas", group="AG1")

        groups = ReplicaGroupInventory(make_context()).list_groups("SQL2")

        assert [g.name for g in groups] == ["AG2"]
        assert any("skipping group 'AG1'" in m for m in logger.errors)

    def test_unavailable_while_reading_replicas_is_fatal(
        self, cluster, make_context
    ) -> None:
        cluster.fail_on(
            "list_replicas", error=GatewayUnavailable("connection lost", node="SQL2")
        )
        with pytest.raises(GatewayUnavailable, match="connection lost"):
            ReplicaGroupInventory(make_context()).list_groups("SQL2")

    def test_count_by_mode(self) -> None:
        groups = [
            make_group("AG1"),
            make_group("AG2", modes={"SQL1": SYNC, "SQL2": SYNC}),
            make_group("AG3"),
        ]
        assert ReplicaGroupInventory.count_by_mode(groups) == {SYNC: 1, ASYNC: 2}
