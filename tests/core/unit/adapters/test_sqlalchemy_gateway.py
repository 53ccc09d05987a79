"""Unit tests for SqlAlchemyClusterGateway.

The engine is replaced by MagicMock through engine_factory, so these tests
check statement text, row mapping and error translation without a server.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")

from sqlalchemy.exc import OperationalError, ProgrammingError  # noqa: E402

from agswitch.adapters.ports import ClusterAdminGatewayPort  # noqa: E402
from agswitch.adapters.sqlalchemy_gateway import (  # noqa: E402
    SqlAlchemyClusterGateway,
    quote_identifier,
    quote_literal,
)
from agswitch.domain.exceptions import GatewayError, GatewayUnavailable  # noqa: E402
from agswitch.domain.health import ConnectionState, FailoverMode  # noqa: E402
from agswitch.domain.replica_group import (  # noqa: E402
    AvailabilityMode,
    ReplicaRole,
    SynchronizationState,
)

URL = "mssql+pyodbc://@{node}/master?driver=ODBC+Driver+18+for+SQL+Server"


class EngineStub:
    """Engine factory handing out one MagicMock engine per URL."""

    def __init__(self) -> None:
        self.engines: dict[str, MagicMock] = {}
        self.connection = MagicMock(name="connection")

    def __call__(self, url: str) -> MagicMock:
        engine = MagicMock(name=f"engine[{url}]")
        engine.connect.return_value = self.connection
        self.engines[url] = engine
        return engine

    def returns_rows(self, rows: list[dict]) -> None:
        self.connection.execute.return_value.mappings.return_value.all.return_value = rows

    def executed_sql(self) -> list[str]:
        return [str(call.args[0]) for call in self.connection.execute.call_args_list]


@pytest.fixture
def stub() -> EngineStub:
    return EngineStub()


@pytest.fixture
def gateway(stub: EngineStub) -> SqlAlchemyClusterGateway:
    return SqlAlchemyClusterGateway(URL, engine_factory=stub)


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.SqlAlchemyClusterGateway")
class TestQuoting:
    def test_quote_identifier(self) -> None:
        assert quote_identifier("AG1") == "[AG1]"
        assert quote_identifier("odd]name") == "[odd]]name]"

    def test_quote_literal(self) -> None:
        assert quote_literal("SQL2") == "N'SQL2'"
        assert quote_literal("it's") == "N'it''s'"


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.SqlAlchemyClusterGateway")
class TestEngines:
    def test_implements_port(self, gateway) -> None:
        assert isinstance(gateway, ClusterAdminGatewayPort)

    def test_one_engine_per_node(self, gateway, stub) -> None:
        stub.connection.execute.return_value.scalar.return_value = 1

        gateway.query_server_property("SQL1", "IsHadrEnabled")
        gateway.query_server_property("SQL1", "ServerName")
        gateway.query_server_property("SQL2", "IsHadrEnabled")

        assert sorted(stub.engines) == [
            URL.format(node="SQL1"),
            URL.format(node="SQL2"),
        ]

    def test_close_disposes_engines(self, gateway, stub) -> None:
        gateway.query_server_property("SQL1", "IsHadrEnabled")
        engine = stub.engines[URL.format(node="SQL1")]

        gateway.close()

        engine.dispose.assert_called_once_with()


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.SqlAlchemyClusterGateway")
class TestQueries:
    def test_query_server_property(self, gateway, stub) -> None:
        stub.connection.execute.return_value.scalar.return_value = 1

        assert gateway.query_server_property("SQL2", "IsHadrEnabled") == 1
        params = stub.connection.execute.call_args.args[1]
        assert params == {"property_name": "IsHadrEnabled"}

    def test_list_groups_maps_roles(self, gateway, stub) -> None:
        stub.returns_rows(
            [
                {"group_name": "AG1", "primary_replica": "SQL1", "local_role": "SECONDARY"},
                {"group_name": "AG2", "primary_replica": "SQL2", "local_role": "PRIMARY"},
                {"group_name": "AG3", "primary_replica": None, "local_role": None},
            ]
        )

        groups = gateway.list_groups("SQL2")

        assert [(g.name, g.primary_endpoint, g.local_role) for g in groups] == [
            ("AG1", "SQL1", ReplicaRole.SECONDARY),
            ("AG2", "SQL2", ReplicaRole.PRIMARY),
            ("AG3", "", ReplicaRole.UNKNOWN),
        ]

    def test_list_replicas_binds_group_name(self, gateway, stub) -> None:
        stub.returns_rows(
            [
                {
                    "replica_name": "SQL1",
                    "availability_mode": "ASYNCHRONOUS_COMMIT",
                    "role": "PRIMARY",
                },
                {
                    "replica_name": "SQL2",
                    "availability_mode": "SYNCHRONOUS_COMMIT",
                    "role": "SECONDARY",
                },
            ]
        )

        replicas = gateway.list_replicas("SQL2", "AG1")

        assert [(r.name, r.availability_mode) for r in replicas] == [
            ("SQL1", AvailabilityMode.ASYNCHRONOUS),
            ("SQL2", AvailabilityMode.SYNCHRONOUS),
        ]
        assert stub.connection.execute.call_args.args[1] == {"group_name": "AG1"}

    def test_unexpected_availability_mode(self, gateway, stub) -> None:
        stub.returns_rows(
            [{"replica_name": "SQL1", "availability_mode": "WHATEVER", "role": None}]
        )

        with pytest.raises(GatewayError, match="unexpected availability_mode_desc"):
            gateway.list_replicas("SQL2", "AG1")

    def test_list_group_databases(self, gateway, stub) -> None:
        stub.returns_rows(
            [
                {"database_name": "sales", "synchronization_state": "SYNCHRONIZED"},
                {"database_name": "hr", "synchronization_state": "NOT SYNCHRONIZING"},
            ]
        )

        databases = gateway.list_group_databases("SQL2", "AG1")

        assert [d.synchronization_state for d in databases] == [
            SynchronizationState.SYNCHRONIZED,
            SynchronizationState.NOT_SYNCHRONIZING,
        ]

    def test_audit_health(self, gateway, stub) -> None:
        stub.returns_rows(
            [
                {
                    "group_name": "AG1",
                    "replica_name": "SQL1",
                    "role": "SECONDARY",
                    "failover_mode": "MANUAL",
                    "availability_mode": "ASYNCHRONOUS_COMMIT",
                    "connection_state": "CONNECTED",
                },
                {
                    "group_name": "AG1",
                    "replica_name": "SQL3",
                    "role": None,
                    "failover_mode": "AUTOMATIC",
                    "availability_mode": "SYNCHRONOUS_COMMIT",
                    "connection_state": None,
                },
            ]
        )

        first, second = gateway.audit_health("SQL2", "AG1")

        assert first.failover_mode is FailoverMode.MANUAL
        assert first.is_connected
        assert second.role is ReplicaRole.UNKNOWN
        assert second.connection_state is ConnectionState.UNKNOWN


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.SqlAlchemyClusterGateway")
class TestCommands:
    def test_set_replica_mode_statement(self, gateway, stub) -> None:
        gateway.set_replica_mode("SQL1", "AG1", "SQL2", AvailabilityMode.SYNCHRONOUS)

        assert stub.executed_sql() == [
            "ALTER AVAILABILITY GROUP [AG1] MODIFY REPLICA ON N'SQL2' "
            "WITH (AVAILABILITY_MODE = SYNCHRONOUS_COMMIT)"
        ]
        assert URL.format(node="SQL1") in stub.engines

    def test_initiate_failover_statement(self, gateway, stub) -> None:
        gateway.initiate_failover("SQL2", "AG1")

        assert stub.executed_sql() == ["ALTER AVAILABILITY GROUP [AG1] FAILOVER"]
        assert URL.format(node="SQL2") in stub.engines


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.SqlAlchemyClusterGateway")
class TestErrorTranslation:
    def test_connect_failure_is_unavailable(self, stub) -> None:
        def failing_factory(url: str) -> MagicMock:
            engine = stub(url)
            engine.connect.side_effect = OperationalError(
                "connect", {}, Exception("login timeout expired")
            )
            return engine

        gateway = SqlAlchemyClusterGateway(URL, engine_factory=failing_factory)

        with pytest.raises(GatewayUnavailable) as exc_info:
            gateway.list_groups("SQL2")

        assert exc_info.value.node == "SQL2"
        assert exc_info.value.operation == "list_groups"
        assert isinstance(exc_info.value.original_error, OperationalError)

    def test_statement_failure_is_gateway_error(self, gateway, stub) -> None:
        stub.connection.execute.side_effect = ProgrammingError(
            "ALTER", {}, Exception("replica is not in a state to fail over")
        )

        with pytest.raises(GatewayError) as exc_info:
            gateway.initiate_failover("SQL2", "AG1")

        assert not isinstance(exc_info.value, GatewayUnavailable)
        assert exc_info.value.group == "AG1"
        assert exc_info.value.operation == "initiate_failover"
        assert "initiate_failover failed on SQL2" in str(exc_info.value)
