"""SQL Server implementation of the ClusterAdminGatewayPort.

Issues T-SQL against the Always On catalog views and dynamic management
views through SQLAlchemy. One engine is kept per node, built from a URL
template such as:

    mssql+pyodbc://@{node}/master?driver=ODBC+Driver+18+for+SQL+Server&trusted_connection=yes

Credentials are part of the template (or the DSN it names); acquiring them
is outside this adapter. Engines run in AUTOCOMMIT because ALTER
AVAILABILITY GROUP cannot run inside a user transaction.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from agswitch.domain.exceptions import GatewayError, GatewayUnavailable
from agswitch.domain.health import ConnectionState, FailoverMode, ReplicaHealthRecord
from agswitch.domain.replica_group import (
    AvailabilityMode,
    GroupDescriptor,
    Replica,
    ReplicaGroupDatabase,
    ReplicaRole,
    SynchronizationState,
)

_E = TypeVar("_E")

_ROLES: dict[str, ReplicaRole] = {
    "PRIMARY": ReplicaRole.PRIMARY,
    "SECONDARY": ReplicaRole.SECONDARY,
    "RESOLVING": ReplicaRole.RESOLVING,
}

_AVAILABILITY_MODES: dict[str, AvailabilityMode] = {
    "SYNCHRONOUS_COMMIT": AvailabilityMode.SYNCHRONOUS,
    "ASYNCHRONOUS_COMMIT": AvailabilityMode.ASYNCHRONOUS,
}

_SYNCHRONIZATION_STATES: dict[str, SynchronizationState] = {
    "NOT SYNCHRONIZING": SynchronizationState.NOT_SYNCHRONIZING,
    "SYNCHRONIZING": SynchronizationState.SYNCHRONIZING,
    "SYNCHRONIZED": SynchronizationState.SYNCHRONIZED,
    "REVERTING": SynchronizationState.REVERTING,
    "INITIALIZING": SynchronizationState.INITIALIZING,
}

_FAILOVER_MODES: dict[str, FailoverMode] = {
    "AUTOMATIC": FailoverMode.AUTOMATIC,
    "MANUAL": FailoverMode.MANUAL,
    "EXTERNAL": FailoverMode.EXTERNAL,
}

_CONNECTION_STATES: dict[str, ConnectionState] = {
    "CONNECTED": ConnectionState.CONNECTED,
    "DISCONNECTED": ConnectionState.DISCONNECTED,
}

_MODE_KEYWORDS: dict[AvailabilityMode, str] = {
    AvailabilityMode.SYNCHRONOUS: "SYNCHRONOUS_COMMIT",
    AvailabilityMode.ASYNCHRONOUS: "ASYNCHRONOUS_COMMIT",
}

_LIST_GROUPS_SQL = """
SELECT ag.name AS group_name,
       ags.primary_replica AS primary_replica,
       ars.role_desc AS local_role
FROM sys.availability_groups AS ag
JOIN sys.dm_hadr_availability_group_states AS ags
  ON ags.group_id = ag.group_id
LEFT JOIN sys.dm_hadr_availability_replica_states AS ars
  ON ars.group_id = ag.group_id AND ars.is_local = 1
ORDER BY ag.name
"""

# availability_mode 4 is CONFIGURATION_ONLY: those replicas hold no data
# and their commit mode cannot be changed.
_LIST_REPLICAS_SQL = """
SELECT ar.replica_server_name AS replica_name,
       ar.availability_mode_desc AS availability_mode,
       ars.role_desc AS role
FROM sys.availability_replicas AS ar
JOIN sys.availability_groups AS ag
  ON ag.group_id = ar.group_id
LEFT JOIN sys.dm_hadr_availability_replica_states AS ars
  ON ars.replica_id = ar.replica_id
WHERE ag.name = :group_name AND ar.availability_mode <> 4
ORDER BY ar.replica_server_name
"""

_LIST_DATABASES_SQL = """
SELECT DB_NAME(drs.database_id) AS database_name,
       drs.synchronization_state_desc AS synchronization_state
FROM sys.dm_hadr_database_replica_states AS drs
JOIN sys.availability_groups AS ag
  ON ag.group_id = drs.group_id
WHERE ag.name = :group_name AND drs.is_local = 1
ORDER BY database_name
"""

_AUDIT_HEALTH_SQL = """
SELECT ag.name AS group_name,
       ar.replica_server_name AS replica_name,
       ars.role_desc AS role,
       ar.failover_mode_desc AS failover_mode,
       ar.availability_mode_desc AS availability_mode,
       ars.connected_state_desc AS connection_state
FROM sys.availability_groups AS ag
JOIN sys.availability_replicas AS ar
  ON ar.group_id = ag.group_id
LEFT JOIN sys.dm_hadr_availability_replica_states AS ars
  ON ars.replica_id = ar.replica_id
WHERE ag.name = :group_name AND ar.availability_mode <> 4
ORDER BY ar.replica_server_name
"""

_SERVER_PROPERTY_SQL = "SELECT SERVERPROPERTY(:property_name)"


def quote_identifier(name: str) -> str:
    """Quote a T-SQL identifier with brackets."""
    return "[" + name.replace("]", "]]") + "]"


def quote_literal(value: str) -> str:
    """Quote a T-SQL Unicode string literal."""
    return "N'" + value.replace("'", "''") + "'"


class SqlAlchemyClusterGateway:
    """ClusterAdminGatewayPort implementation for SQL Server Always On.

    Connection failures raise GatewayUnavailable; errors raised while a
    statement runs raise GatewayError. Engine text values are mapped onto
    the domain enumerations through closed tables; an unexpected value is a
    GatewayError rather than a silent default.
    """

    def __init__(
        self,
        url_template: str,
        engine_factory: Callable[[str], Engine] | None = None,
        connect_timeout: int = 15,
    ) -> None:
        """Initialize the gateway.

        Args:
            url_template: SQLAlchemy URL with a {node} placeholder.
            engine_factory: Builds an Engine for a URL (dependency injection
                           for tests). Defaults to create_engine in AUTOCOMMIT.
            connect_timeout: Login timeout in seconds passed to the driver.
        """
        self._url_template = url_template
        self._connect_timeout = connect_timeout
        self._engine_factory = engine_factory or self._default_engine
        self._engines: dict[str, Engine] = {}

    def _default_engine(self, url: str) -> Engine:
        return create_engine(
            url,
            isolation_level="AUTOCOMMIT",
            pool_pre_ping=True,
            connect_args={"timeout": self._connect_timeout},
        )

    def _engine(self, node: str) -> Engine:
        engine = self._engines.get(node)
        if engine is None:
            engine = self._engine_factory(self._url_template.format(node=node))
            self._engines[node] = engine
        return engine

    @contextmanager
    def _connection(
        self, node: str, operation: str, group: str | None = None
    ) -> Iterator[Connection]:
        try:
            conn = self._engine(node).connect()
        except SQLAlchemyError as exc:
            raise GatewayUnavailable(
                f"cannot connect to {node}: {exc}",
                node=node,
                group=group,
                operation=operation,
                original_error=exc,
            ) from exc

        try:
            with conn:
                yield conn
        except SQLAlchemyError as exc:
            raise GatewayError(
                f"{operation} failed on {node}: {exc}",
                node=node,
                group=group,
                operation=operation,
                original_error=exc,
            ) from exc

    def _rows(
        self, node: str, operation: str, sql: str, group: str | None = None
    ) -> list[Mapping[str, Any]]:
        params = {"group_name": group} if group is not None else {}
        with self._connection(node, operation, group) as conn:
            return list(conn.execute(text(sql), params).mappings().all())

    @staticmethod
    def _lookup(
        table: Mapping[str, _E],
        value: str | None,
        column: str,
        default: _E | None = None,
    ) -> _E:
        if value is None and default is not None:
            return default
        key = (value or "").strip().upper()
        if key in table:
            return table[key]
        if default is not None:
            return default
        raise GatewayError(f"unexpected {column} value from engine: {value!r}")

    def close(self) -> None:
        """Dispose every engine created by this gateway."""
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()

    def query_server_property(self, node: str, property_name: str) -> Any:
        with self._connection(node, "query_server_property") as conn:
            return conn.execute(
                text(_SERVER_PROPERTY_SQL), {"property_name": property_name}
            ).scalar()

    def list_groups(self, node: str) -> list[GroupDescriptor]:
        rows = self._rows(node, "list_groups", _LIST_GROUPS_SQL)
        return [
            GroupDescriptor(
                name=row["group_name"],
                primary_endpoint=row["primary_replica"] or "",
                local_role=self._lookup(
                    _ROLES, row["local_role"], "role_desc", ReplicaRole.UNKNOWN
                ),
            )
            for row in rows
        ]

    def list_replicas(self, node: str, group: str) -> list[Replica]:
        rows = self._rows(node, "list_replicas", _LIST_REPLICAS_SQL, group)
        return [
            Replica(
                name=row["replica_name"],
                availability_mode=self._lookup(
                    _AVAILABILITY_MODES,
                    row["availability_mode"],
                    "availability_mode_desc",
                ),
                role=self._lookup(_ROLES, row["role"], "role_desc", ReplicaRole.UNKNOWN),
            )
            for row in rows
        ]

    def list_group_databases(self, node: str, group: str) -> list[ReplicaGroupDatabase]:
        rows = self._rows(node, "list_group_databases", _LIST_DATABASES_SQL, group)
        return [
            ReplicaGroupDatabase(
                database_name=row["database_name"],
                synchronization_state=self._lookup(
                    _SYNCHRONIZATION_STATES,
                    row["synchronization_state"],
                    "synchronization_state_desc",
                ),
            )
            for row in rows
        ]

    def set_replica_mode(
        self, node: str, group: str, replica: str, mode: AvailabilityMode
    ) -> None:
        statement = (
            f"ALTER AVAILABILITY GROUP {quote_identifier(group)} "
            f"MODIFY REPLICA ON {quote_literal(replica)} "
            f"WITH (AVAILABILITY_MODE = {_MODE_KEYWORDS[mode]})"
        )
        with self._connection(node, "set_replica_mode", group) as conn:
            conn.execute(text(statement))

    def initiate_failover(self, node: str, group: str) -> None:
        statement = f"ALTER AVAILABILITY GROUP {quote_identifier(group)} FAILOVER"
        with self._connection(node, "initiate_failover", group) as conn:
            conn.execute(text(statement))

    def audit_health(self, node: str, group: str) -> list[ReplicaHealthRecord]:
        rows = self._rows(node, "audit_health", _AUDIT_HEALTH_SQL, group)
        return [
            ReplicaHealthRecord(
                group_name=row["group_name"],
                replica_name=row["replica_name"],
                role=self._lookup(_ROLES, row["role"], "role_desc", ReplicaRole.UNKNOWN),
                failover_mode=self._lookup(
                    _FAILOVER_MODES, row["failover_mode"], "failover_mode_desc"
                ),
                availability_mode=self._lookup(
                    _AVAILABILITY_MODES,
                    row["availability_mode"],
                    "availability_mode_desc",
                ),
                connection_state=self._lookup(
                    _CONNECTION_STATES,
                    row["connection_state"],
                    "connected_state_desc",
                    ConnectionState.UNKNOWN,
                ),
            )
            for row in rows
        ]
