"""Fake cluster gateway for testing.

An in-memory model of an availability group cluster that implements
ClusterAdminGatewayPort. It enforces the same preconditions the engine does
(mode changes on the primary, failover on a synchronized synchronous
secondary), records every call, and lets tests inject failures, unreachable
nodes and slow synchronization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from agswitch.adapters.fakes.fake_time_provider import FakeTimeProvider
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


@dataclass(frozen=True)
class GatewayCall:
    """Record of one gateway call."""

    operation: str
    node: str
    group: str | None = None
    replica: str | None = None
    mode: AvailabilityMode | None = None


@dataclass
class FakeReplica:
    """Mutable replica state inside the fake cluster."""

    name: str
    mode: AvailabilityMode
    failover_mode: FailoverMode = FailoverMode.MANUAL
    connected: bool = True


@dataclass
class FakeGroup:
    """Mutable group state inside the fake cluster.

    Attributes:
        sync_after_polls: Number of database polls, counted once every
                         replica is synchronous, before the databases report
                         SYNCHRONIZED. None means they never synchronize.
    """

    name: str
    primary: str
    replicas: dict[str, FakeReplica]
    databases: tuple[str, ...] = ("db1",)
    sync_after_polls: int | None = 0
    sync_polls: int = 0

    @property
    def all_synchronous(self) -> bool:
        return all(
            replica.mode is AvailabilityMode.SYNCHRONOUS
            for replica in self.replicas.values()
        )

    @property
    def is_synchronized(self) -> bool:
        return (
            self.all_synchronous
            and self.sync_after_polls is not None
            and self.sync_polls >= self.sync_after_polls
        )

    def mode_of(self, replica: str) -> AvailabilityMode:
        return self.replicas[replica].mode


@dataclass
class _FailureRule:
    operation: str
    group: str | None
    error: GatewayError
    remaining: int | None

    def matches(self, operation: str, group: str | None) -> bool:
        if self.remaining == 0:
            return False
        return self.operation == operation and (
            self.group is None or self.group == group
        )


class FakeClusterGateway:
    """In-memory implementation of ClusterAdminGatewayPort.

    Example:
        >>> gateway = FakeClusterGateway()
        >>> gateway.add_group(
        ...     "AG1",
        ...     primary="SQL1",
        ...     replicas={"SQL1": AvailabilityMode.ASYNCHRONOUS,
        ...               "SQL2": AvailabilityMode.ASYNCHRONOUS},
        ... )
        >>> [g.local_role for g in gateway.list_groups("SQL2")]
        [<ReplicaRole.SECONDARY: 'secondary'>]
    """

    def __init__(
        self,
        hadr_enabled: bool = True,
        clock: FakeTimeProvider | None = None,
        latency_seconds: dict[str, float] | None = None,
    ) -> None:
        """Initialize an empty cluster.

        Args:
            hadr_enabled: Value reported for the IsHadrEnabled property.
            clock: Fake clock advanced by latency_seconds on each call.
            latency_seconds: Simulated duration per operation name.
        """
        self.hadr_enabled = hadr_enabled
        self.groups: dict[str, FakeGroup] = {}
        self.unreachable_nodes: set[str] = set()
        self._clock = clock
        self._latency = dict(latency_seconds or {})
        self._failures: list[_FailureRule] = []
        self._calls: list[GatewayCall] = []

    # ----- Test setup -----

    def add_group(
        self,
        name: str,
        primary: str,
        replicas: dict[str, AvailabilityMode],
        databases: Iterable[str] = ("db1",),
        sync_after_polls: int | None = 0,
    ) -> FakeGroup:
        """Add a group; replicas maps server name to commit mode."""
        if primary not in replicas:
            raise ValueError(f"primary {primary!r} must be one of the replicas")
        group = FakeGroup(
            name=name,
            primary=primary,
            replicas={
                replica_name: FakeReplica(replica_name, mode)
                for replica_name, mode in replicas.items()
            },
            databases=tuple(databases),
            sync_after_polls=sync_after_polls,
        )
        self.groups[name] = group
        return group

    def fail_on(
        self,
        operation: str,
        group: str | None = None,
        error: GatewayError | None = None,
        times: int | None = None,
    ) -> None:
        """Make operation fail.

        Args:
            operation: Gateway method name, e.g. "initiate_failover".
            group: Only fail for this group (any group if None).
            error: Exception to raise. Defaults to a GatewayError.
            times: Fail only the next N matching calls (always if None).
        """
        self._failures.append(
            _FailureRule(
                operation=operation,
                group=group,
                error=error
                or GatewayError(
                    f"{operation} rejected by engine", group=group, operation=operation
                ),
                remaining=times,
            )
        )

    # ----- Inspection -----

    @property
    def calls(self) -> list[GatewayCall]:
        """All recorded calls, in order (copy)."""
        return list(self._calls)

    def calls_for(self, operation: str, group: str | None = None) -> list[GatewayCall]:
        return [
            call
            for call in self._calls
            if call.operation == operation and (group is None or call.group == group)
        ]

    def clear_calls(self) -> None:
        self._calls.clear()

    # ----- Internals -----

    def _enter(
        self,
        operation: str,
        node: str,
        group: str | None = None,
        replica: str | None = None,
        mode: AvailabilityMode | None = None,
    ) -> None:
        self._calls.append(GatewayCall(operation, node, group, replica, mode))
        if self._clock is not None:
            self._clock.advance(self._latency.get(operation, 0.0))
        if node in self.unreachable_nodes:
            raise GatewayUnavailable(
                f"node {node} is unreachable", node=node, group=group, operation=operation
            )
        for rule in self._failures:
            if rule.matches(operation, group):
                if rule.remaining is not None:
                    rule.remaining -= 1
                raise rule.error

    def _group(self, node: str, group: str, operation: str) -> FakeGroup:
        fake = self.groups.get(group)
        if fake is None or node not in fake.replicas:
            raise GatewayError(
                f"availability group {group!r} is not visible from {node}",
                node=node,
                group=group,
                operation=operation,
            )
        return fake

    # ----- ClusterAdminGatewayPort -----

    def query_server_property(self, node: str, property_name: str) -> Any:
        self._enter("query_server_property", node)
        if property_name == "IsHadrEnabled":
            return 1 if self.hadr_enabled else 0
        if property_name == "ServerName":
            return node
        return None

    def list_groups(self, node: str) -> list[GroupDescriptor]:
        self._enter("list_groups", node)
        return [
            GroupDescriptor(
                name=group.name,
                primary_endpoint=group.primary,
                local_role=(
                    ReplicaRole.PRIMARY if group.primary == node else ReplicaRole.SECONDARY
                ),
            )
            for group in self.groups.values()
            if node in group.replicas
        ]

    def list_replicas(self, node: str, group: str) -> list[Replica]:
        self._enter("list_replicas", node, group)
        fake = self._group(node, group, "list_replicas")
        return [
            Replica(
                name=replica.name,
                availability_mode=replica.mode,
                role=(
                    ReplicaRole.PRIMARY
                    if replica.name == fake.primary
                    else ReplicaRole.SECONDARY
                ),
            )
            for replica in fake.replicas.values()
        ]

    def list_group_databases(self, node: str, group: str) -> list[ReplicaGroupDatabase]:
        self._enter("list_group_databases", node, group)
        fake = self._group(node, group, "list_group_databases")
        state = (
            SynchronizationState.SYNCHRONIZED
            if fake.is_synchronized
            else SynchronizationState.SYNCHRONIZING
        )
        if fake.all_synchronous:
            fake.sync_polls += 1
        return [ReplicaGroupDatabase(name, state) for name in fake.databases]

    def set_replica_mode(
        self, node: str, group: str, replica: str, mode: AvailabilityMode
    ) -> None:
        self._enter("set_replica_mode", node, group, replica, mode)
        fake = self._group(node, group, "set_replica_mode")
        if fake.primary != node:
            raise GatewayError(
                f"MODIFY REPLICA must be issued on the primary ({fake.primary}), not {node}",
                node=node,
                group=group,
                operation="set_replica_mode",
            )
        if replica not in fake.replicas:
            raise GatewayError(
                f"replica {replica!r} is not part of {group!r}",
                node=node,
                group=group,
                operation="set_replica_mode",
            )
        fake.replicas[replica].mode = mode

    def initiate_failover(self, node: str, group: str) -> None:
        self._enter("initiate_failover", node, group)
        fake = self._group(node, group, "initiate_failover")
        if fake.primary == node:
            raise GatewayError(
                f"{node} is already the primary of {group!r}",
                node=node,
                group=group,
                operation="initiate_failover",
            )
        if not fake.is_synchronized:
            raise GatewayError(
                f"{group!r} is not synchronized on {node}; planned failover refused",
                node=node,
                group=group,
                operation="initiate_failover",
            )
        fake.primary = node

    def audit_health(self, node: str, group: str) -> list[ReplicaHealthRecord]:
        self._enter("audit_health", node, group)
        fake = self._group(node, group, "audit_health")
        return [
            ReplicaHealthRecord(
                group_name=fake.name,
                replica_name=replica.name,
                role=(
                    ReplicaRole.PRIMARY
                    if replica.name == fake.primary
                    else ReplicaRole.SECONDARY
                ),
                failover_mode=replica.failover_mode,
                availability_mode=replica.mode,
                connection_state=(
                    ConnectionState.CONNECTED
                    if replica.connected
                    else ConnectionState.DISCONNECTED
                ),
            )
            for replica in fake.replicas.values()
        ]
