"""Replica health value objects produced by the post-failover audit."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from agswitch.domain.failover import FailoverAttempt
from agswitch.domain.replica_group import AvailabilityMode, ReplicaRole


class FailoverMode(Enum):
    """Failover mode configured on a replica."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"
    EXTERNAL = "external"


class ConnectionState(Enum):
    """Connection state of a replica as seen from the audited node."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ReplicaHealthRecord:
    """Health of one replica as seen from the audited node.

    This is a domain value object with zero external dependencies.

    Attributes:
        group_name: Availability group the replica belongs to.
        replica_name: Replica server name.
        role: Current role of the replica.
        failover_mode: Configured failover mode.
        availability_mode: Configured commit mode.
        connection_state: Whether the replica is connected.
    """

    group_name: str
    replica_name: str
    role: ReplicaRole
    failover_mode: FailoverMode
    availability_mode: AvailabilityMode
    connection_state: ConnectionState

    @property
    def is_connected(self) -> bool:
        return self.connection_state is ConnectionState.CONNECTED


@dataclass(frozen=True)
class BenchmarkReport:
    """Round-trip figures from a benchmark run.

    Attributes:
        failover_seconds: Duration of the forward failover command.
        first_probe_seconds: Duration of the health probe after failover.
        failback: Attempt record of the failback to the original primary,
                  or None if the first probe failed and failback was skipped.
        second_probe_seconds: Duration of the health probe after failback,
                              or None if failback did not succeed.
    """

    failover_seconds: float
    first_probe_seconds: float
    failback: FailoverAttempt | None = None
    second_probe_seconds: float | None = None

    @property
    def round_trip_seconds(self) -> float | None:
        """Failover plus failback duration, when both completed."""
        if self.failback is None or not self.failback.succeeded:
            return None
        return self.failover_seconds + self.failback.duration
