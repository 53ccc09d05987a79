"""Port interfaces for the agswitch core package.

Ports define the contracts that adapters must implement.
These are Protocol classes (structural subtyping) for flexible testing.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agswitch.domain.events import GroupStateChanged
    from agswitch.domain.health import ReplicaHealthRecord
    from agswitch.domain.replica_group import (
        AvailabilityMode,
        GroupDescriptor,
        Replica,
        ReplicaGroup,
        ReplicaGroupDatabase,
    )


@runtime_checkable
class ClusterAdminGatewayPort(Protocol):
    """Port interface for the database engine's administrative operations.

    Implementations wrap one engine (SQL Server over SQLAlchemy, an
    in-memory fake, ...). The orchestration core never talks to the engine
    any other way; mode changes and failovers issued here are the only
    writes to replica group state.

    Contract:
        - Every method is a synchronous, blocking call with no retry.
        - Transport failures raise GatewayUnavailable.
        - Engine rejections raise GatewayError.
        - List methods return lists (possibly empty), never None.
    """

    def query_server_property(self, node: str, property_name: str) -> Any:
        """Return a server property value (e.g., "IsHadrEnabled").

        Raises:
            GatewayUnavailable: If the node cannot be reached.
        """
        ...

    def list_groups(self, node: str) -> list[GroupDescriptor]:
        """List the availability groups visible from node."""
        ...

    def list_replicas(self, node: str, group: str) -> list[Replica]:
        """List the replicas of group with their commit modes."""
        ...

    def list_group_databases(self, node: str, group: str) -> list[ReplicaGroupDatabase]:
        """List the local databases of group on node with their sync state."""
        ...

    def set_replica_mode(
        self, node: str, group: str, replica: str, mode: AvailabilityMode
    ) -> None:
        """Set one replica's commit mode. Must be issued on the primary."""
        ...

    def initiate_failover(self, node: str, group: str) -> None:
        """Fail group over to node. Must be issued on the target secondary."""
        ...

    def audit_health(self, node: str, group: str) -> list[ReplicaHealthRecord]:
        """Return health records for every replica of group seen from node."""
        ...


@runtime_checkable
class ApprovalProviderPort(Protocol):
    """Port interface for operator approval.

    Contract:
        - approve(group) returns True to include the group in the run.
        - approve_unsynchronized(group) returns True to fail over a group
          whose databases did not synchronize in time.
        - Each call is an independent decision.
    """

    def approve(self, group: ReplicaGroup) -> bool:
        ...

    def approve_unsynchronized(self, group: ReplicaGroup) -> bool:
        ...


@runtime_checkable
class EventEmitterPort(Protocol):
    """Port interface for emitting group lifecycle events.

    Contract:
        - emit(event) delivers the event to all registered observers
        - emit() is fire-and-forget (no return value, no exceptions propagated)
    """

    def emit(self, event: GroupStateChanged) -> None:
        """Emit a lifecycle event to observers.

        Args:
            event: The GroupStateChanged event to emit.
        """
        ...


@runtime_checkable
class LoggingPort(Protocol):
    """Port interface for structured logging.

    Implementations handle log message delivery to configured logging backends.

    Contract:
        - One method per severity; critical is used for conditions that need
          an operator decision (e.g., synchronization timeouts).
        - All methods are fire-and-forget (no return value, no exceptions
          propagated)
    """

    def debug(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def critical(self, message: str) -> None:
        ...


@runtime_checkable
class TimeProvider(Protocol):
    """Port interface for time operations.

    Enables deterministic testing of the synchronization wait and of
    failover timing through fake implementations.

    Contract:
        - get_time_seconds() returns a monotonic, non-decreasing float
        - sleep(seconds) blocks for seconds (fakes advance their clock)
    """

    def get_time_seconds(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class RealTimeProvider:
    """Default implementation: monotonic system clock and real sleeping."""

    def get_time_seconds(self) -> float:
        """Return seconds from time.monotonic()."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        """Block for seconds."""
        if seconds > 0:
            time.sleep(seconds)
