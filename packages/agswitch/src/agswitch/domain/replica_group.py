"""Replica group domain entities.

Everything here describes an availability group as observed from one node
during one orchestration run. Nothing is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from agswitch.domain.exceptions import ConfigError


class ReplicaRole(Enum):
    """Role of a replica (or of the queried node) within a group.

    Attributes:
        PRIMARY: Replica holds the read-write copy.
        SECONDARY: Replica receives log records from the primary.
        RESOLVING: Role is being negotiated (e.g., during failover).
        UNKNOWN: The engine did not report a role.
    """

    PRIMARY = "primary"
    SECONDARY = "secondary"
    RESOLVING = "resolving"
    UNKNOWN = "unknown"


class AvailabilityMode(Enum):
    """Commit mode of a replica or, conservatively, of a whole group."""

    SYNCHRONOUS = "synchronous"
    ASYNCHRONOUS = "asynchronous"

    @classmethod
    def classify(cls, modes: Iterable[AvailabilityMode]) -> AvailabilityMode:
        """Classify a group from the commit modes of its replicas.

        A single asynchronous replica makes the whole group asynchronous:
        synchronous failover guarantees do not hold until every replica
        commits synchronously.

        Args:
            modes: Commit modes of every replica in the group.

        Returns:
            ASYNCHRONOUS if any replica is asynchronous, SYNCHRONOUS otherwise
            (including when there are no replicas at all).
        """
        for mode in modes:
            if mode is cls.ASYNCHRONOUS:
                return cls.ASYNCHRONOUS
        return cls.SYNCHRONOUS


class SynchronizationState(Enum):
    """Data synchronization state of one database on one replica."""

    NOT_SYNCHRONIZING = "not_synchronizing"
    SYNCHRONIZING = "synchronizing"
    SYNCHRONIZED = "synchronized"
    REVERTING = "reverting"
    INITIALIZING = "initializing"


@dataclass(frozen=True)
class GroupDescriptor:
    """Raw group metadata as returned by the gateway's list_groups.

    Attributes:
        name: Availability group name.
        primary_endpoint: Server currently holding the primary role.
        local_role: Role of the queried node in this group.
    """

    name: str
    primary_endpoint: str
    local_role: ReplicaRole


@dataclass(frozen=True)
class Replica:
    """One node's copy of a replica group.

    Attributes:
        name: Replica server name, as used by MODIFY REPLICA ON.
        availability_mode: Commit mode at the time it was read.
        role: Current role of this replica.
    """

    name: str
    availability_mode: AvailabilityMode
    role: ReplicaRole = ReplicaRole.UNKNOWN


@dataclass(frozen=True)
class ReplicaGroupDatabase:
    """One database belonging to a replica group on a given node."""

    database_name: str
    synchronization_state: SynchronizationState

    @property
    def is_synchronized(self) -> bool:
        return self.synchronization_state is SynchronizationState.SYNCHRONIZED


@dataclass
class ReplicaGroup:
    """An availability group as discovered on the target node.

    original_mode is captured once at discovery and cannot be reassigned;
    current_mode tracks what the ModeTransitionController has applied.

    Attributes:
        name: Unique group name, stable across nodes.
        primary_endpoint: Server holding the primary role at discovery.
        local_role: Role of the queried node in this group.
        original_mode: Conservative group classification at discovery.
        replicas: Replicas with the commit modes they had at discovery.
        current_mode: Mode currently applied; defaults to original_mode.
    """

    name: str
    primary_endpoint: str
    local_role: ReplicaRole
    original_mode: AvailabilityMode
    replicas: tuple[Replica, ...] = ()
    current_mode: AvailabilityMode | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate the group and default current_mode."""
        if not self.name or not self.name.strip():
            raise ConfigError("replica group name cannot be empty")
        if self.current_mode is None:
            self.current_mode = self.original_mode

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "original_mode" and "original_mode" in self.__dict__:
            raise AttributeError("original_mode is immutable once captured")
        super().__setattr__(name, value)

    @classmethod
    def from_descriptor(
        cls, descriptor: GroupDescriptor, replicas: Iterable[Replica]
    ) -> ReplicaGroup:
        """Build a group from gateway metadata and its replicas."""
        replicas = tuple(replicas)
        return cls(
            name=descriptor.name,
            primary_endpoint=descriptor.primary_endpoint,
            local_role=descriptor.local_role,
            original_mode=AvailabilityMode.classify(
                replica.availability_mode for replica in replicas
            ),
            replicas=replicas,
        )

    @property
    def needs_revert(self) -> bool:
        """True when current_mode differs from original_mode."""
        return self.current_mode is not self.original_mode

    @property
    def asynchronous_replicas(self) -> tuple[Replica, ...]:
        """Replicas that were asynchronous at discovery."""
        return tuple(
            replica
            for replica in self.replicas
            if replica.availability_mode is AvailabilityMode.ASYNCHRONOUS
        )
