"""Domain layer: Entities with zero external dependencies."""

from agswitch.domain.exceptions import (
    AgSwitchError,
    AuditError,
    ConfigError,
    FailoverRejectedError,
    GatewayError,
    GatewayUnavailable,
    HadrNotEnabledError,
    InvalidTransitionError,
)
from agswitch.domain.failover import (
    FailoverAttempt,
    FailoverOutcome,
    SyncOutcome,
    SyncTimeoutPolicy,
)
from agswitch.domain.events import GroupStateChanged
from agswitch.domain.health import (
    BenchmarkReport,
    ConnectionState,
    FailoverMode,
    ReplicaHealthRecord,
)
from agswitch.domain.lifecycle import GroupLifecycle, GroupState
from agswitch.domain.replica_group import (
    AvailabilityMode,
    GroupDescriptor,
    Replica,
    ReplicaGroup,
    ReplicaGroupDatabase,
    ReplicaRole,
    SynchronizationState,
)
from agswitch.domain.run import (
    GroupResult,
    OrchestrationRun,
    RunStatus,
    RunStep,
    RunSummary,
)
from agswitch.domain.settings import OrchestratorSettings

__all__ = [
    "AgSwitchError",
    "AuditError",
    "ConfigError",
    "FailoverRejectedError",
    "GatewayError",
    "GatewayUnavailable",
    "HadrNotEnabledError",
    "InvalidTransitionError",
    "GroupStateChanged",
    "FailoverAttempt",
    "FailoverOutcome",
    "SyncOutcome",
    "SyncTimeoutPolicy",
    "BenchmarkReport",
    "ConnectionState",
    "FailoverMode",
    "ReplicaHealthRecord",
    "GroupLifecycle",
    "GroupState",
    "AvailabilityMode",
    "GroupDescriptor",
    "Replica",
    "ReplicaGroup",
    "ReplicaGroupDatabase",
    "ReplicaRole",
    "SynchronizationState",
    "GroupResult",
    "OrchestrationRun",
    "RunStatus",
    "RunStep",
    "RunSummary",
    "OrchestratorSettings",
]
