"""Use cases: Application logic layer."""

from agswitch.usecases.config_parser import ConfigParser
from agswitch.usecases.failover_executor import FailoverExecutor
from agswitch.usecases.inventory import ReplicaGroupInventory
from agswitch.usecases.mode_transition import ModeTransitionController
from agswitch.usecases.orchestrator import Orchestrator
from agswitch.usecases.post_failover_auditor import PostFailoverAuditor
from agswitch.usecases.run_context import RunContext, new_run_id
from agswitch.usecases.selection_policy import SelectionPolicy
from agswitch.usecases.synchronization_waiter import (
    PollingSession,
    SynchronizationWaiter,
)

__all__ = [
    "ConfigParser",
    "FailoverExecutor",
    "ReplicaGroupInventory",
    "ModeTransitionController",
    "Orchestrator",
    "PostFailoverAuditor",
    "RunContext",
    "new_run_id",
    "SelectionPolicy",
    "PollingSession",
    "SynchronizationWaiter",
]
