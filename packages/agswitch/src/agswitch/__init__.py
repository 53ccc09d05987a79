"""agswitch: planned failover of SQL Server Always On availability groups."""

__version__ = "0.1.0"

from agswitch.domain.exceptions import (
    AgSwitchError,
    ConfigError,
    GatewayError,
    GatewayUnavailable,
)
from agswitch.domain.run import OrchestrationRun, RunStatus
from agswitch.domain.settings import OrchestratorSettings
from agswitch.usecases.orchestrator import Orchestrator

__all__ = [
    "__version__",
    "AgSwitchError",
    "ConfigError",
    "GatewayError",
    "GatewayUnavailable",
    "OrchestrationRun",
    "Orchestrator",
    "OrchestratorSettings",
    "RunStatus",
]
