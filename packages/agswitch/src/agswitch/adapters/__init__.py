"""Interface adapters: ports plus logging, metrics and approval adapters.

The SQL Server gateway (agswitch.adapters.sqlalchemy_gateway) and the
Prometheus adapter are not imported here so that their optional
dependencies stay optional.
"""

from agswitch.adapters.approval import (
    ApproveAllProvider,
    ConsoleApprovalProvider,
    StaticApprovalProvider,
)
from agswitch.adapters.logging_adapter import StdlibLoggingAdapter
from agswitch.adapters.metrics_port import MetricsPort, NoOpMetricsAdapter
from agswitch.adapters.ports import (
    ApprovalProviderPort,
    ClusterAdminGatewayPort,
    EventEmitterPort,
    LoggingPort,
    RealTimeProvider,
    TimeProvider,
)

__all__ = [
    "ApprovalProviderPort",
    "ClusterAdminGatewayPort",
    "EventEmitterPort",
    "LoggingPort",
    "TimeProvider",
    "RealTimeProvider",
    "MetricsPort",
    "NoOpMetricsAdapter",
    "StdlibLoggingAdapter",
    "ConsoleApprovalProvider",
    "StaticApprovalProvider",
    "ApproveAllProvider",
]
