"""Factory functions for wiring an orchestration run.

Builds gateways, metrics adapters, approval providers and the orchestrator
from settings. Handles optional dependency imports gracefully.
"""

from __future__ import annotations

from typing import Callable

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
from agswitch.domain.exceptions import ConfigError
from agswitch.domain.settings import OrchestratorSettings
from agswitch.usecases.failover_executor import FailoverExecutor
from agswitch.usecases.inventory import ReplicaGroupInventory
from agswitch.usecases.mode_transition import ModeTransitionController
from agswitch.usecases.orchestrator import Orchestrator
from agswitch.usecases.post_failover_auditor import PostFailoverAuditor
from agswitch.usecases.run_context import RunContext, new_run_id
from agswitch.usecases.selection_policy import SelectionPolicy
from agswitch.usecases.synchronization_waiter import SynchronizationWaiter


class SqlAlchemyNotInstalledError(ImportError):
    """Raised when the SQL Server gateway is required but SQLAlchemy is missing.

    Install with: pip install agswitch[mssql]
    """

    def __init__(self) -> None:
        super().__init__(
            "SQLAlchemy is not installed. Install with: pip install agswitch[mssql]"
        )


class PrometheusClientNotInstalledError(ImportError):
    """Raised when metrics export is requested but prometheus-client is missing.

    Install with: pip install agswitch[metrics]
    """

    def __init__(self) -> None:
        super().__init__(
            "prometheus-client is not installed. "
            "Install with: pip install agswitch[metrics]"
        )


def create_gateway(settings: OrchestratorSettings) -> ClusterAdminGatewayPort:
    """Create the SQL Server gateway from settings.

    Raises:
        ConfigError: If settings carry no gateway_url_template.
        SqlAlchemyNotInstalledError: If SQLAlchemy is not installed.
    """
    if settings.gateway_url_template is None:
        raise ConfigError(
            "gateway.url_template is required to connect to SQL Server "
            "(e.g. mssql+pyodbc://@{node}/master?driver=...)"
        )

    # Import SQLAlchemy (optional dependency)
    try:
        from agswitch.adapters.sqlalchemy_gateway import SqlAlchemyClusterGateway
    except ImportError as exc:
        raise SqlAlchemyNotInstalledError() from exc

    return SqlAlchemyClusterGateway(settings.gateway_url_template)


def create_metrics(enabled: bool) -> MetricsPort:
    """Create a Prometheus adapter when enabled, a no-op adapter otherwise.

    Raises:
        PrometheusClientNotInstalledError: If enabled and prometheus-client
            is not installed.
    """
    if not enabled:
        return NoOpMetricsAdapter()

    from agswitch.adapters.prometheus_metrics import PrometheusMetricsAdapter

    try:
        return PrometheusMetricsAdapter()
    except ImportError as exc:
        raise PrometheusClientNotInstalledError() from exc


def create_approval_provider(
    settings: OrchestratorSettings,
    assume_yes: bool = False,
    input_func: Callable[[str], str] = input,
    output_func: Callable[[str], None] = print,
) -> ApprovalProviderPort:
    """Pick the approval provider for a run.

    Precedence: assume_yes approves every candidate; otherwise a configured
    approved_groups list is used; otherwise the operator is asked on the
    console. Unsynchronized failovers are only approved interactively.
    """
    if assume_yes:
        return ApproveAllProvider()
    if settings.approved_groups is not None:
        return StaticApprovalProvider(settings.approved_groups)
    return ConsoleApprovalProvider(input_func=input_func, output_func=output_func)


def create_run_context(
    settings: OrchestratorSettings,
    gateway: ClusterAdminGatewayPort,
    logger: LoggingPort | None = None,
    metrics: MetricsPort | None = None,
    clock: TimeProvider | None = None,
    events: EventEmitterPort | None = None,
    run_id: str | None = None,
) -> RunContext:
    """Build the RunContext for one run, defaulting every optional port."""
    run_id = run_id or new_run_id()
    return RunContext(
        settings=settings,
        gateway=gateway,
        logger=logger or StdlibLoggingAdapter(run_id=run_id),
        metrics=metrics or NoOpMetricsAdapter(),
        clock=clock or RealTimeProvider(),
        events=events,
        run_id=run_id,
    )


def create_orchestrator(
    context: RunContext, approval_provider: ApprovalProviderPort
) -> Orchestrator:
    """Wire every use case of a run around one RunContext."""
    executor = FailoverExecutor(context)
    return Orchestrator(
        context=context,
        inventory=ReplicaGroupInventory(context),
        selection=SelectionPolicy(approval_provider, logger=context.logger),
        modes=ModeTransitionController(context),
        waiter=SynchronizationWaiter(context),
        executor=executor,
        auditor=PostFailoverAuditor(context, executor),
    )
