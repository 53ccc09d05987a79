"""Run context shared by every orchestration component."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from agswitch.adapters.logging_adapter import StdlibLoggingAdapter
from agswitch.adapters.metrics_port import MetricsPort, NoOpMetricsAdapter
from agswitch.adapters.ports import (
    ClusterAdminGatewayPort,
    EventEmitterPort,
    LoggingPort,
    RealTimeProvider,
    TimeProvider,
)
from agswitch.domain.settings import OrchestratorSettings


def new_run_id() -> str:
    """Return a short identifier for a run."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class RunContext:
    """Everything a component needs for one orchestration run.

    Constructed once per run (see agswitch.factories) and handed to each
    use case, instead of components reaching for shared module state.

    Attributes:
        settings: Validated run settings.
        gateway: Administrative gateway to the cluster.
        logger: Logging port; messages carry the run id.
        metrics: Metrics port. Defaults to a no-op adapter.
        clock: Time source for timing and polling.
        events: Optional lifecycle event emitter.
        run_id: Operation identifier for logs, events and reports.
    """

    settings: OrchestratorSettings
    gateway: ClusterAdminGatewayPort
    logger: LoggingPort = field(default_factory=StdlibLoggingAdapter)
    metrics: MetricsPort = field(default_factory=NoOpMetricsAdapter)
    clock: TimeProvider = field(default_factory=RealTimeProvider)
    events: EventEmitterPort | None = None
    run_id: str = field(default_factory=new_run_id)
