"""Prometheus metrics adapter for agswitch.

Implements MetricsPort using prometheus-client library.
Gracefully handles missing prometheus-client (raises ImportError at init).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from agswitch.adapters.metrics_port import FailoverDirection

if TYPE_CHECKING:
    from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

_FAILOVER_BUCKETS = (0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0)
_SYNC_WAIT_BUCKETS = (1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0)


class PrometheusMetricsAdapter:
    """Prometheus implementation of MetricsPort.

    Metrics live in their own CollectorRegistry so several runs (or tests)
    in one process never collide on metric names. A CLI run exports them
    with write_textfile() for the node-exporter textfile collector.

    This adapter requires prometheus-client to be installed:
        pip install agswitch[metrics]

    Example:
        >>> adapter = PrometheusMetricsAdapter(prefix="agswitch")
        >>> adapter.observe_failover("AG1", "succeeded", 4.2)
        >>> adapter.write_textfile("/var/lib/node_exporter/agswitch.prom")

    Raises:
        ImportError: If prometheus-client is not installed.
    """

    def __init__(
        self,
        prefix: str = "agswitch",
        registry: CollectorRegistry | None = None,
    ) -> None:
        """Initialize Prometheus collectors.

        Args:
            prefix: Metric name prefix. Defaults to "agswitch".
            registry: Registry to register collectors in. A fresh private
                     registry is created when omitted.

        Raises:
            ImportError: If prometheus-client is not installed.
        """
        # Import here to make prometheus-client optional
        from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

        self.registry: CollectorRegistry = registry or CollectorRegistry()

        self._failover_seconds: Histogram = Histogram(
            f"{prefix}_failover_duration_seconds",
            "Duration of failover and failback commands",
            ["group", "outcome", "direction"],
            buckets=_FAILOVER_BUCKETS,
            registry=self.registry,
        )
        self._failovers_total: Counter = Counter(
            f"{prefix}_failovers_total",
            "Failover and failback commands by outcome",
            ["group", "outcome", "direction"],
            registry=self.registry,
        )
        self._sync_wait_seconds: Histogram = Histogram(
            f"{prefix}_sync_wait_duration_seconds",
            "Time spent waiting for databases to synchronize",
            ["group", "outcome"],
            buckets=_SYNC_WAIT_BUCKETS,
            registry=self.registry,
        )
        self._run_status: Gauge = Gauge(
            f"{prefix}_last_run_status",
            "Status of the last run: 1 for the reported status, 0 otherwise",
            ["status"],
            registry=self.registry,
        )
        self._run_groups: Gauge = Gauge(
            f"{prefix}_last_run_groups",
            "Groups processed by the last run, by result",
            ["result"],
            registry=self.registry,
        )

    def observe_failover(
        self,
        group: str,
        outcome: str,
        seconds: float,
        direction: FailoverDirection = "failover",
    ) -> None:
        """Record a failover/failback duration and count it."""
        self._failover_seconds.labels(
            group=group, outcome=outcome, direction=direction
        ).observe(seconds)
        self._failovers_total.labels(
            group=group, outcome=outcome, direction=direction
        ).inc()

    def observe_sync_wait(self, group: str, outcome: str, seconds: float) -> None:
        """Record a synchronization wait duration."""
        self._sync_wait_seconds.labels(group=group, outcome=outcome).observe(seconds)

    def set_run_result(self, status: str, succeeded: int, failed: int) -> None:
        """Set the last-run gauges.

        The status gauge is one-hot: the reported status is 1, the others 0.
        """
        for known in ("succeeded", "no_op", "partial", "aborted"):
            self._run_status.labels(status=known).set(1 if known == status else 0)
        self._run_groups.labels(result="succeeded").set(succeeded)
        self._run_groups.labels(result="failed").set(failed)

    def write_textfile(self, path: str | Path) -> None:
        """Write the registry in text exposition format to path."""
        from prometheus_client import write_to_textfile

        write_to_textfile(str(path), self.registry)
