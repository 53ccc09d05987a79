"""Fake metrics adapter for testing.

Provides a test double for MetricsPort that records all metric updates
for assertion in tests.
"""

from __future__ import annotations

from dataclasses import dataclass

from agswitch.adapters.metrics_port import FailoverDirection


@dataclass(frozen=True)
class MetricCall:
    """Record of a single metric update.

    Attributes:
        metric_name: Name of the metric that was updated.
        labels: Label values, in a fixed order per metric.
        value: Value that was observed or set.
    """

    metric_name: str
    labels: tuple[str, ...]
    value: float


class FakeMetricsAdapter:
    """Fake implementation of MetricsPort for testing.

    Example:
        >>> fake = FakeMetricsAdapter()
        >>> fake.observe_sync_wait("AG1", "ready", 20.0)
        >>> fake.calls
        [MetricCall(metric_name='sync_wait', labels=('AG1', 'ready'), value=20.0)]
    """

    def __init__(self) -> None:
        self._calls: list[MetricCall] = []
        self._run_result: tuple[str, int, int] | None = None

    @property
    def calls(self) -> list[MetricCall]:
        """Return list of all metric update calls (copy)."""
        return list(self._calls)

    @property
    def run_result(self) -> tuple[str, int, int] | None:
        """Return last (status, succeeded, failed), or None if never set."""
        return self._run_result

    def calls_named(self, metric_name: str) -> list[MetricCall]:
        return [call for call in self._calls if call.metric_name == metric_name]

    def observe_failover(
        self,
        group: str,
        outcome: str,
        seconds: float,
        direction: FailoverDirection = "failover",
    ) -> None:
        self._calls.append(MetricCall(direction, (group, outcome), seconds))

    def observe_sync_wait(self, group: str, outcome: str, seconds: float) -> None:
        self._calls.append(MetricCall("sync_wait", (group, outcome), seconds))

    def set_run_result(self, status: str, succeeded: int, failed: int) -> None:
        self._run_result = (status, succeeded, failed)
        self._calls.append(MetricCall("run_result", (status,), float(succeeded)))

    def reset(self) -> None:
        """Clear all recorded calls and state."""
        self._calls.clear()
        self._run_result = None
