"""Port interface and no-op implementation for metrics collection.

Metrics ports follow fire-and-forget semantics: implementations may
buffer, sample, or drop metrics as needed. No exceptions should propagate.
"""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

FailoverDirection = Literal["failover", "failback"]


@runtime_checkable
class MetricsPort(Protocol):
    """Port interface for metrics collection.

    Implementations handle metrics recording to various backends
    (Prometheus, StatsD, etc.). Abstracts the metrics mechanism from
    use cases that need to emit metrics.

    Contract:
        - All methods are fire-and-forget (no return value, no exceptions)
        - observe_* methods record one duration sample
        - Implementations may no-op if metrics are disabled
    """

    def observe_failover(
        self,
        group: str,
        outcome: str,
        seconds: float,
        direction: FailoverDirection = "failover",
    ) -> None:
        """Record the duration of a failover or failback command.

        Args:
            group: Replica group name.
            outcome: FailoverOutcome value ("succeeded", "failed", ...).
            seconds: Command duration.
            direction: "failover" or "failback".
        """
        ...

    def observe_sync_wait(self, group: str, outcome: str, seconds: float) -> None:
        """Record how long a synchronization wait took.

        Args:
            group: Replica group name.
            outcome: SyncOutcome value ("ready" or "timed_out"), or "error".
            seconds: Wait duration.
        """
        ...

    def set_run_result(self, status: str, succeeded: int, failed: int) -> None:
        """Record the final status of an orchestration run.

        Args:
            status: RunStatus value.
            succeeded: Number of groups that failed over successfully.
            failed: Number of groups that did not.
        """
        ...


class NoOpMetricsAdapter:
    """No-operation metrics adapter for when metrics are disabled.

    All methods are no-ops. This allows use cases to unconditionally
    call metrics methods without checking if metrics are enabled.

    Example:
        >>> adapter = NoOpMetricsAdapter()
        >>> adapter.observe_sync_wait("AG1", "ready", 12.5)  # Does nothing
    """

    def observe_failover(
        self,
        group: str,
        outcome: str,
        seconds: float,
        direction: FailoverDirection = "failover",
    ) -> None:
        """No-op."""
        pass

    def observe_sync_wait(self, group: str, outcome: str, seconds: float) -> None:
        """No-op."""
        pass

    def set_run_result(self, status: str, succeeded: int, failed: int) -> None:
        """No-op."""
        pass
