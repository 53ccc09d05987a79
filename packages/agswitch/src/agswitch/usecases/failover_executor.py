"""FailoverExecutor use case: issue and time a failover command."""

from __future__ import annotations

from datetime import datetime, timezone

from agswitch.adapters.metrics_port import FailoverDirection
from agswitch.domain.exceptions import FailoverRejectedError, GatewayError
from agswitch.domain.failover import FailoverAttempt, FailoverOutcome
from agswitch.usecases.run_context import RunContext


class FailoverExecutor:
    """Issues the failover command for one group and records the attempt.

    The gateway call is synchronous and either returns (SUCCEEDED) or raises
    (FAILED). No timeout is imposed here and nothing is retried: a rejected
    failover is closed as FAILED and re-raised as FailoverRejectedError,
    which carries the attempt record.
    """

    def __init__(self, context: RunContext) -> None:
        self._gateway = context.gateway
        self._logger = context.logger
        self._metrics = context.metrics
        self._clock = context.clock

    def failover(
        self,
        group_name: str,
        target_node: str,
        direction: FailoverDirection = "failover",
    ) -> FailoverAttempt:
        """Fail group_name over to target_node.

        Args:
            group_name: Group to fail over.
            target_node: Secondary that becomes primary; the command is
                         issued there.
            direction: "failover", or "failback" for benchmark round trips.

        Returns:
            The SUCCEEDED attempt.

        Raises:
            FailoverRejectedError: If the gateway raised; .attempt is FAILED.
        """
        started_at = datetime.now(timezone.utc)
        start = self._clock.get_time_seconds()
        self._logger.info(f"{direction}: {group_name} -> {target_node} started")

        try:
            self._gateway.initiate_failover(target_node, group_name)
        except GatewayError as exc:
            attempt = FailoverAttempt(
                group_name=group_name,
                target_endpoint=target_node,
                started_at=started_at,
                duration=self._clock.get_time_seconds() - start,
                outcome=FailoverOutcome.FAILED,
                error=str(exc),
            )
            self._metrics.observe_failover(
                group_name, attempt.outcome.value, attempt.duration, direction
            )
            self._logger.error(
                f"{direction}: {group_name} -> {target_node} failed after "
                f"{attempt.duration:.2f}s: {exc}"
            )
            raise FailoverRejectedError(
                f"{direction} of {group_name!r} to {target_node} failed: {exc}",
                attempt=attempt,
                node=target_node,
                group=group_name,
                original_error=exc,
            ) from exc

        attempt = FailoverAttempt(
            group_name=group_name,
            target_endpoint=target_node,
            started_at=started_at,
            duration=self._clock.get_time_seconds() - start,
            outcome=FailoverOutcome.SUCCEEDED,
        )
        self._metrics.observe_failover(
            group_name, attempt.outcome.value, attempt.duration, direction
        )
        self._logger.info(
            f"{direction}: {group_name} -> {target_node} succeeded in "
            f"{attempt.duration:.2f}s"
        )
        return attempt

    @staticmethod
    def skipped(group_name: str, target_node: str, reason: str) -> FailoverAttempt:
        """Build the TIMED_OUT attempt for a failover that was not issued."""
        return FailoverAttempt(
            group_name=group_name,
            target_endpoint=target_node,
            started_at=datetime.now(timezone.utc),
            duration=0.0,
            outcome=FailoverOutcome.TIMED_OUT,
            error=reason,
        )
