"""PostFailoverAuditor use case: replica health reporting and benchmarking."""

from __future__ import annotations

from agswitch.domain.exceptions import AuditError, FailoverRejectedError, GatewayError
from agswitch.domain.failover import FailoverAttempt
from agswitch.domain.health import BenchmarkReport, ReplicaHealthRecord
from agswitch.usecases.failover_executor import FailoverExecutor
from agswitch.usecases.run_context import RunContext


class PostFailoverAuditor:
    """Reports replica health after a run.

    The audit is observational: gateway failures are wrapped as AuditError,
    logged, and swallowed, so an audit can never fail a group that has
    already been failed over. Callers get whatever records were collected.

    Benchmark runs additionally fail the group back to its original primary
    (through the FailoverExecutor, so the failback is timed and recorded
    like any other failover) and time a health probe on each side.

    Dependencies:
        - ClusterAdminGatewayPort (via RunContext)
        - FailoverExecutor (benchmark failback only)
    """

    def __init__(self, context: RunContext, executor: FailoverExecutor) -> None:
        self._gateway = context.gateway
        self._logger = context.logger
        self._clock = context.clock
        self._executor = executor

    def audit_state(self, node: str) -> list[ReplicaHealthRecord]:
        """Return health records for every replica of every group on node."""
        try:
            descriptors = self._gateway.list_groups(node)
        except GatewayError as exc:
            self._report(AuditError(f"cannot list groups on {node}: {exc}"))
            return []

        records: list[ReplicaHealthRecord] = []
        for descriptor in descriptors:
            records.extend(self.audit_group(node, descriptor.name))
        return records

    def audit_group(self, node: str, group_name: str) -> list[ReplicaHealthRecord]:
        """Return health records for the replicas of one group, seen from node."""
        records, _ = self._probe(node, group_name)
        return records

    def benchmark(
        self,
        group_name: str,
        new_primary: str,
        original_primary: str,
        failover_attempt: FailoverAttempt,
    ) -> BenchmarkReport:
        """Time a health probe, fail back, and time a second probe.

        Args:
            group_name: Group that was just failed over.
            new_primary: Node the group was failed over to.
            original_primary: Node to fail back to.
            failover_attempt: The succeeded forward attempt.

        Returns:
            A report; failback and second probe are None when the first
            probe failed, second probe is None when failback failed.
        """
        start = self._clock.get_time_seconds()
        _, first_ok = self._probe(new_primary, group_name)
        first_probe = self._clock.get_time_seconds() - start
        report = BenchmarkReport(
            failover_seconds=failover_attempt.duration,
            first_probe_seconds=first_probe,
        )
        if not first_ok:
            self._logger.warning(f"benchmark: {group_name} failback skipped, probe failed")
            return report

        try:
            failback = self._executor.failover(
                group_name, original_primary, direction="failback"
            )
        except FailoverRejectedError as exc:
            self._logger.warning(f"benchmark: {group_name} failback rejected: {exc}")
            return BenchmarkReport(
                failover_seconds=report.failover_seconds,
                first_probe_seconds=first_probe,
                failback=exc.attempt,
            )

        start = self._clock.get_time_seconds()
        self._probe(original_primary, group_name)
        second_probe = self._clock.get_time_seconds() - start
        report = BenchmarkReport(
            failover_seconds=report.failover_seconds,
            first_probe_seconds=first_probe,
            failback=failback,
            second_probe_seconds=second_probe,
        )
        self._logger.info(
            f"benchmark: {group_name} round trip {report.round_trip_seconds:.2f}s "
            f"(probes {first_probe:.2f}s / {second_probe:.2f}s)"
        )
        return report

    def _probe(self, node: str, group_name: str) -> tuple[list[ReplicaHealthRecord], bool]:
        try:
            records = self._gateway.audit_health(node, group_name)
        except GatewayError as exc:
            self._report(AuditError(f"cannot audit {group_name!r} on {node}: {exc}"))
            return [], False

        disconnected = [r.replica_name for r in records if not r.is_connected]
        if disconnected:
            self._logger.warning(
                f"audit: {group_name} replica(s) not connected: {', '.join(disconnected)}"
            )
        else:
            self._logger.info(f"audit: {group_name} {len(records)} replica(s) connected")
        return records, True

    def _report(self, error: AuditError) -> None:
        self._logger.error(f"audit: {error}")
