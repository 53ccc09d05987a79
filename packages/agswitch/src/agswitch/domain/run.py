"""Orchestration run aggregate and its reporting value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from agswitch.domain.failover import FailoverAttempt, FailoverOutcome, SyncOutcome
from agswitch.domain.health import BenchmarkReport, ReplicaHealthRecord
from agswitch.domain.lifecycle import GroupState
from agswitch.domain.replica_group import ReplicaGroup


class RunStatus(Enum):
    """Overall outcome of an orchestration run."""

    SUCCEEDED = "succeeded"
    NO_OP = "no_op"
    PARTIAL = "partial"
    ABORTED = "aborted"


class RunStep(Enum):
    """Step of the per-group workflow, used to report where a group failed."""

    MODE_TRANSITION = "mode_transition"
    SYNC_WAIT = "sync_wait"
    FAILOVER = "failover"
    REVERT = "revert"
    AUDIT = "audit"


@dataclass(frozen=True)
class GroupResult:
    """Structured outcome for one processed replica group.

    Attributes:
        group_name: Replica group name.
        mode_transitioned: True if the group was raised to synchronous commit.
        sync_outcome: READY or TIMED_OUT; None if the wait was never reached.
        failover_outcome: Outcome of the failover; None if never reached.
        reverted: True if the group ended in its original commit mode.
        final_health: Replica health records from the post-run audit.
        final_state: Lifecycle state at the end of processing (AUDITED).
        benchmark: Round-trip figures for benchmark runs.
        failed_step: First step that failed, if any.
        error: Message of the first error, if any.
    """

    group_name: str
    mode_transitioned: bool
    sync_outcome: SyncOutcome | None
    failover_outcome: FailoverOutcome | None
    reverted: bool
    final_health: tuple[ReplicaHealthRecord, ...] = ()
    final_state: GroupState = GroupState.AUDITED
    benchmark: BenchmarkReport | None = None
    failed_step: RunStep | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return (
            self.final_state is GroupState.AUDITED
            and self.failover_outcome is FailoverOutcome.SUCCEEDED
        )


@dataclass(frozen=True)
class RunSummary:
    """Counts and status for a finished run."""

    status: RunStatus
    processed: int
    succeeded: int
    failed: int

    def describe(self) -> str:
        """Return the one-line human-readable summary."""
        if self.status is RunStatus.ABORTED:
            return "aborted before processing"
        if self.status is RunStatus.NO_OP:
            return "no-op success: no replica groups selected"
        if self.status is RunStatus.SUCCEEDED:
            return f"fully succeeded: {self.succeeded} group(s) failed over"
        if self.status is RunStatus.PARTIAL:
            return (
                f"partially succeeded with {self.failed} group failures "
                f"({self.succeeded} of {self.processed} succeeded)"
            )
        raise ValueError(f"unhandled run status: {self.status!r}")


@dataclass
class OrchestrationRun:
    """One end-to-end orchestration run.

    Owns its selected groups, failover attempts and group results for the
    lifetime of the run.
    """

    run_id: str
    target_node: str
    selected_groups: list[ReplicaGroup] = field(default_factory=list)
    attempts: list[FailoverAttempt] = field(default_factory=list)
    results: list[GroupResult] = field(default_factory=list)
    aborted_reason: str | None = None

    def abort(self, reason: str) -> None:
        self.aborted_reason = reason

    def record_attempt(self, attempt: FailoverAttempt) -> None:
        self.attempts.append(attempt)

    def record_result(self, result: GroupResult) -> None:
        self.results.append(result)

    @property
    def status(self) -> RunStatus:
        if self.aborted_reason is not None:
            return RunStatus.ABORTED
        if not self.selected_groups:
            return RunStatus.NO_OP
        if len(self.results) == len(self.selected_groups) and all(
            result.succeeded for result in self.results
        ):
            return RunStatus.SUCCEEDED
        return RunStatus.PARTIAL

    def summary(self) -> RunSummary:
        succeeded = sum(1 for result in self.results if result.succeeded)
        return RunSummary(
            status=self.status,
            processed=len(self.results),
            succeeded=succeeded,
            failed=len(self.results) - succeeded,
        )
