"""Orchestrator use case: drives one end-to-end failover run."""

from __future__ import annotations

from dataclasses import dataclass, field

from agswitch.domain.events import GroupStateChanged
from agswitch.domain.exceptions import FailoverRejectedError, GatewayError
from agswitch.domain.failover import (
    FailoverAttempt,
    SyncOutcome,
    SyncTimeoutPolicy,
)
from agswitch.domain.health import BenchmarkReport, ReplicaHealthRecord
from agswitch.domain.lifecycle import GroupLifecycle, GroupState
from agswitch.domain.replica_group import AvailabilityMode, ReplicaGroup
from agswitch.domain.run import GroupResult, OrchestrationRun, RunStatus, RunStep
from agswitch.usecases.failover_executor import FailoverExecutor
from agswitch.usecases.inventory import ReplicaGroupInventory
from agswitch.usecases.mode_transition import ModeTransitionController
from agswitch.usecases.post_failover_auditor import PostFailoverAuditor
from agswitch.usecases.run_context import RunContext
from agswitch.usecases.selection_policy import SelectionPolicy
from agswitch.usecases.synchronization_waiter import SynchronizationWaiter


@dataclass
class _GroupProgress:
    """Mutable per-group bookkeeping, frozen into a GroupResult at the end."""

    lifecycle: GroupLifecycle
    mode_transitioned: bool = False
    sync_outcome: SyncOutcome | None = None
    attempt: FailoverAttempt | None = None
    failed_step: RunStep | None = None
    error: str | None = None
    health: list[ReplicaHealthRecord] = field(default_factory=list)
    benchmark: BenchmarkReport | None = None

    def fail(self, step: RunStep, error: BaseException | str | None) -> None:
        # The first failure is the one reported.
        if self.failed_step is None:
            self.failed_step = step
            self.error = str(error)


class Orchestrator:
    """Runs inventory, selection and the per-group failover workflow.

    Groups are processed strictly one after another, in selection order,
    each through the fixed sequence Mode-Ensure -> Sync-Wait -> Failover ->
    Revert -> Audit. A gateway error inside that sequence is contained to
    its group: it is logged with the failing step, the group still goes
    through revert and audit, and the run moves on to the next group. Only
    a gateway error during inventory aborts the run.

    In benchmark mode the failback round trip is taken right after the
    failover, while every replica is still in synchronous commit, and revert
    then runs on whichever node ended up primary.

    Every state change of a group is validated by its GroupLifecycle and
    emitted as a GroupStateChanged event when an emitter is configured.

    Dependencies:
        - ReplicaGroupInventory, SelectionPolicy, ModeTransitionController,
          SynchronizationWaiter, FailoverExecutor, PostFailoverAuditor
        - RunContext for settings, logging, metrics and events

    Thread safety:
        Not thread-safe. A run is single-threaded by construction.
    """

    def __init__(
        self,
        context: RunContext,
        inventory: ReplicaGroupInventory,
        selection: SelectionPolicy,
        modes: ModeTransitionController,
        waiter: SynchronizationWaiter,
        executor: FailoverExecutor,
        auditor: PostFailoverAuditor,
    ) -> None:
        self._context = context
        self._settings = context.settings
        self._logger = context.logger
        self._metrics = context.metrics
        self._events = context.events
        self._inventory = inventory
        self._selection = selection
        self._modes = modes
        self._waiter = waiter
        self._executor = executor
        self._auditor = auditor

    def run(self) -> OrchestrationRun:
        """Execute one orchestration run against the configured target node.

        Returns:
            The finished run; its status is SUCCEEDED, NO_OP, PARTIAL or
            ABORTED. Per-group failures never raise out of run().
        """
        target = self._settings.target_node
        run = OrchestrationRun(run_id=self._context.run_id, target_node=target)
        self._logger.info(f"run: started against {target}")

        try:
            discovered = self._inventory.list_groups(target)
        except GatewayError as exc:
            self._logger.critical(f"run: inventory of {target} failed: {exc}")
            run.abort(str(exc))
            self._finish(run)
            return run

        candidates = SelectionPolicy.filter_by_role(
            discovered, self._settings.candidate_role
        )
        run.selected_groups = self._selection.confirm_selection(candidates)
        self._logger.info(
            f"run: {len(run.selected_groups)} of {len(candidates)} candidate group(s) "
            f"selected"
        )

        for group in run.selected_groups:
            run.record_result(self._process_group(run, group))

        self._finish(run)
        return run

    # ----- Per-group workflow -----

    def _process_group(self, run: OrchestrationRun, group: ReplicaGroup) -> GroupResult:
        target = self._settings.target_node
        progress = _GroupProgress(lifecycle=GroupLifecycle(group.name))
        self._advance(progress, GroupState.SELECTED)

        step = RunStep.MODE_TRANSITION
        try:
            was_asynchronous = group.current_mode is AvailabilityMode.ASYNCHRONOUS
            self._modes.ensure_synchronous(group)
            progress.mode_transitioned = was_asynchronous
            self._advance(progress, GroupState.MODE_ENSURED)

            step = RunStep.SYNC_WAIT
            self._advance(progress, GroupState.SYNC_WAITING)
            progress.sync_outcome = self._waiter.wait_until_synchronized(group, target)

            if progress.sync_outcome is SyncOutcome.READY:
                self._advance(progress, GroupState.SYNC_READY)
                proceed = True
            else:
                self._advance(progress, GroupState.SYNC_TIMED_OUT)
                proceed = self._decide_on_timeout(group)

            if proceed:
                step = RunStep.FAILOVER
                self._failover(run, group, progress)
            else:
                progress.attempt = self._executor.skipped(
                    group.name, target, "synchronization timed out; failover skipped"
                )
                run.record_attempt(progress.attempt)
                progress.fail(RunStep.SYNC_WAIT, progress.attempt.error)
        except GatewayError as exc:
            progress.fail(step, exc)
            self._logger.error(f"group {group.name}: {step.value} failed: {exc}")

        # Planned failback needs synchronous commit, so it precedes revert.
        if (
            self._settings.benchmark
            and progress.attempt is not None
            and progress.attempt.succeeded
        ):
            progress.benchmark = self._auditor.benchmark(
                group.name, target, group.primary_endpoint, progress.attempt
            )

        self._revert(group, progress)
        self._audit(group, progress)

        return GroupResult(
            group_name=group.name,
            mode_transitioned=progress.mode_transitioned,
            sync_outcome=progress.sync_outcome,
            failover_outcome=progress.attempt.outcome if progress.attempt else None,
            reverted=group.current_mode is group.original_mode,
            final_health=tuple(progress.health),
            final_state=progress.lifecycle.state,
            benchmark=progress.benchmark,
            failed_step=progress.failed_step,
            error=progress.error,
        )

    def _decide_on_timeout(self, group: ReplicaGroup) -> bool:
        policy = self._settings.on_sync_timeout
        if policy is SyncTimeoutPolicy.PROCEED:
            self._logger.warning(
                f"group {group.name}: not synchronized, failing over anyway"
            )
            return True
        if policy is SyncTimeoutPolicy.SKIP:
            self._logger.warning(f"group {group.name}: not synchronized, skipping")
            return False
        return self._selection.confirm_unsynchronized(group)

    def _failover(
        self, run: OrchestrationRun, group: ReplicaGroup, progress: _GroupProgress
    ) -> None:
        self._advance(progress, GroupState.FAILING_OVER)
        try:
            progress.attempt = self._executor.failover(
                group.name, self._settings.target_node
            )
        except FailoverRejectedError as exc:
            progress.attempt = exc.attempt
            run.record_attempt(exc.attempt)
            self._advance(progress, GroupState.FAILOVER_FAILED, reason=str(exc))
            raise
        run.record_attempt(progress.attempt)
        self._advance(progress, GroupState.FAILED_OVER)

    def _revert(self, group: ReplicaGroup, progress: _GroupProgress) -> None:
        node = self._current_primary(group, progress)
        self._advance(progress, GroupState.REVERTING, reason=progress.error)
        try:
            self._modes.revert(group, node=node)
        except GatewayError as exc:
            progress.fail(RunStep.REVERT, exc)
            self._logger.error(
                f"group {group.name}: revert failed, group left in "
                f"{group.current_mode.value} commit: {exc}"
            )
            return
        self._advance(progress, GroupState.REVERTED)

    def _audit(self, group: ReplicaGroup, progress: _GroupProgress) -> None:
        target = self._settings.target_node
        progress.health = self._auditor.audit_group(target, group.name)
        self._advance(progress, GroupState.AUDITED)

    # ----- Helpers -----

    def _current_primary(self, group: ReplicaGroup, progress: _GroupProgress) -> str:
        failed_over = progress.attempt is not None and progress.attempt.succeeded
        failback = progress.benchmark.failback if progress.benchmark else None
        if failed_over and not (failback is not None and failback.succeeded):
            return self._settings.target_node
        return group.primary_endpoint

    def _advance(
        self, progress: _GroupProgress, state: GroupState, reason: str | None = None
    ) -> None:
        lifecycle = progress.lifecycle
        previous = lifecycle.advance(state)
        self._logger.debug(
            f"group {lifecycle.group_name}: {previous.value} -> {state.value}"
        )
        if self._events is not None:
            self._events.emit(
                GroupStateChanged(
                    run_id=self._context.run_id,
                    group_name=lifecycle.group_name,
                    previous=previous,
                    current=state,
                    reason=reason,
                )
            )

    def _finish(self, run: OrchestrationRun) -> None:
        summary = run.summary()
        message = f"run: {summary.describe()}"
        if summary.status is RunStatus.ABORTED:
            self._logger.critical(message)
        elif summary.status is RunStatus.PARTIAL:
            self._logger.warning(message)
        else:
            self._logger.info(message)
        self._metrics.set_run_result(
            summary.status.value, summary.succeeded, summary.failed
        )
