"""Unit tests for the orchestration run aggregate and its summary."""

from datetime import datetime, timezone

import pytest

from agswitch.domain.failover import FailoverAttempt, FailoverOutcome, SyncOutcome
from agswitch.domain.lifecycle import GroupState
from agswitch.domain.run import (
    GroupResult,
    OrchestrationRun,
    RunStatus,
    RunStep,
    RunSummary,
)

from tests.core.unit.builders import make_group


def _result(name: str, outcome: FailoverOutcome | None, **kwargs) -> GroupResult:
    return GroupResult(
        group_name=name,
        mode_transitioned=True,
        sync_outcome=SyncOutcome.READY,
        failover_outcome=outcome,
        reverted=True,
        **kwargs,
    )


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Domain.Policy.RunStatus")
class TestOrchestrationRunStatus:
    """Run status is derived from selection and results."""

    def test_no_selection_is_no_op(self) -> None:
        run = OrchestrationRun(run_id="r1", target_node="SQL2")
        assert run.status is RunStatus.NO_OP

    def test_abort_wins(self) -> None:
        run = OrchestrationRun(run_id="r1", target_node="SQL2")
        run.abort("SQL2 unreachable")
        assert run.status is RunStatus.ABORTED
        assert run.aborted_reason == "SQL2 unreachable"

    def test_all_succeeded(self) -> None:
        run = OrchestrationRun(
            run_id="r1", target_node="SQL2", selected_groups=[make_group("AG1")]
        )
        run.record_result(_result("AG1", FailoverOutcome.SUCCEEDED))
        assert run.status is RunStatus.SUCCEEDED

    def test_one_failure_is_partial(self) -> None:
        run = OrchestrationRun(
            run_id="r1",
            target_node="SQL2",
            selected_groups=[make_group("AG1"), make_group("AG2")],
        )
        run.record_result(_result("AG1", FailoverOutcome.SUCCEEDED))
        run.record_result(
            _result("AG2", FailoverOutcome.FAILED, failed_step=RunStep.FAILOVER)
        )
        assert run.status is RunStatus.PARTIAL

    def test_all_failed_is_partial(self) -> None:
        run = OrchestrationRun(
            run_id="r1", target_node="SQL2", selected_groups=[make_group("AG1")]
        )
        run.record_result(_result("AG1", FailoverOutcome.FAILED))
        assert run.status is RunStatus.PARTIAL

    def test_result_not_audited_is_not_success(self) -> None:
        result = _result(
            "AG1", FailoverOutcome.SUCCEEDED, final_state=GroupState.REVERTED
        )
        assert result.succeeded is False

    def test_record_attempt(self) -> None:
        run = OrchestrationRun(run_id="r1", target_node="SQL2")
        attempt = FailoverAttempt(
            group_name="AG1",
            target_endpoint="SQL2",
            started_at=datetime.now(timezone.utc),
            duration=1.5,
            outcome=FailoverOutcome.SUCCEEDED,
        )
        run.record_attempt(attempt)
        assert run.attempts == [attempt]
        assert attempt.succeeded is True


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Domain.Policy.RunSummary")
class TestRunSummary:
    """Summary wording distinguishes the four run outcomes."""

    def test_counts(self) -> None:
        run = OrchestrationRun(
            run_id="r1",
            target_node="SQL2",
            selected_groups=[make_group("AG1"), make_group("AG2"), make_group("AG3")],
        )
        run.record_result(_result("AG1", FailoverOutcome.SUCCEEDED))
        run.record_result(_result("AG2", FailoverOutcome.FAILED))
        run.record_result(_result("AG3", FailoverOutcome.TIMED_OUT))

        summary = run.summary()

        assert summary == RunSummary(RunStatus.PARTIAL, processed=3, succeeded=1, failed=2)
        assert summary.describe() == (
            "partially succeeded with 2 group failures (1 of 3 succeeded)"
        )

    @pytest.mark.parametrize(
        ("summary", "expected"),
        [
            (RunSummary(RunStatus.ABORTED, 0, 0, 0), "aborted before processing"),
            (
                RunSummary(RunStatus.NO_OP, 0, 0, 0),
                "no-op success: no replica groups selected",
            ),
            (
                RunSummary(RunStatus.SUCCEEDED, 2, 2, 0),
                "fully succeeded: 2 group(s) failed over",
            ),
        ],
    )
    def test_describe(self, summary: RunSummary, expected: str) -> None:
        assert summary.describe() == expected
