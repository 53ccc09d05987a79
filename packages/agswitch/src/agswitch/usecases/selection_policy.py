"""SelectionPolicy use case: candidate filtering and operator approval."""

from __future__ import annotations

from typing import Sequence

from agswitch.adapters.ports import ApprovalProviderPort, LoggingPort
from agswitch.domain.replica_group import ReplicaGroup, ReplicaRole


class SelectionPolicy:
    """Decides which discovered groups take part in a run.

    filter_by_role() is a pure, order-preserving predicate.
    confirm_selection() asks the approval provider about each candidate
    independently; the result keeps input order and never grows. An empty
    result is a valid outcome, not an error.
    """

    def __init__(
        self,
        approval_provider: ApprovalProviderPort,
        logger: LoggingPort | None = None,
    ) -> None:
        """Initialize the policy.

        Args:
            approval_provider: Port answering approve(group).
            logger: Optional logging port for approval decisions.
        """
        self._approval = approval_provider
        self._logger = logger

    @staticmethod
    def filter_by_role(
        groups: Sequence[ReplicaGroup], role: ReplicaRole
    ) -> list[ReplicaGroup]:
        """Return the groups whose local role equals role, in input order."""
        return [group for group in groups if group.local_role is role]

    def confirm_selection(self, candidates: Sequence[ReplicaGroup]) -> list[ReplicaGroup]:
        """Return the approved subset of candidates, in input order."""
        approved: list[ReplicaGroup] = []
        for group in candidates:
            if self._approval.approve(group):
                approved.append(group)
                decision = "approved"
            else:
                decision = "declined"
            if self._logger is not None:
                self._logger.info(f"selection: {group.name} {decision}")
        return approved

    def confirm_unsynchronized(self, group: ReplicaGroup) -> bool:
        """Ask whether group may fail over although it did not synchronize."""
        approved = self._approval.approve_unsynchronized(group)
        if self._logger is not None:
            decision = "approved" if approved else "declined"
            self._logger.warning(
                f"selection: unsynchronized failover of {group.name} {decision}"
            )
        return approved
