"""Per-group orchestration state machine."""

from __future__ import annotations

from enum import Enum

from agswitch.domain.exceptions import InvalidTransitionError


class GroupState(Enum):
    """States a replica group passes through within one run.

    Every selected group ends in AUDITED, whichever branch it took.
    """

    DISCOVERED = "discovered"
    SELECTED = "selected"
    MODE_ENSURED = "mode_ensured"
    SYNC_WAITING = "sync_waiting"
    SYNC_READY = "sync_ready"
    SYNC_TIMED_OUT = "sync_timed_out"
    FAILING_OVER = "failing_over"
    FAILED_OVER = "failed_over"
    FAILOVER_FAILED = "failover_failed"
    REVERTING = "reverting"
    REVERTED = "reverted"
    AUDITED = "audited"


# Edges into REVERTING from pre-failover states are the error paths: the
# step failed (or the timeout decision skipped the failover) and the group
# goes straight to cleanup. REVERTING -> AUDITED means the revert failed.
_TRANSITIONS: dict[GroupState, frozenset[GroupState]] = {
    GroupState.DISCOVERED: frozenset({GroupState.SELECTED}),
    GroupState.SELECTED: frozenset({GroupState.MODE_ENSURED, GroupState.REVERTING}),
    GroupState.MODE_ENSURED: frozenset(
        {GroupState.SYNC_WAITING, GroupState.REVERTING}
    ),
    GroupState.SYNC_WAITING: frozenset(
        {GroupState.SYNC_READY, GroupState.SYNC_TIMED_OUT, GroupState.REVERTING}
    ),
    GroupState.SYNC_READY: frozenset({GroupState.FAILING_OVER}),
    GroupState.SYNC_TIMED_OUT: frozenset(
        {GroupState.FAILING_OVER, GroupState.REVERTING}
    ),
    GroupState.FAILING_OVER: frozenset(
        {GroupState.FAILED_OVER, GroupState.FAILOVER_FAILED}
    ),
    GroupState.FAILED_OVER: frozenset({GroupState.REVERTING}),
    GroupState.FAILOVER_FAILED: frozenset({GroupState.REVERTING}),
    GroupState.REVERTING: frozenset({GroupState.REVERTED, GroupState.AUDITED}),
    GroupState.REVERTED: frozenset({GroupState.AUDITED}),
    GroupState.AUDITED: frozenset(),
}


def allowed_transitions(state: GroupState) -> frozenset[GroupState]:
    """Return the states reachable from state in one step."""
    return _TRANSITIONS[state]


class GroupLifecycle:
    """Tracks and validates the state of one replica group.

    Starts in DISCOVERED. advance() rejects any edge not in the transition
    table, so a sequencing bug in the orchestrator fails loudly instead of
    leaving a group in an undocumented state.
    """

    def __init__(self, group_name: str) -> None:
        self.group_name = group_name
        self._state = GroupState.DISCOVERED
        self._history: list[GroupState] = [GroupState.DISCOVERED]

    @property
    def state(self) -> GroupState:
        return self._state

    @property
    def history(self) -> list[GroupState]:
        """States visited so far, in order (copy)."""
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self._state]

    def advance(self, new_state: GroupState) -> GroupState:
        """Move to new_state.

        Args:
            new_state: Requested next state.

        Returns:
            The previous state.

        Raises:
            InvalidTransitionError: If the edge is not allowed.
        """
        if new_state not in _TRANSITIONS[self._state]:
            raise InvalidTransitionError(self.group_name, self._state, new_state)
        previous = self._state
        self._state = new_state
        self._history.append(new_state)
        return previous
