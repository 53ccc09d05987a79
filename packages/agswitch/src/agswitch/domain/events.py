"""Domain events for replica group state transitions.

Events are immutable value objects, emitted by the Orchestrator each time a
group's lifecycle advances.
"""

from __future__ import annotations

from dataclasses import dataclass

from agswitch.domain.lifecycle import GroupState


@dataclass(frozen=True)
class GroupStateChanged:
    """Immutable event representing one lifecycle transition.

    Attributes:
        run_id: Identifier of the orchestration run.
        group_name: Replica group whose state changed.
        previous: State before the transition.
        current: State after the transition.
        reason: Optional human-readable reason (e.g., an error message).
    """

    run_id: str
    group_name: str
    previous: GroupState
    current: GroupState
    reason: str | None = None
