"""Fake event emitter for testing."""

from __future__ import annotations

from agswitch.domain.events import GroupStateChanged
from agswitch.domain.lifecycle import GroupState


class FakeEventEmitter:
    """Records every GroupStateChanged event it is given."""

    def __init__(self) -> None:
        self.events: list[GroupStateChanged] = []

    def emit(self, event: GroupStateChanged) -> None:
        self.events.append(event)

    def states_for(self, group_name: str) -> list[GroupState]:
        """States entered by group_name, in order."""
        return [event.current for event in self.events if event.group_name == group_name]
