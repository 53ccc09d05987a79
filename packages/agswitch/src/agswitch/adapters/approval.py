"""Approval provider adapters implementing ApprovalProviderPort.

Three ways to approve replica groups for a run:
- ConsoleApprovalProvider: ask the operator, one group at a time.
- StaticApprovalProvider: approve a pre-supplied list of names (config file).
- ApproveAllProvider: approve every candidate (--yes).
"""

from __future__ import annotations

from typing import Callable, Iterable

from agswitch.domain.replica_group import ReplicaGroup

_YES = frozenset({"y", "yes"})


class ConsoleApprovalProvider:
    """Interactive approval over stdin/stdout.

    Anything other than "y" or "yes" (case-insensitive) is a rejection,
    including an empty answer.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ) -> None:
        """Initialize the provider.

        Args:
            input_func: Prompt function. Defaults to builtin input().
            output_func: Output function for notices. Defaults to print().
        """
        self._input = input_func
        self._output = output_func

    def approve(self, group: ReplicaGroup) -> bool:
        prompt = (
            f"Fail over availability group '{group.name}' "
            f"(primary: {group.primary_endpoint}, "
            f"mode: {group.original_mode.value})? [y/N] "
        )
        return self._ask(prompt)

    def approve_unsynchronized(self, group: ReplicaGroup) -> bool:
        self._output(
            f"WARNING: databases in '{group.name}' are not synchronized; "
            "failing over now may lose data."
        )
        return self._ask(f"Fail over '{group.name}' anyway? [y/N] ")

    def _ask(self, prompt: str) -> bool:
        try:
            answer = self._input(prompt)
        except EOFError:
            return False
        return answer.strip().lower() in _YES


class StaticApprovalProvider:
    """Approves groups whose names appear in a fixed list.

    Name matching is case-insensitive, as availability group names are.
    """

    def __init__(
        self,
        approved_groups: Iterable[str],
        allow_unsynchronized: bool = False,
    ) -> None:
        """Initialize the provider.

        Args:
            approved_groups: Group names to approve.
            allow_unsynchronized: Answer for approve_unsynchronized().
        """
        self._approved = frozenset(name.lower() for name in approved_groups)
        self._allow_unsynchronized = allow_unsynchronized

    def approve(self, group: ReplicaGroup) -> bool:
        return group.name.lower() in self._approved

    def approve_unsynchronized(self, group: ReplicaGroup) -> bool:
        return self._allow_unsynchronized and self.approve(group)


class ApproveAllProvider:
    """Approves every candidate group."""

    def __init__(self, allow_unsynchronized: bool = False) -> None:
        self._allow_unsynchronized = allow_unsynchronized

    def approve(self, group: ReplicaGroup) -> bool:
        return True

    def approve_unsynchronized(self, group: ReplicaGroup) -> bool:
        return self._allow_unsynchronized
