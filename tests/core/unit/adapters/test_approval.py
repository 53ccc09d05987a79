"""Unit tests for approval provider adapters."""

import pytest

from agswitch.adapters.approval import (
    ApproveAllProvider,
    ConsoleApprovalProvider,
    StaticApprovalProvider,
)

from tests.core.unit.builders import make_group


class ScriptedConsole:
    """Feeds canned answers to ConsoleApprovalProvider and records prompts."""

    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []
        self.output: list[str] = []

    def input(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    def print(self, message: str) -> None:
        self.output.append(message)

    def provider(self) -> ConsoleApprovalProvider:
        return ConsoleApprovalProvider(input_func=self.input, output_func=self.print)


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.ConsoleApprovalProvider")
class TestConsoleApprovalProvider:
    @pytest.mark.parametrize("answer", ["y", "Y", "yes", " YES "])
    def test_yes_answers_approve(self, answer: str) -> None:
        assert ScriptedConsole(answer).provider().approve(make_group()) is True

    @pytest.mark.parametrize("answer", ["", "n", "no", "yep", "sure"])
    def test_anything_else_declines(self, answer: str) -> None:
        assert ScriptedConsole(answer).provider().approve(make_group()) is False

    def test_end_of_input_declines(self) -> None:
        assert ScriptedConsole().provider().approve(make_group()) is False

    def test_prompt_describes_group(self) -> None:
        console = ScriptedConsole("n")

        console.provider().approve(make_group("Sales", primary="SQL1"))

        [prompt] = console.prompts
        assert "'Sales'" in prompt
        assert "primary: SQL1" in prompt
        assert "mode: asynchronous" in prompt
        assert prompt.endswith("[y/N] ")

    def test_unsynchronized_prompt_warns_first(self) -> None:
        console = ScriptedConsole("yes")

        approved = console.provider().approve_unsynchronized(make_group("Sales"))

        assert approved is True
        assert "not synchronized" in console.output[0]
        assert "anyway" in console.prompts[0]


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.StaticApprovalProvider")
class TestStaticApprovalProvider:
    def test_listed_groups_only(self) -> None:
        provider = StaticApprovalProvider(["AG1", "AG3"])

        assert provider.approve(make_group("AG1")) is True
        assert provider.approve(make_group("AG2")) is False

    def test_matching_ignores_case(self) -> None:
        assert StaticApprovalProvider(["sales"]).approve(make_group("SALES")) is True

    def test_unsynchronized_declined_by_default(self) -> None:
        provider = StaticApprovalProvider(["AG1"])
        assert provider.approve_unsynchronized(make_group("AG1")) is False

    def test_unsynchronized_requires_listing(self) -> None:
        provider = StaticApprovalProvider(["AG1"], allow_unsynchronized=True)

        assert provider.approve_unsynchronized(make_group("AG1")) is True
        assert provider.approve_unsynchronized(make_group("AG2")) is False


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.ApproveAllProvider")
class TestApproveAllProvider:
    def test_approves_everything(self) -> None:
        assert ApproveAllProvider().approve(make_group("anything")) is True

    def test_unsynchronized_is_opt_in(self) -> None:
        assert ApproveAllProvider().approve_unsynchronized(make_group()) is False
        assert (
            ApproveAllProvider(allow_unsynchronized=True).approve_unsynchronized(
                make_group()
            )
            is True
        )
