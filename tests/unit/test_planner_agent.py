"""Tests for the planner agent."""

from typing import Any

import pytest

from taskagents.agent.planner import PlannerAgent, parse_steps
from taskagents.agent.state import PlanResult, StopReason


class ScriptedModel:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def chat(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class TestParseSteps:
    """Tests for step list parsing."""

    def test_strips_and_drops_blank_lines(self) -> None:
        text = "  Find the president of the US  \n\n   \nFind the capital of France\n"
        assert parse_steps(text) == ["Find the president of the US", "Find the capital of France"]

    def test_empty_reply(self) -> None:
        assert parse_steps("") == []
        assert parse_steps("\n \n") == []

    @pytest.mark.parametrize("text", [
        "a\nb\nc",
        "\n  step one \n\n\tstep two\t\n",
        "single step",
        "   \n\n",
    ])
    def test_idempotent(self, text: str) -> None:
        steps = parse_steps(text)
        assert parse_steps("\n".join(steps)) == steps


class TestPlannerAgent:
    """Tests for PlannerAgent."""

    @pytest.mark.asyncio
    async def test_plan(self) -> None:
        model = ScriptedModel("Search for X\nCalculate Y\n")
        planner = PlannerAgent(model=model)

        steps = await planner.plan("Search for X and calculate Y")

        assert steps == ["Search for X", "Calculate Y"]
        assert "Search for X and calculate Y" in model.prompts[0]
        assert "one per line" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_run_returns_plan_result(self) -> None:
        planner = PlannerAgent(model=ScriptedModel("Step one\nStep two"))

        result = await planner.run("Do one thing and another")

        assert isinstance(result, PlanResult)
        assert result.steps == ["Step one", "Step two"]
        assert result.final_answer == "Step one\n\nStep two"
        assert result.result == result.final_answer
        assert result.iterations == 1
        assert result.success is True
        assert result.stop_reason == StopReason.PLANNED
        assert result.reasoning_trace[0].observation == "Decomposed into 2 steps: Step one, Step two"

    @pytest.mark.asyncio
    async def test_empty_plan_is_unsuccessful(self) -> None:
        result = await PlannerAgent(model=ScriptedModel("\n\n")).run("Nothing")
        assert result.steps == []
        assert result.success is False

    @pytest.mark.asyncio
    async def test_stream_emits_plan(self) -> None:
        planner = PlannerAgent(model=ScriptedModel("Only step"))
        events: list[Any] = []

        result = await planner.run("Task", stream=True, on_step=events.append)

        assert events == [result]

    def test_contract(self) -> None:
        planner = PlannerAgent(model=ScriptedModel(""), tools=object(), memory=object(), max_iterations=9)
        assert planner.tools is None
        assert planner.memory is None
        assert planner.can_handle("anything")
        assert not planner.can_handle("   ")
        assert "decomposes" in planner.description
