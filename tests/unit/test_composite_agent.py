"""Tests for the composite orchestrator."""

from typing import Any

import pytest

from taskagents.agent.base import Agent
from taskagents.agent.composite import CompositeAgent
from taskagents.agent.planner import PlannerAgent
from taskagents.agent.state import (
    PlanResult,
    PlanTraceEntry,
    RunResult,
    StepCompletion,
    StopReason,
)
from taskagents.agent.validation import NO_ANSWER_SENTENCE, SUMMARY_LINE
from taskagents.tools.base import BaseTool
from taskagents.tools.manager import ToolManager


class ScriptedModel:
    def __init__(self, replies: list[str]) -> None:
        self.replies = list(replies)

    async def chat(self, prompt: str) -> str:
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class FixedPlanner(Agent):
    def __init__(self, steps: list[str]) -> None:
        self.steps = steps

    @property
    def description(self) -> str:
        return "fixed planner"

    def can_handle(self, task: str) -> bool:
        return False

    async def run(self, task: str, stream: bool = False, on_step: Any = None) -> PlanResult:
        return PlanResult.from_steps(task, self.steps)


class ScriptedExecutor(Agent):
    """Returns queued (answer, success, iterations) results in order."""

    def __init__(self, results: list[tuple[str, bool, int]]) -> None:
        self.results = list(results)
        self.tasks: list[str] = []

    @property
    def description(self) -> str:
        return "scripted executor"

    def can_handle(self, task: str) -> bool:
        return task == "handled"

    async def run(self, task: str, stream: bool = False, on_step: Any = None) -> RunResult:
        self.tasks.append(task)
        answer, success, iterations = self.results.pop(0)
        return RunResult(
            task=task,
            final_answer=answer,
            iterations=iterations,
            success=success,
            stop_reason=StopReason.COMPLETION_MARKER,
        )


class CalculatorStub(BaseTool):
    @property
    def name(self) -> str:
        return "calculator"

    @property
    def description(self) -> str:
        return "calculator"

    def match(self, prompt: str) -> bool:
        return True

    async def call(self, prompt: str, context: dict[str, Any] | None = None) -> str:
        return "137"


def composite(planner: Agent, executor: Agent) -> CompositeAgent:
    return CompositeAgent(model="unused", tools=ToolManager(), planner=planner, executor=executor)


class TestCompositeAgent:
    """Tests for CompositeAgent."""

    @pytest.mark.asyncio
    async def test_direct_path_with_react_executor(self) -> None:
        """Simple arithmetic runs directly through the built-in executor."""
        model = ScriptedModel([
            "Thought: Use the calculator\nAction: calculator\nAction Input: 15 * 7 + 32",
            "Thought: Got it\nFINAL ANSWER: 137",
        ])
        agent = CompositeAgent(model=model, tools=ToolManager(tools=[CalculatorStub()]))

        result = await agent.run("Calculate 15 * 7 + 32")

        assert result.final_answer == "137"
        assert result.approach == "direct"
        assert result.success is True
        assert result.planning_result.steps == ["Calculate 15 * 7 + 32"]
        assert len(result.execution_results) == 1

    @pytest.mark.asyncio
    async def test_planned_path(self) -> None:
        """Conjunction tasks are decomposed and every step answer aggregated."""
        planner = FixedPlanner(["Find the president of the US", "Find the capital of France"])
        executor = ScriptedExecutor([("Joe Biden", True, 2), ("Paris", True, 1)])
        agent = composite(planner, executor)

        result = await agent.run("Find the president of the US and the capital of France")

        assert result.approach == "planned"
        assert "Joe Biden" in result.final_answer
        assert "Paris" in result.final_answer
        assert result.final_answer.endswith(SUMMARY_LINE)
        assert result.success is True
        assert result.iterations == 3
        assert result.stop_reason == StopReason.PLANNED
        assert executor.tasks == planner.steps
        assert [answer.step_number for answer in result.validated_answers] == [1, 2]
        assert isinstance(result.reasoning_trace[0], PlanTraceEntry)
        assert result.plan_entry == result.reasoning_trace[0]
        assert result.plan_entry.observation == (
            "Decomposed into 2 steps: Find the president of the US, Find the capital of France"
        )

    @pytest.mark.asyncio
    async def test_rejected_steps_lower_success(self) -> None:
        planner = FixedPlanner(["Find A", "Find B", "Find C"])
        executor = ScriptedExecutor([
            ("Unable to complete task after 3 attempts", False, 3),
            ("Error: service failed", True, 1),
            ("C is 3", True, 1),
        ])
        agent = composite(planner, executor)

        result = await agent.run("Find A and B and C")

        assert [answer.processed_answer for answer in result.validated_answers] == ["C is 3"]
        assert result.final_answer == "C is 3"
        assert result.success is False

    @pytest.mark.asyncio
    async def test_empty_plan(self) -> None:
        executor = ScriptedExecutor([])
        agent = composite(FixedPlanner([]), executor)

        result = await agent.run("Find something and something else")

        assert result.final_answer == NO_ANSWER_SENTENCE
        assert result.success is False
        assert result.iterations == 0
        assert executor.tasks == []

    @pytest.mark.asyncio
    async def test_simple_rule_beats_conjunction(self) -> None:
        executor = ScriptedExecutor([("4 and 6", True, 1)])
        planner = FixedPlanner(["never used"])
        agent = composite(planner, executor)

        result = await agent.run("calculate 2 + 2 and 3 + 3")

        assert result.approach == "direct"
        assert executor.tasks == ["calculate 2 + 2 and 3 + 3"]

    @pytest.mark.asyncio
    async def test_streaming_events(self) -> None:
        planner = PlannerAgent(model=ScriptedModel(["Step one\nStep two"]))
        executor = ScriptedExecutor([("first answer", True, 1), ("failed badly", True, 1)])
        agent = composite(planner, executor)
        events: list[Any] = []

        await agent.run("Do step one and then step two", stream=True, on_step=events.append)

        assert isinstance(events[0], PlanResult)
        completions = events[1:]
        assert all(isinstance(event, StepCompletion) for event in completions)
        assert [event.step for event in completions] == [1, 2]
        assert all(event.total_steps == 2 for event in completions)
        assert completions[0].validated_answer is not None
        assert completions[1].validated_answer is None

    @pytest.mark.asyncio
    async def test_non_plan_result_from_planner(self) -> None:
        executor = ScriptedExecutor([("done", True, 1)])
        planner = ScriptedExecutor([("whatever", True, 1)])
        agent = composite(planner, executor)

        result = await agent.run("Find this and that")

        assert executor.tasks == ["Find this and that"]
        assert result.final_answer == "done"

    def test_can_handle_delegates(self) -> None:
        agent = composite(FixedPlanner([]), ScriptedExecutor([]))
        assert agent.can_handle("handled")
        assert not agent.can_handle("other")
