"""Planner agent - decomposes a compound task into atomic steps."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from taskagents.agent.base import Agent, StepCallback
from taskagents.agent.state import PlanResult
from taskagents.llm.client import resolve_client

if TYPE_CHECKING:
    from taskagents.llm.base import ChatModel

logger = structlog.get_logger()

PLANNING_PROMPT = """Decompose the following user request into a minimal sequence of atomic steps.
Return only the steps, one per line, no explanations, *no numbering*.

User request:
{task}

Steps:
"""


def parse_steps(text: str) -> list[str]:
    """Split a newline-separated step list, dropping blank lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class PlannerAgent(Agent):
    """Turns a request into an ordered list of steps with a single model call.

    The reply is not validated beyond line splitting; whatever the model
    lists becomes the plan.
    """

    def __init__(
        self,
        model: str | ChatModel,
        tools: Any = None,
        memory: Any = None,
        max_iterations: int | None = None,
        **client_options: Any,
    ) -> None:
        # tools, memory and max_iterations are accepted for registry
        # compatibility; planning uses neither
        self.model = model
        self.client = resolve_client(model, **client_options)
        self._log = logger.bind(component="planner_agent")

    @property
    def tools(self) -> None:
        return None

    @property
    def memory(self) -> None:
        return None

    @property
    def description(self) -> str:
        return "Planner agent that decomposes complex tasks into atomic steps."

    def can_handle(self, task: str) -> bool:
        return bool(task and task.strip())

    async def plan(self, task: str) -> list[str]:
        """Decompose a task into atomic steps."""
        reply = await self.client.chat(PLANNING_PROMPT.format(task=task))
        steps = parse_steps(reply)
        self._log.info("Planned task", task=task[:100], num_steps=len(steps))
        return steps

    async def run(
        self,
        task: str,
        stream: bool = False,
        on_step: StepCallback | None = None,
    ) -> PlanResult:
        result = PlanResult.from_steps(task, await self.plan(task))
        self._emit(stream, on_step, result)
        return result
