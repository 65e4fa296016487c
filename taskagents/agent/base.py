"""Common contract implemented by every agent type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from taskagents.agent.state import RunResult, StreamEvent

StepCallback = Callable[["StreamEvent"], None]


class Agent(ABC):
    """Abstract base class for all agents.

    ``run`` emits stream events to ``on_step`` inline, on the caller's stack,
    and only when ``stream`` is true.
    """

    @abstractmethod
    async def run(
        self,
        task: str,
        stream: bool = False,
        on_step: StepCallback | None = None,
    ) -> RunResult:
        """Execute a task."""
        ...

    @abstractmethod
    def can_handle(self, task: str) -> bool:
        """Whether the agent is suited to the task."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of the agent's capabilities."""
        ...

    @staticmethod
    def _emit(stream: bool, on_step: StepCallback | None, event: StreamEvent) -> None:
        if stream and on_step is not None:
            on_step(event)
