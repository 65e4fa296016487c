"""Data model for agent runs: reasoning steps, traces, plans and results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field

from taskagents.tools.base import ToolOutcome


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StopReason(str, Enum):
    """Why a reasoning loop stopped."""

    COMPLETION_MARKER = "completion_marker"
    RESULT_COMPLETE = "result_complete"
    REPEATED_FAILURE = "repeated_failure"
    MAX_ITERATIONS = "max_iterations"
    TOOL_LISTING = "tool_listing"
    PLANNED = "planned"


class ReasoningStep(BaseModel):
    """A single reason/act step of the loop."""

    model_config = ConfigDict(frozen=True)

    iteration: int
    thought: str
    action: str | None = None
    action_input: str | None = None
    outcome: ToolOutcome | None = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def failure_key(self) -> str:
        return f"{self.action}:{self.action_input}"


class PlanTraceEntry(BaseModel):
    """Synthetic trace entry describing a task decomposition."""

    model_config = ConfigDict(frozen=True)

    step: int = 1
    action: str = "plan"
    action_input: str
    observation: str

    @classmethod
    def for_steps(cls, task: str, steps: list[str]) -> PlanTraceEntry:
        return cls(
            action_input=task,
            observation=f"Decomposed into {len(steps)} steps: {', '.join(steps)}",
        )


TraceEntry = ReasoningStep | PlanTraceEntry


class ReasoningTrace:
    """Append-only ordered log of steps for one run."""

    def __init__(self) -> None:
        self._steps: list[ReasoningStep] = []

    def append(self, step: ReasoningStep) -> None:
        self._steps.append(step)

    def last_successful(self, error_marker: str = "error") -> ReasoningStep | None:
        """Most recent step whose action succeeded without an error marker."""
        for step in reversed(self._steps):
            outcome = step.outcome
            if outcome and outcome.success and error_marker not in outcome.formatted.lower():
                return step
        return None

    @property
    def last(self) -> ReasoningStep | None:
        return self._steps[-1] if self._steps else None

    @property
    def steps(self) -> list[ReasoningStep]:
        """Get all steps (read-only copy)."""
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[ReasoningStep]:
        return iter(list(self._steps))


class FailureTally:
    """Counts repeated failures of the same ``action:input`` pair."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def record(self, key: str) -> int:
        self._counts[key] = self._counts.get(key, 0) + 1
        return self._counts[key]

    def count(self, key: str) -> int:
        return self._counts.get(key, 0)

    def reached(self, threshold: int) -> bool:
        """Whether any single key has failed ``threshold`` times."""
        return any(count >= threshold for count in self._counts.values())

    def describe(self) -> str:
        """Prompt section steering the model away from failed actions."""
        if not self._counts:
            return "No failed actions yet"
        lines = [f"  {key} (failed {count} times)" for key, count in self._counts.items()]
        return "Failed actions (avoid repeating):\n" + "\n".join(lines)

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)

    def __bool__(self) -> bool:
        return bool(self._counts)


class RunResult(BaseModel):
    """Result of an agent run."""

    task: str
    final_answer: str | None
    reasoning_trace: list[TraceEntry] = Field(default_factory=list)
    iterations: int = 0
    success: bool = False
    stop_reason: StopReason | None = None


class PlanResult(RunResult):
    """Result of a decomposition, shaped like a run result."""

    steps: list[str] = Field(default_factory=list)
    result: str = ""

    @classmethod
    def from_steps(cls, task: str, steps: list[str]) -> PlanResult:
        joined = "\n\n".join(steps)
        return cls(
            task=task,
            steps=steps,
            result=joined,
            final_answer=joined,
            reasoning_trace=[PlanTraceEntry.for_steps(task, steps)],
            iterations=1,
            success=bool(steps),
            stop_reason=StopReason.PLANNED,
        )


class ValidatedAnswer(BaseModel):
    """A step answer that passed validation, with its processed form."""

    model_config = ConfigDict(frozen=True)

    step_number: int
    step: str
    original_answer: str
    processed_answer: str
    quality_score: int = Field(ge=0, le=10)


class CompositeRunResult(RunResult):
    """Result of an orchestrated run."""

    approach: Literal["direct", "planned"]
    planning_result: PlanResult
    plan_entry: PlanTraceEntry | None = None
    execution_results: list[RunResult] = Field(default_factory=list)
    validated_answers: list[ValidatedAnswer] = Field(default_factory=list)


class StepCompletion(BaseModel):
    """Streaming event emitted after each planned step finishes."""

    type: Literal["step_completion"] = "step_completion"
    step: int
    total_steps: int
    current_step: str
    step_result: RunResult
    validated_answer: ValidatedAnswer | None = None


StreamEvent = ReasoningStep | PlanResult | StepCompletion
