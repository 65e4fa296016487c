"""ReAct agent - reason, act, observe loop over a single task."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import structlog

from taskagents.agent.base import Agent, StepCallback
from taskagents.agent.memory import ConversationMemory
from taskagents.agent.state import (
    FailureTally,
    ReasoningStep,
    ReasoningTrace,
    RunResult,
    StopReason,
)
from taskagents.llm.client import resolve_client
from taskagents.tools.base import ToolOutcome

if TYPE_CHECKING:
    from taskagents.llm.base import ChatModel
    from taskagents.tools.manager import ToolManager

logger = structlog.get_logger()

THOUGHT_PATTERN = re.compile(r"Thought:\s*(.*?)(?=Action:|$)", re.DOTALL)
ACTION_PATTERN = re.compile(r"Action:\s*(\w+)")
ACTION_INPUT_PATTERN = re.compile(r"Action Input:\s*(```.*?```|[^\n]*)", re.DOTALL)
FENCE_OPEN_PATTERN = re.compile(r"^```\w*\n?")
FENCE_CLOSE_PATTERN = re.compile(r"\n?```$")
FINAL_ANSWER_PATTERN = re.compile(r"FINAL ANSWER:\s*(.*)", re.DOTALL)

UNABLE_TO_COMPLETE = "Unable to complete task"

REASONING_PROMPT = """You are a ReAct agent. Your task is: {task}

Available tools:
{tools}

Previous observations:
{observations}

{failed_actions}

Instructions:
- For calculations: Use calculator tool, then provide FINAL ANSWER
- For web searches: Use web_search tool to get the most relevant information
- For dates and time: Use date_time tool with empty input or timezone name (e.g., "Moscow", "Europe/London")
- For multiple timezones: Use date_time tool once for each timezone
- For current information: first use date_time to get the current year, then web_search with that year
- For code: Use code_interpreter tool
- For multi-step tasks (with "and"): Complete ALL steps before FINAL ANSWER
- After getting a good result, provide FINAL ANSWER
- Don't repeat failed actions
- Summarize the result in a few words

Format:
Thought: [brief reasoning]
Action: [tool_name]
Action Input: [input]

Or when done:
Thought: [reasoning]
FINAL ANSWER: [answer]
"""


@dataclass
class ReActConfig:
    """Loop bounds and completion heuristics."""

    max_iterations: int = 3
    failure_threshold: int = 3
    # A successful result longer than this is taken as a complete answer
    completion_min_length: int = 100
    ambiguous_markers: tuple[str, ...] = ("timezone",)
    error_marker: str = "error"
    completion_markers: tuple[str, ...] = ("FINAL ANSWER", "Task completed")


@dataclass
class ParsedReply:
    thought: str
    action: str | None = None
    action_input: str | None = None


def parse_reasoning_reply(reply: str) -> ParsedReply:
    """Parse a Thought/Action/Action Input reply.

    Replies without both ``Thought:`` and ``Action:`` are taken whole as the
    thought.
    """
    if "Thought:" not in reply or "Action:" not in reply:
        return ParsedReply(thought=reply)

    thought_match = THOUGHT_PATTERN.search(reply)
    action_match = ACTION_PATTERN.search(reply)
    input_match = ACTION_INPUT_PATTERN.search(reply)

    action_input = input_match.group(1).strip() if input_match else None
    if action_input and action_input.startswith("```"):
        action_input = FENCE_CLOSE_PATTERN.sub("", FENCE_OPEN_PATTERN.sub("", action_input))

    return ParsedReply(
        thought=thought_match.group(1).strip() if thought_match else reply,
        action=action_match.group(1) if action_match else None,
        action_input=action_input,
    )


class ReActAgent(Agent):
    """Reasoning + Acting agent.

    Each iteration:
    1. REASON: ask the model for a thought and an action
    2. ACT: run the chosen tool, capturing any failure
    3. OBSERVE: record the outcome and count repeated failures
    4. CHECK: stop on a completion marker, a complete-looking result,
       a repeated failure or the iteration limit
    """

    def __init__(
        self,
        model: str | ChatModel,
        tools: ToolManager,
        memory: ConversationMemory | None = None,
        max_iterations: int | None = None,
        config: ReActConfig | None = None,
        **client_options: Any,
    ) -> None:
        self.config = config or ReActConfig()
        if max_iterations is not None:
            self.config = replace(self.config, max_iterations=max_iterations)

        self.model = model
        self.client = resolve_client(model, **client_options)
        self.tools = tools
        self.memory = memory if memory is not None else ConversationMemory()

        self._log = logger.bind(component="react_agent")

    @property
    def max_iterations(self) -> int:
        return self.config.max_iterations

    @property
    def description(self) -> str:
        return "ReAct agent with reasoning and acting capabilities for complex multi-step tasks"

    def can_handle(self, task: str) -> bool:
        return (
            "analyze" in task
            or ("find" in task and "and" in task)
            or ("calculate" in task and "and" in task)
            or len(task) > 50
        )

    async def run(
        self,
        task: str,
        stream: bool = False,
        on_step: StepCallback | None = None,
    ) -> RunResult:
        """Execute the reasoning loop for a task."""
        if self._asks_for_tools(task):
            return RunResult(
                task=task,
                final_answer=f"Available tools: {', '.join(self.tools.tool_names)}",
                iterations=0,
                success=True,
                stop_reason=StopReason.TOOL_LISTING,
            )

        log = self._log.bind(run_id=str(uuid.uuid4())[:8])
        log.info("Starting ReAct run", task=task[:100], max_iterations=self.max_iterations)

        trace = ReasoningTrace()
        tally = FailureTally()
        stop_reason = StopReason.MAX_ITERATIONS

        for iteration in range(1, self.max_iterations + 1):
            step = await self._reason(task, trace, tally, iteration)
            self._emit(stream, on_step, step)

            outcome = await self._act(step)
            step = step.model_copy(update={"outcome": outcome})
            trace.append(step)

            if not outcome.success or self._has_error(outcome.formatted):
                count = tally.record(step.failure_key)
                log.debug("Action failed", action=step.action, count=count, error=outcome.error)

            reason = self._stop_reason(step, tally)
            if reason is not None:
                stop_reason = reason
                break

        if stop_reason is StopReason.REPEATED_FAILURE:
            log.warning("Stopping after repeated failures", failures=tally.as_dict())

        final_answer = self.extract_final_answer(trace)
        success = self._is_successful(final_answer)

        log.info(
            "ReAct run finished",
            iterations=len(trace),
            stop_reason=stop_reason.value,
            success=success,
        )

        return RunResult(
            task=task,
            final_answer=final_answer,
            reasoning_trace=trace.steps,
            iterations=len(trace),
            success=success,
            stop_reason=stop_reason,
        )

    async def _reason(
        self,
        task: str,
        trace: ReasoningTrace,
        tally: FailureTally,
        iteration: int,
    ) -> ReasoningStep:
        """Ask the model for the next thought and action."""
        prompt = self.build_prompt(task, trace, tally)
        reply = await self.client.chat(prompt)
        parsed = parse_reasoning_reply(reply)

        self._log.debug(
            "Reasoning complete",
            iteration=iteration,
            action=parsed.action,
            thought_length=len(parsed.thought),
        )

        return ReasoningStep(
            iteration=iteration,
            thought=parsed.thought,
            action=parsed.action,
            action_input=parsed.action_input,
        )

    async def _act(self, step: ReasoningStep) -> ToolOutcome:
        """Run the step's tool; failures are returned, never raised."""
        if not step.action:
            return ToolOutcome(success=False, error="No action specified")

        tool = self.tools.get(step.action)
        if tool is None:
            return ToolOutcome(
                success=False,
                tool=step.action,
                input=step.action_input,
                error=f"Tool '{step.action}' not found",
            )

        try:
            result = await tool.call(step.action_input or "", {})
            return ToolOutcome(
                success=True,
                tool=step.action,
                input=step.action_input,
                result=result,
                formatted=tool.format_result(result),
            )
        except Exception as e:
            self._log.warning("Tool raised", tool=step.action, error=str(e))
            return ToolOutcome(
                success=False,
                tool=step.action,
                input=step.action_input,
                error=str(e),
            )

    def build_prompt(self, task: str, trace: ReasoningTrace, tally: FailureTally) -> str:
        observations = "\n".join(step.outcome.text for step in trace if step.outcome)
        return REASONING_PROMPT.format(
            task=task,
            tools=self.tools.tools_description(),
            observations=observations or "None",
            failed_actions=tally.describe(),
        )

    def _stop_reason(self, step: ReasoningStep, tally: FailureTally) -> StopReason | None:
        if any(marker in step.thought for marker in self.config.completion_markers):
            return StopReason.COMPLETION_MARKER

        outcome = step.outcome
        if outcome and outcome.success and self._looks_complete(outcome.formatted):
            return StopReason.RESULT_COMPLETE

        if tally.reached(self.config.failure_threshold):
            return StopReason.REPEATED_FAILURE

        return None

    def _looks_complete(self, text: str) -> bool:
        return (
            not self._has_error(text)
            and len(text) > self.config.completion_min_length
            and not any(marker in text for marker in self.config.ambiguous_markers)
        )

    def extract_final_answer(self, trace: ReasoningTrace) -> str | None:
        """Pick the answer out of a finished trace."""
        last = trace.last
        if last is None:
            return None

        match = FINAL_ANSWER_PATTERN.search(last.thought)
        if match:
            return match.group(1).strip()

        if last.action is None:
            return last.thought

        if last.outcome and last.outcome.success and not self._has_error(last.outcome.formatted):
            return last.outcome.formatted

        earlier = trace.last_successful(self.config.error_marker)
        if earlier is not None and earlier.outcome is not None:
            return earlier.outcome.formatted

        return f"{UNABLE_TO_COMPLETE} after {len(trace)} attempts"

    def _is_successful(self, answer: str | None) -> bool:
        return bool(answer) and not self._has_error(answer) and not answer.startswith(UNABLE_TO_COMPLETE)

    def _has_error(self, text: str) -> bool:
        return self.config.error_marker in text.lower()

    @staticmethod
    def _asks_for_tools(task: str) -> bool:
        lowered = task.lower()
        return "tools" in lowered and ("available" in lowered or "which" in lowered)
