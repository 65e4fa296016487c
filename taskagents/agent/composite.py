"""Composite agent - plans compound tasks and executes each step with ReAct."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import structlog

from taskagents.agent.base import Agent, StepCallback
from taskagents.agent.classification import (
    CLASSIFICATION_RULES,
    PLANNING_LENGTH_THRESHOLD,
    Approach,
    ClassificationRule,
    classify_task,
)
from taskagents.agent.memory import ConversationMemory
from taskagents.agent.planner import PlannerAgent
from taskagents.agent.react import ReActAgent, ReActConfig
from taskagents.agent.state import (
    CompositeRunResult,
    PlanResult,
    PlanTraceEntry,
    RunResult,
    StepCompletion,
    StopReason,
    TraceEntry,
    ValidatedAnswer,
)
from taskagents.agent.validation import aggregate_answers, overall_success, validate_step_result
from taskagents.llm.client import resolve_client

if TYPE_CHECKING:
    from taskagents.llm.base import ChatModel
    from taskagents.tools.manager import ToolManager

logger = structlog.get_logger()


class CompositeAgent(Agent):
    """Combines a planner and a ReAct executor.

    Simple tasks go straight to the executor. Compound tasks are decomposed
    first; each step is executed, validated and scored, and the accepted
    answers are aggregated into one final answer.
    """

    def __init__(
        self,
        model: str | ChatModel,
        tools: ToolManager,
        memory: ConversationMemory | None = None,
        max_iterations: int = 3,
        planner: Agent | None = None,
        executor: Agent | None = None,
        config: ReActConfig | None = None,
        rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
        planning_length_threshold: int = PLANNING_LENGTH_THRESHOLD,
        **client_options: Any,
    ) -> None:
        self.model = model
        self.tools = tools
        self.memory = memory if memory is not None else ConversationMemory()
        self.max_iterations = max_iterations
        self.rules = rules
        self.planning_length_threshold = planning_length_threshold

        if planner is None or executor is None:
            # One client shared by both agents
            client = resolve_client(model, **client_options)
            planner = planner or PlannerAgent(model=client)
            executor = executor or ReActAgent(
                model=client,
                tools=tools,
                memory=self.memory,
                max_iterations=max_iterations,
                config=config,
            )

        self.planner = planner
        self.executor = executor
        self._log = logger.bind(component="composite_agent")

    @property
    def description(self) -> str:
        return (
            "Composite agent with intelligent planning and execution capabilities "
            "for complex multi-step tasks"
        )

    def can_handle(self, task: str) -> bool:
        return self.planner.can_handle(task) or self.executor.can_handle(task)

    def classify(self, task: str) -> Approach:
        return classify_task(task, self.rules, self.planning_length_threshold)

    async def run(
        self,
        task: str,
        stream: bool = False,
        on_step: StepCallback | None = None,
    ) -> CompositeRunResult:
        approach = self.classify(task)
        self._log.info("Selected approach", task=task[:100], approach=approach.value)

        if approach is Approach.PLANNED:
            return await self._run_with_planning(task, stream, on_step)
        return await self._execute_directly(task, stream, on_step)

    async def _execute_directly(
        self,
        task: str,
        stream: bool,
        on_step: StepCallback | None,
    ) -> CompositeRunResult:
        result = await self.executor.run(task, stream=stream, on_step=on_step)

        return CompositeRunResult(
            task=task,
            final_answer=result.final_answer,
            reasoning_trace=result.reasoning_trace,
            iterations=result.iterations,
            success=result.success,
            stop_reason=result.stop_reason,
            approach=Approach.DIRECT.value,
            planning_result=PlanResult.from_steps(task, [task]),
            execution_results=[result],
        )

    async def _run_with_planning(
        self,
        task: str,
        stream: bool,
        on_step: StepCallback | None,
    ) -> CompositeRunResult:
        log = self._log.bind(run_id=str(uuid.uuid4())[:8])

        planning_result = await self.planner.run(task, stream=stream, on_step=on_step)
        if not isinstance(planning_result, PlanResult):
            planning_result = PlanResult.from_steps(task, [task])
        steps = planning_result.steps
        log.info("Executing plan", num_steps=len(steps))

        execution_results: list[RunResult] = []
        validated_answers: list[ValidatedAnswer] = []

        for index, step in enumerate(steps, start=1):
            step_result = await self.executor.run(step, stream=stream, on_step=on_step)
            execution_results.append(step_result)

            validated = validate_step_result(step_result, step, index)
            if validated is not None:
                validated_answers.append(validated)
            else:
                log.debug("Step answer rejected", step=index, answer=(step_result.final_answer or "")[:100])

            self._emit(
                stream,
                on_step,
                StepCompletion(
                    step=index,
                    total_steps=len(steps),
                    current_step=step,
                    step_result=step_result,
                    validated_answer=validated,
                ),
            )

        plan_entry = PlanTraceEntry.for_steps(task, steps)
        trace: list[TraceEntry] = [plan_entry]
        for step_result in execution_results:
            trace.extend(step_result.reasoning_trace)

        success = overall_success(validated_answers, task)
        log.info(
            "Plan finished",
            validated=len(validated_answers),
            total_steps=len(steps),
            success=success,
        )

        return CompositeRunResult(
            task=task,
            final_answer=aggregate_answers(validated_answers, task),
            reasoning_trace=trace,
            iterations=sum(result.iterations for result in execution_results),
            success=success,
            stop_reason=StopReason.PLANNED,
            approach=Approach.PLANNED.value,
            planning_result=planning_result,
            plan_entry=plan_entry,
            execution_results=execution_results,
            validated_answers=validated_answers,
        )
