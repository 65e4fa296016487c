"""Agent module - ReAct, planner and composite agents plus the agent registry."""

from taskagents.agent.base import Agent, StepCallback
from taskagents.agent.classification import Approach, classify_task
from taskagents.agent.composite import CompositeAgent
from taskagents.agent.factory import AgentDefaults, AgentRegistry, build_default_registry
from taskagents.agent.memory import ConversationMemory
from taskagents.agent.planner import PlannerAgent, parse_steps
from taskagents.agent.react import ReActAgent, ReActConfig
from taskagents.agent.state import (
    CompositeRunResult,
    PlanResult,
    ReasoningStep,
    RunResult,
    StepCompletion,
    StopReason,
    ValidatedAnswer,
)

__all__ = [
    "Agent",
    "AgentDefaults",
    "AgentRegistry",
    "Approach",
    "CompositeAgent",
    "CompositeRunResult",
    "ConversationMemory",
    "PlanResult",
    "PlannerAgent",
    "ReActAgent",
    "ReActConfig",
    "ReasoningStep",
    "RunResult",
    "StepCallback",
    "StepCompletion",
    "StopReason",
    "ValidatedAnswer",
    "build_default_registry",
    "classify_task",
    "parse_steps",
]
