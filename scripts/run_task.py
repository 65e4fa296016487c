#!/usr/bin/env python3
"""Run a task through a configured agent and print the result."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

import structlog

from taskagents.agent.factory import AgentDefaults, build_default_registry
from taskagents.agent.memory import ConversationMemory
from taskagents.agent.react import ReActConfig
from taskagents.agent.state import ReasoningStep, StepCompletion
from taskagents.llm.client import LLMClient, LLMConfig
from taskagents.tools.factory import create_default_toolset, from_config
from taskagents.utils.config import AppConfig, get_settings, load_config

logger = structlog.get_logger()

EXAMPLE_TASKS = [
    "Calculate 25 * 37 + 100",
    "What time is it in Tokyo?",
    "Find the president of the US and the capital of France",
]


def configure_logging(level: str) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def print_event(event: Any) -> None:
    """Print stream events as they arrive."""
    if isinstance(event, ReasoningStep):
        print(f"[{event.iteration}] Thought: {event.thought}")
        if event.action:
            print(f"    Action: {event.action}({event.action_input})")
    elif isinstance(event, StepCompletion):
        status = "accepted" if event.validated_answer else "rejected"
        print(f"--- Step {event.step}/{event.total_steps} {status}: {event.current_step}")
    else:
        print(f"--- Plan: {getattr(event, 'steps', [])}")


async def run_task(config: AppConfig, agent_type: str, task: str, stream: bool, tools_only: bool) -> None:
    """Run a single task with the configured agent."""
    settings = get_settings()

    if config.tools:
        tools = from_config([entry.as_factory_entry() for entry in config.tools])
    else:
        tools = create_default_toolset()

    if tools_only:
        outcomes = await tools.auto_execute(task, limit=config.agent.tool_limit)
        print(tools.format_results(outcomes) if outcomes else "No tools matched")
        return

    llm_options = config.llm.client_options()
    if settings.base_url and "base_url" not in llm_options:
        llm_options["base_url"] = settings.base_url
    if settings.openai_api_key and "api_key" not in llm_options:
        llm_options["api_key"] = settings.openai_api_key

    client = LLMClient(LLMConfig.for_model(config.llm.model, **llm_options))
    registry = build_default_registry(
        AgentDefaults(model=client, tools_factory=lambda: tools, memory_factory=ConversationMemory)
    )

    extras: dict[str, Any] = {}
    if agent_type in ("react", "composite"):
        extras["config"] = ReActConfig(
            max_iterations=config.agent.max_iterations,
            failure_threshold=config.agent.failure_threshold,
            completion_min_length=config.agent.completion_min_length,
        )
    if agent_type == "composite":
        extras["planning_length_threshold"] = config.agent.planning_length_threshold

    agent = registry.create(agent_type, max_iterations=config.agent.max_iterations, **extras)
    logger.info("Running task", agent=agent_type, task=task[:100])

    try:
        result = await agent.run(task, stream=stream, on_step=print_event if stream else None)
    finally:
        await client.close()

    print()
    print(f"Answer: {result.final_answer}")
    print(f"Success: {result.success} ({result.iterations} iterations, stop: {result.stop_reason})")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run a task through an agent")
    parser.add_argument("task", nargs="?", default=EXAMPLE_TASKS[0], help="Task to run")
    parser.add_argument(
        "--config",
        type=str,
        default="configs/default.yaml",
        help="Path to configuration file",
    )
    parser.add_argument("--agent", type=str, default=None, help="Agent type (react, planner, composite)")
    parser.add_argument("--stream", action="store_true", help="Print reasoning steps as they happen")
    parser.add_argument("--tools-only", action="store_true", help="Run matching tools without a model")
    args = parser.parse_args()

    configure_logging(get_settings().log_level)
    config = load_config(args.config)

    asyncio.run(
        run_task(config, args.agent or config.agent.type, args.task, args.stream, args.tools_only)
    )


if __name__ == "__main__":
    main()
