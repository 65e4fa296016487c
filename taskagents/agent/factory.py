"""Agent registry - maps type tags to agent classes and builds configured agents.

The registry is an explicit object. Build one at the application's
composition root with ``build_default_registry`` and pass it where needed.

Example:
    registry = build_default_registry()
    agent = registry.create("composite", model="qwen3:1.7b")
    result = await agent.run("Find the president of the US and the capital of France")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

import structlog

from taskagents.agent.base import Agent
from taskagents.agent.composite import CompositeAgent
from taskagents.agent.memory import ConversationMemory
from taskagents.agent.planner import PlannerAgent
from taskagents.agent.react import ReActAgent
from taskagents.tools.factory import create_default_toolset

if TYPE_CHECKING:
    from taskagents.llm.base import ChatModel
    from taskagents.tools.manager import ToolManager
    from taskagents.utils.config import Settings

logger = structlog.get_logger()

CONTRACT_METHODS = ("run", "can_handle")


def _satisfies_contract(target: Any) -> bool:
    if isinstance(target, type) and issubclass(target, Agent):
        return True
    return all(callable(getattr(target, name, None)) for name in CONTRACT_METHODS) and hasattr(
        target, "description"
    )


@dataclass
class AgentDefaults:
    """Collaborators substituted when ``create`` is called without them."""

    model: str | ChatModel = "qwen3:1.7b"
    tools_factory: Callable[[], ToolManager] = create_default_toolset
    memory_factory: Callable[[], ConversationMemory] = ConversationMemory
    client_options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> AgentDefaults:
        options: dict[str, Any] = {}
        if settings.base_url:
            options["base_url"] = settings.base_url
        if settings.openai_api_key:
            options["api_key"] = settings.openai_api_key
        return cls(model=settings.default_model, client_options=options)


@dataclass(frozen=True)
class AgentRegistration:
    tag: str
    constructor: type
    description: str


class AgentRegistry:
    """Registry of agent types.

    Features:
    - Registration with contract validation
    - Creation with default model, tools and memory
    - Extension and removal of types at runtime
    """

    def __init__(self, defaults: AgentDefaults | None = None) -> None:
        self.defaults = defaults or AgentDefaults()
        self._registrations: dict[str, AgentRegistration] = {}
        self._log = logger.bind(component="agent_registry")

    def register(self, tag: str, constructor: type, description: str | None = None) -> None:
        """Register an agent class under a type tag."""
        if not _satisfies_contract(constructor):
            raise TypeError(
                f"{getattr(constructor, '__name__', constructor)!s} does not implement the "
                "agent interface (run, can_handle, description)"
            )

        tag = str(tag)
        if tag in self._registrations:
            self._log.warning("Overwriting agent type", tag=tag)

        self._registrations[tag] = AgentRegistration(
            tag=tag,
            constructor=constructor,
            description=description or f"Custom agent: {constructor.__name__}",
        )
        self._log.debug("Registered agent type", tag=tag)

    def unregister(self, tag: str) -> bool:
        """Remove an agent type."""
        return self._registrations.pop(str(tag), None) is not None

    def lookup(self, tag: str) -> type | None:
        """Get the class registered under a tag."""
        registration = self._registrations.get(str(tag))
        return registration.constructor if registration else None

    def is_supported(self, tag: str) -> bool:
        return str(tag) in self._registrations

    def list_types(self) -> list[str]:
        return list(self._registrations.keys())

    def descriptions(self) -> dict[str, str]:
        return {tag: reg.description for tag, reg in self._registrations.items()}

    def create(
        self,
        tag: str,
        model: str | ChatModel | None = None,
        tools: ToolManager | None = None,
        memory: ConversationMemory | None = None,
        max_iterations: int = 5,
        **extras: Any,
    ) -> Agent:
        """Instantiate an agent, filling omitted collaborators from defaults."""
        registration = self._registrations.get(str(tag))
        if registration is None:
            raise ValueError(
                f"Unknown agent type: {tag}. Supported types: {', '.join(self.list_types())}"
            )

        options = {**self.defaults.client_options, **extras}
        agent = registration.constructor(
            model=model if model is not None else self.defaults.model,
            tools=tools if tools is not None else self.defaults.tools_factory(),
            memory=memory if memory is not None else self.defaults.memory_factory(),
            max_iterations=max_iterations,
            **options,
        )

        if not _satisfies_contract(agent):
            raise TypeError(f"Agent type {tag!r} produced an object without the agent interface")

        self._log.debug("Created agent", tag=tag, agent=type(agent).__name__)
        return agent

    def __contains__(self, tag: str) -> bool:
        return self.is_supported(tag)

    def __len__(self) -> int:
        return len(self._registrations)


def build_default_registry(defaults: AgentDefaults | None = None) -> AgentRegistry:
    """Registry with the built-in react, planner and composite agents."""
    registry = AgentRegistry(defaults)
    registry.register("react", ReActAgent, "ReAct agent with reasoning and acting capabilities")
    registry.register("planner", PlannerAgent, "Planner agent that decomposes complex tasks into atomic steps.")
    registry.register(
        "composite",
        CompositeAgent,
        "Composite agent with planning and execution capabilities for complex multi-step tasks",
    )
    return registry
