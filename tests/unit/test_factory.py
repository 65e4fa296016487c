"""Tests for the agent registry."""

from typing import Any

import pytest

from taskagents.agent.composite import CompositeAgent
from taskagents.agent.factory import AgentDefaults, AgentRegistry, build_default_registry
from taskagents.agent.memory import ConversationMemory
from taskagents.agent.planner import PlannerAgent
from taskagents.agent.react import ReActAgent
from taskagents.tools.manager import ToolManager
from taskagents.utils.config import Settings


class ScriptedModel:
    async def chat(self, prompt: str) -> str:
        return "Thought: done\nFINAL ANSWER: ok"


class DuckAgent:
    """Satisfies the agent interface without inheriting from Agent."""

    description = "duck"

    def __init__(self, model: Any, tools: Any, memory: Any, max_iterations: int, **extras: Any) -> None:
        self.model = model
        self.tools = tools
        self.memory = memory
        self.max_iterations = max_iterations
        self.extras = extras

    async def run(self, task: str, stream: bool = False, on_step: Any = None) -> Any:
        return None

    def can_handle(self, task: str) -> bool:
        return True


class NotAnAgent:
    def run(self) -> None:
        pass


class TestAgentRegistry:
    """Tests for AgentRegistry."""

    @pytest.fixture
    def registry(self) -> AgentRegistry:
        return build_default_registry(AgentDefaults(model=ScriptedModel()))

    def test_builtin_types(self, registry: AgentRegistry) -> None:
        assert registry.list_types() == ["react", "planner", "composite"]
        assert registry.lookup("react") is ReActAgent
        assert registry.lookup("missing") is None
        assert registry.is_supported("composite")
        assert "planner" in registry
        assert len(registry) == 3

    def test_descriptions(self, registry: AgentRegistry) -> None:
        descriptions = registry.descriptions()
        assert set(descriptions) == {"react", "planner", "composite"}
        assert all(descriptions.values())

    def test_create_uses_defaults(self, registry: AgentRegistry) -> None:
        agent = registry.create("react")

        assert isinstance(agent, ReActAgent)
        assert agent.max_iterations == 5
        assert isinstance(agent.memory, ConversationMemory)
        assert set(agent.tools.tool_names) == {"calculator", "web_search", "code_interpreter", "date_time"}

    def test_create_with_explicit_collaborators(self, registry: AgentRegistry) -> None:
        tools = ToolManager()
        memory = ConversationMemory(max_size=2)

        agent = registry.create("composite", tools=tools, memory=memory, max_iterations=2)

        assert isinstance(agent, CompositeAgent)
        assert agent.tools is tools
        assert agent.memory is memory
        assert agent.executor.max_iterations == 2

    def test_create_planner(self, registry: AgentRegistry) -> None:
        model = ScriptedModel()
        agent = registry.create("planner", model=model)
        assert isinstance(agent, PlannerAgent)
        assert agent.client is model

    def test_create_unknown_type(self, registry: AgentRegistry) -> None:
        with pytest.raises(ValueError, match="Unknown agent type: oracle. Supported types: react, planner, composite"):
            registry.create("oracle")

    def test_register_custom_agent(self, registry: AgentRegistry) -> None:
        registry.register("duck", DuckAgent)

        assert registry.descriptions()["duck"] == "Custom agent: DuckAgent"

        agent = registry.create("duck", max_iterations=7, flavour="mint")
        assert isinstance(agent, DuckAgent)
        assert agent.max_iterations == 7
        assert agent.extras == {"flavour": "mint"}
        assert isinstance(agent.model, ScriptedModel)

    def test_register_rejects_non_agents(self, registry: AgentRegistry) -> None:
        with pytest.raises(TypeError):
            registry.register("broken", NotAnAgent)
        assert not registry.is_supported("broken")

    def test_unregister(self, registry: AgentRegistry) -> None:
        assert registry.unregister("planner") is True
        assert registry.unregister("planner") is False
        assert registry.list_types() == ["react", "composite"]

    def test_registries_are_independent(self) -> None:
        first = build_default_registry()
        second = build_default_registry()
        first.register("duck", DuckAgent, "A duck")
        assert "duck" not in second

    @pytest.mark.asyncio
    async def test_created_agent_runs(self, registry: AgentRegistry) -> None:
        agent = registry.create("react", tools=ToolManager())
        result = await agent.run("Say ok")
        assert result.final_answer == "ok"
        assert result.success is True


class TestAgentDefaults:
    """Tests for AgentDefaults."""

    def test_from_settings(self) -> None:
        settings = Settings(default_model="gpt-4o-mini", openai_api_key="sk-test", base_url=None)
        defaults = AgentDefaults.from_settings(settings)
        assert defaults.model == "gpt-4o-mini"
        assert defaults.client_options == {"api_key": "sk-test"}
