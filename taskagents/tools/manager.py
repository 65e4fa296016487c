"""Tool manager for registering, selecting and executing tools."""

from __future__ import annotations

import re
from typing import Any

import structlog

from taskagents.tools.base import PRIORITY_NEUTRAL, BaseTool, ToolOutcome

logger = structlog.get_logger()

EXPLICIT_TOOL_PATTERN = re.compile(
    r"\b(use tool|call tool|execute|calculate|search|run code)\b",
    re.IGNORECASE,
)


class ToolManager:
    """Holds named tools and dispatches prompts to them.

    Features:
    - Tool registration and lookup (insertion order preserved)
    - Prompt matching through each tool's ``match`` predicate
    - Ranking of matching tools through each tool's ``priority``
    - Execution with per-tool error isolation
    """

    def __init__(self, tools: list[BaseTool] | None = None) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._log = logger.bind(component="tool_manager")
        if tools:
            self.register_many(tools)

    def register(self, tool: BaseTool) -> None:
        """Register a tool, replacing any tool with the same name."""
        if not isinstance(tool, BaseTool):
            raise TypeError(f"Tool must inherit from BaseTool, got {type(tool).__name__}")

        if tool.name in self._tools:
            self._log.warning("Overwriting existing tool", tool=tool.name)

        self._tools[tool.name] = tool
        self._log.debug("Registered tool", tool=tool.name)

    def register_many(self, tools: list[BaseTool]) -> None:
        """Register multiple tools."""
        for tool in tools:
            self.register(tool)

    def unregister(self, tool_name: str) -> bool:
        """Unregister a tool."""
        if tool_name in self._tools:
            del self._tools[tool_name]
            self._log.debug("Unregistered tool", tool=tool_name)
            return True
        return False

    def get(self, tool_name: str) -> BaseTool | None:
        """Get a tool by name."""
        return self._tools.get(str(tool_name))

    def list_tools(self) -> list[BaseTool]:
        return list(self._tools.values())

    def find_matching(self, prompt: str) -> list[BaseTool]:
        """Tools whose match predicate accepts the prompt, in registration order."""
        return [tool for tool in self._tools.values() if tool.match(prompt)]

    async def execute_all(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
    ) -> dict[str, ToolOutcome]:
        """Execute every matching tool and collect the outcomes."""
        return await self._execute(self.find_matching(prompt), prompt, context)

    def needs_tools(self, prompt: str) -> bool:
        """Whether the prompt likely needs tool usage."""
        if EXPLICIT_TOOL_PATTERN.search(prompt):
            return True
        return bool(self.find_matching(prompt))

    def select_best(
        self,
        tools: list[BaseTool],
        prompt: str,
        limit: int = 3,
    ) -> list[BaseTool]:
        """Rank tools by their priority for the prompt and keep the first ``limit``.

        Tools without an opinion get neutral priority. The sort is stable, so
        ties keep their original order.
        """
        return sorted(tools, key=lambda tool: self._priority_of(tool, prompt))[:limit]

    async def auto_execute(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
        limit: int = 3,
    ) -> dict[str, ToolOutcome]:
        """Select and execute the best matching tools for the prompt."""
        if not self.needs_tools(prompt):
            return {}

        selected = self.select_best(self.find_matching(prompt), prompt, limit=limit)
        self._log.debug("Auto-selected tools", tools=[tool.name for tool in selected])
        return await self._execute(selected, prompt, context)

    def format_results(self, outcomes: dict[str, ToolOutcome]) -> str:
        """Format outcomes for inclusion into an LLM prompt."""
        if not outcomes:
            return ""
        blocks = [f"{name}: {outcome.formatted}" for name, outcome in outcomes.items()]
        return "Tool Results:\n" + "\n\n".join(blocks)

    def tools_description(self) -> str:
        """Human-readable list of available tools."""
        return "\n".join(f"- {tool.name}: {tool.description}" for tool in self._tools.values())

    def get_tools_schema(self) -> list[dict[str, Any]]:
        return [tool.to_schema() for tool in self._tools.values()]

    async def _execute(
        self,
        tools: list[BaseTool],
        prompt: str,
        context: dict[str, Any] | None,
    ) -> dict[str, ToolOutcome]:
        results: dict[str, ToolOutcome] = {}

        for tool in tools:
            try:
                result = await tool.call(prompt, context or {})
                results[tool.name] = ToolOutcome(
                    success=True,
                    tool=tool.name,
                    input=prompt,
                    result=result,
                    formatted=tool.format_result(result),
                )
            except Exception as e:
                self._log.warning("Tool execution failed", tool=tool.name, error=str(e))
                results[tool.name] = ToolOutcome(
                    success=False,
                    tool=tool.name,
                    input=prompt,
                    error=str(e),
                    formatted=f"Error in {tool.name}: {e}",
                )

        return results

    @staticmethod
    def _priority_of(tool: BaseTool, prompt: str) -> int:
        rank = tool.priority(prompt)
        return PRIORITY_NEUTRAL if rank is None else rank

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._tools.keys())

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
