"""Factories for ToolManager instances with default or configured toolsets."""

from __future__ import annotations

from typing import Any

from taskagents.tools.base import BaseTool
from taskagents.tools.builtin import (
    CalculatorTool,
    CodeInterpreterTool,
    DateTimeTool,
    WebSearchTool,
    get_default_tools,
)
from taskagents.tools.manager import ToolManager

TOOL_CLASSES: dict[str, type[BaseTool]] = {
    "calculator": CalculatorTool,
    "web_search": WebSearchTool,
    "websearch": WebSearchTool,
    "code_interpreter": CodeInterpreterTool,
    "codeinterpreter": CodeInterpreterTool,
    "date_time": DateTimeTool,
    "datetime": DateTimeTool,
}


def create_default_toolset() -> ToolManager:
    """Create a ToolManager with the default set of tools."""
    return ToolManager(tools=get_default_tools())


def from_config(config: list[dict[str, Any]]) -> ToolManager:
    """Create a ToolManager from tool config dicts.

    Each entry names a tool under ``class`` and may pass constructor
    keyword arguments under ``options``.
    """
    tools: list[BaseTool] = []
    for tool_config in config:
        tool_class = str(tool_config.get("class", "")).lower()
        options = tool_config.get("options") or {}

        if tool_class not in TOOL_CLASSES:
            raise ValueError(f"Unknown tool class: {tool_config.get('class')}")

        tools.append(TOOL_CLASSES[tool_class](**options))

    return ToolManager(tools=tools)
