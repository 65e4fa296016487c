"""Tool system - Manager, base interfaces, and built-in tools."""

from taskagents.tools.base import BaseTool, ToolDefinition, ToolOutcome, ToolParameter
from taskagents.tools.factory import create_default_toolset, from_config
from taskagents.tools.manager import ToolManager

__all__ = [
    "BaseTool",
    "ToolDefinition",
    "ToolOutcome",
    "ToolParameter",
    "ToolManager",
    "create_default_toolset",
    "from_config",
]
