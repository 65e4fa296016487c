"""Built-in tool implementations."""

from taskagents.tools.base import BaseTool
from taskagents.tools.builtin.calculator import CalculatorTool
from taskagents.tools.builtin.code_interpreter import CodeInterpreterTool
from taskagents.tools.builtin.date_time import DateTimeTool
from taskagents.tools.builtin.web_search import WebSearchTool

__all__ = ["CalculatorTool", "WebSearchTool", "CodeInterpreterTool", "DateTimeTool"]


def get_default_tools() -> list[BaseTool]:
    """Get list of default built-in tools."""
    return [
        CalculatorTool(),
        WebSearchTool(),
        CodeInterpreterTool(),
        DateTimeTool(),
    ]
