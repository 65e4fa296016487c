"""Base tool interface and definitions."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# Ranking classes used by ToolManager.select_best (lower runs first)
PRIORITY_PREFERRED = 0
PRIORITY_NEUTRAL = 1
PRIORITY_DEFERRED = 2


class ParameterType(str, Enum):
    """JSON Schema parameter types."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ToolParameter(BaseModel):
    """Definition of a tool parameter."""

    name: str
    type: ParameterType
    description: str
    required: bool = True
    default: Any | None = None
    enum: list[Any] | None = None


class ToolDefinition(BaseModel):
    """Schema describing a tool to a language model."""

    name: str
    description: str
    parameters: list[ToolParameter] = Field(default_factory=list)

    def to_schema(self) -> dict[str, Any]:
        """Convert to a JSON-schema style description."""
        properties: dict[str, Any] = {}
        required: list[str] = []

        for param in self.parameters:
            prop: dict[str, Any] = {
                "type": param.type.value,
                "description": param.description,
            }

            if param.enum:
                prop["enum"] = param.enum

            if param.default is not None:
                prop["default"] = param.default

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }


class ToolOutcome(BaseModel):
    """Result of invoking a tool, successful or not."""

    success: bool
    tool: str | None = None
    input: str | None = None
    result: Any | None = None
    error: str | None = None
    formatted: str = ""

    @property
    def text(self) -> str:
        """Text shown to the model as an observation."""
        if self.formatted:
            return self.formatted
        return self.error or ""


class BaseTool(ABC):
    """Abstract base class for all tools.

    Subclasses decide whether they apply to a prompt (``match``) and do the
    work (``call``). ``format_result`` and ``priority`` may be overridden.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description."""
        ...

    @property
    def parameters(self) -> list[ToolParameter]:
        """Tool parameters."""
        return []

    @abstractmethod
    def match(self, prompt: str) -> bool:
        """Whether this tool should run for the given prompt."""
        ...

    @abstractmethod
    async def call(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
    ) -> Any:
        """Run the tool against a prompt."""
        ...

    def priority(self, prompt: str) -> int | None:
        """Ranking class for this prompt, or None for neutral."""
        return None

    def format_result(self, result: Any) -> str:
        """Format a result for inclusion in a prompt."""
        if isinstance(result, str):
            return result
        if isinstance(result, (dict, list)):
            return json.dumps(result, indent=2, default=str, ensure_ascii=False)
        return str(result)

    def extract_parameters(self, prompt: str) -> dict[str, Any]:
        """Extract call parameters from a free-text prompt."""
        return {}

    def get_definition(self) -> ToolDefinition:
        """Get tool definition."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def to_schema(self) -> dict[str, Any]:
        return self.get_definition().to_schema()

    @staticmethod
    def contains_keywords(prompt: str, keywords: list[str] | tuple[str, ...]) -> bool:
        """Check whether the prompt contains any keyword (case-insensitive)."""
        lowered = prompt.lower()
        return any(keyword.lower() in lowered for keyword in keywords)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
