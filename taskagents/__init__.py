"""taskagents - tool-using LLM agents with planning and orchestration."""

__version__ = "0.1.0"
