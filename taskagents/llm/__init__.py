"""LLM abstraction layer."""

from taskagents.llm.base import ChatModel
from taskagents.llm.client import LLMClient, LLMConfig, LLMProvider, resolve_client

__all__ = ["ChatModel", "LLMClient", "LLMConfig", "LLMProvider", "resolve_client"]
