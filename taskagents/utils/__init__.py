"""Utilities - configuration loading."""

from taskagents.utils.config import (
    AgentSettings,
    AppConfig,
    LLMSettings,
    Settings,
    ToolSpec,
    get_settings,
    load_config,
)

__all__ = [
    "AgentSettings",
    "AppConfig",
    "LLMSettings",
    "Settings",
    "ToolSpec",
    "get_settings",
    "load_config",
]
