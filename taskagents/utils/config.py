"""Configuration loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseModel):
    """LLM configuration."""

    provider: str = "ollama"
    model: str = "qwen3:1.7b"
    base_url: str | None = None
    api_key: str | None = None
    max_tokens: int = 2048
    temperature: float = 0.7
    timeout_seconds: float = 60.0

    def client_options(self) -> dict[str, Any]:
        """Keyword arguments for ``LLMConfig.for_model``."""
        return self.model_dump(exclude={"model"}, exclude_none=True)


class AgentSettings(BaseModel):
    """Agent configuration."""

    type: str = "composite"
    max_iterations: int = Field(default=3, ge=1)
    failure_threshold: int = Field(default=3, ge=1)
    completion_min_length: int = 100
    planning_length_threshold: int = 50
    tool_limit: int = Field(default=3, ge=1)


class ToolSpec(BaseModel):
    """A tool entry: class name plus constructor options."""

    model_config = {"populate_by_name": True}

    tool_class: str = Field(alias="class")
    options: dict[str, Any] = Field(default_factory=dict)

    def as_factory_entry(self) -> dict[str, Any]:
        return {"class": self.tool_class, "options": self.options}


class AppConfig(BaseModel):
    """Complete application configuration."""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    tools: list[ToolSpec] = Field(default_factory=list)


class Settings(BaseSettings):
    """Environment-based settings."""

    model_config = SettingsConfigDict(
        env_prefix="TASKAGENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_model: str = "qwen3:1.7b"
    base_url: str | None = None
    openai_api_key: str = ""
    log_level: str = "INFO"


def load_config(config_path: str | Path) -> AppConfig:
    """Load application configuration from YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    return AppConfig.model_validate(data or {})


def get_settings() -> Settings:
    """Get environment-based settings."""
    return Settings()
