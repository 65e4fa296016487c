"""Tests for configuration loading."""

from pathlib import Path

import pytest

from taskagents.llm.client import LLMConfig, LLMProvider, resolve_client
from taskagents.tools.factory import from_config
from taskagents.utils.config import AppConfig, Settings, load_config

DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"


class TestLoadConfig:
    """Tests for load_config."""

    def test_default_config_file(self) -> None:
        config = load_config(DEFAULT_CONFIG)

        assert config.llm.model == "qwen3:1.7b"
        assert config.agent.type == "composite"
        assert config.agent.max_iterations == 3
        assert [entry.tool_class for entry in config.tools] == [
            "calculator", "web_search", "date_time", "code_interpreter",
        ]

        manager = from_config([entry.as_factory_entry() for entry in config.tools])
        assert manager.get("web_search").mock_mode is True

    def test_partial_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("agent:\n  max_iterations: 7\n")

        config = load_config(path)

        assert config.agent.max_iterations == 7
        assert config.agent.failure_threshold == 3
        assert config.llm == AppConfig().llm
        assert config.tools == []

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("agent:\n  max_iterations: 0\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_llm_client_options(self) -> None:
        options = AppConfig().llm.client_options()
        assert "model" not in options
        assert "base_url" not in options

        config = LLMConfig.for_model("qwen3:1.7b", **options)
        assert config.provider is LLMProvider.OLLAMA
        assert config.max_tokens == 2048


class TestSettings:
    """Tests for environment-based settings."""

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TASKAGENTS_DEFAULT_MODEL", "gpt-4o-mini")
        monkeypatch.setenv("TASKAGENTS_LOG_LEVEL", "DEBUG")

        settings = Settings()

        assert settings.default_model == "gpt-4o-mini"
        assert settings.log_level == "DEBUG"


class TestLLMConfig:
    """Tests for provider selection and client resolution."""

    def test_provider_from_model_name(self) -> None:
        assert LLMConfig.for_model("gpt-4o").provider is LLMProvider.OPENAI
        assert LLMConfig.for_model("qwen3:1.7b").provider is LLMProvider.OLLAMA
        assert LLMConfig.for_model("gpt-4o", provider="vllm").provider is LLMProvider.VLLM

    def test_resolve_client(self) -> None:
        class Model:
            async def chat(self, prompt: str) -> str:
                return prompt

        model = Model()
        assert resolve_client(model) is model
        assert resolve_client("qwen3:1.7b").config.model == "qwen3:1.7b"
        with pytest.raises(TypeError):
            resolve_client(42)  # type: ignore[arg-type]
