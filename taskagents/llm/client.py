"""OpenAI-compatible LLM client (OpenAI, vLLM, Ollama)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

import structlog
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, InternalServerError, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from taskagents.llm.base import ChatModel

logger = structlog.get_logger()

RETRYABLE_ERRORS = (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError)


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    OPENAI = "openai"
    VLLM = "vllm"
    OLLAMA = "ollama"


PROVIDER_BASE_URLS = {
    LLMProvider.OPENAI: None,
    LLMProvider.VLLM: "http://localhost:8000/v1",
    LLMProvider.OLLAMA: "http://localhost:11434/v1",
}


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    model: str = "qwen3:1.7b"
    provider: LLMProvider = LLMProvider.OLLAMA
    base_url: str | None = None
    api_key: str | None = None
    max_tokens: int = 2048
    temperature: float = 0.7
    timeout_seconds: float = 60.0

    @classmethod
    def for_model(cls, model: str, **overrides: object) -> LLMConfig:
        """Pick a provider from the model name unless one is given."""
        provider = overrides.pop("provider", None)
        if provider is None:
            provider = LLMProvider.OPENAI if model.startswith(("gpt", "o1", "o3")) else LLMProvider.OLLAMA
        return cls(model=model, provider=LLMProvider(provider), **overrides)  # type: ignore[arg-type]


class LLMClient:
    """Single-prompt chat client over the OpenAI-compatible API."""

    def __init__(self, config: LLMConfig | None = None) -> None:
        self.config = config or LLMConfig()
        self._client: AsyncOpenAI | None = None
        self._log = logger.bind(
            component="llm_client",
            provider=self.config.provider.value,
            model=self.config.model,
        )

    def _get_client(self) -> AsyncOpenAI:
        """Get or create the OpenAI-compatible client."""
        if self._client is None:
            api_key = self.config.api_key
            if api_key is None:
                api_key = os.environ.get("OPENAI_API_KEY", "not-needed")
            self._client = AsyncOpenAI(
                base_url=self.config.base_url or PROVIDER_BASE_URLS[self.config.provider],
                api_key=api_key,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        reraise=True,
    )
    async def chat(self, prompt: str) -> str:
        """Send a prompt as a single user message and return the reply text."""
        client = self._get_client()

        self._log.debug("Sending chat request", prompt_length=len(prompt))

        try:
            response = await client.chat.completions.create(
                model=self.config.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except Exception as e:
            self._log.error("Chat request failed", error=str(e))
            raise

        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the client."""
        if self._client:
            await self._client.close()
            self._client = None


def resolve_client(model: str | ChatModel, **options: object) -> ChatModel:
    """Return ``model`` if it already is a client, else build one for the name."""
    if isinstance(model, str):
        return LLMClient(LLMConfig.for_model(model, **options))
    if isinstance(model, ChatModel):
        return model
    raise TypeError(f"Expected a model name or a chat client, got {type(model).__name__}")
