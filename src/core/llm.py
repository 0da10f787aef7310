"""LLM provider back ends behind one async `complete` call."""

from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from an LLM call."""
    content: str
    model: str
    input_tokens: int
    output_tokens: int
    latency_ms: float
    raw_response: dict[str, Any] | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    model: str

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """Generate a completion from the LLM."""
        pass


def _api_key(explicit: str | None, env_var: str, vendor: str) -> str:
    key = explicit or os.environ.get(env_var)
    if not key:
        raise ConfigurationError(
            f"{vendor} API key required. Set {env_var} or pass api_key."
        )
    return key


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message", response.text)
    return response.text


class ChatCompletionsProvider(LLMProvider):
    """Base for vendors speaking the OpenAI ``/chat/completions`` dialect.

    Subclasses set the vendor name, key variable and base URL, and may add
    request fields through ``extra_body``. A non-2xx status raises
    ``RuntimeError`` carrying the vendor's error message.
    """

    vendor = "OpenAI-compatible"
    env_var = "OPENAI_API_KEY"
    default_base_url = ""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
    ):
        self.model = model
        self.api_key = _api_key(api_key, self.env_var, self.vendor)
        self.base_url = base_url or self.default_base_url
        self.timeout = timeout

    def extra_body(self) -> dict[str, Any]:
        return {}

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        start_time = time.perf_counter()
        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **self.extra_body(),
        }

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=body,
                timeout=self.timeout,
            )
            if response.status_code != 200:
                raise RuntimeError(
                    f"{self.vendor} API error ({response.status_code}): {_error_message(response)}"
                )
            data = response.json()

        usage = data.get("usage", {})
        return LLMResponse(
            content=data["choices"][0]["message"]["content"],
            model=self.model,
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            latency_ms=(time.perf_counter() - start_time) * 1000,
            raw_response=data,
        )


class OpenRouterProvider(ChatCompletionsProvider):
    """Any vendor's model through OpenRouter (``vendor/model`` ids)."""

    vendor = "OpenRouter"
    env_var = "OPENROUTER_API_KEY"
    default_base_url = "https://openrouter.ai/api/v1"

    def __init__(self, model: str = "anthropic/claude-3.5-sonnet", **kwargs):
        super().__init__(model, **kwargs)


class OpenAIProvider(ChatCompletionsProvider):
    """OpenAI models, asked to answer in JSON mode."""

    vendor = "OpenAI"
    env_var = "OPENAI_API_KEY"
    default_base_url = "https://api.openai.com/v1"

    def __init__(self, model: str = "gpt-4o", **kwargs):
        super().__init__(model, **kwargs)

    def extra_body(self) -> dict[str, Any]:
        return {"response_format": {"type": "json_object"}}


class AnthropicProvider(LLMProvider):
    """Claude models through the Anthropic Messages API."""

    def __init__(
        self,
        model: str = "claude-3-7-sonnet-20250219",
        api_key: str | None = None,
        base_url: str = "https://api.anthropic.com/v1",
        timeout: float = 60.0,
    ):
        self.model = model
        self.api_key = _api_key(api_key, "ANTHROPIC_API_KEY", "Anthropic")
        self.base_url = base_url
        self.timeout = timeout

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        start_time = time.perf_counter()

        # The Messages API takes the system prompt as a top-level field.
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        body: dict[str, Any] = {
            "model": self.model,
            "messages": [m for m in messages if m["role"] != "system"],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system:
            body["system"] = system

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": "2023-06-01",
                    "Content-Type": "application/json",
                },
                json=body,
                timeout=self.timeout,
            )
            if response.status_code != 200:
                raise RuntimeError(
                    f"Anthropic API error ({response.status_code}): {_error_message(response)}"
                )
            data = response.json()

        text = "".join(block.get("text", "") for block in data.get("content", []) if block.get("type") == "text")
        usage = data.get("usage", {})
        return LLMResponse(
            content=text,
            model=self.model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            latency_ms=(time.perf_counter() - start_time) * 1000,
            raw_response=data,
        )


class MockProvider(LLMProvider):
    """Mock LLM provider for testing."""

    def __init__(
        self,
        responses: list[str] | None = None,
        model: str = "mock-model",
    ):
        self.responses = responses or ["Mock response"]
        self.model = model
        self.call_count = 0
        self.last_messages: list[dict[str, str]] = []
        self.calls: list[list[dict[str, str]]] = []

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """Return a mock response."""
        self.last_messages = messages
        self.calls.append(messages)

        response_idx = self.call_count % len(self.responses)
        content = self.responses[response_idx]
        self.call_count += 1

        return LLMResponse(
            content=content,
            model=self.model,
            input_tokens=len(str(messages)) // 4,
            output_tokens=len(content) // 4,
            latency_ms=10.0,
            raw_response=None,
        )


class FallbackProvider(LLMProvider):
    """Try a list of candidate providers in order until one answers.

    Only transport/vendor failures move on to the next candidate; the last
    error is re-raised when every candidate has failed.
    """

    def __init__(self, candidates: list[LLMProvider]):
        if not candidates:
            raise ConfigurationError("FallbackProvider needs at least one candidate provider")
        self.candidates = list(candidates)
        self.model = self.candidates[0].model

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        last_error: Exception | None = None
        for idx, provider in enumerate(self.candidates):
            try:
                return await provider.complete(
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except ConfigurationError:
                raise
            except Exception as e:
                last_error = e
                if idx < len(self.candidates) - 1:
                    logger.warning(
                        "Provider %s failed (%s), falling back to %s",
                        provider.model, type(e).__name__, self.candidates[idx + 1].model,
                    )
        assert last_error is not None
        raise last_error


def provider_type_for_model(model: str) -> str:
    """Route a model id to a provider type by its naming convention."""
    m = model.lower()
    if m.startswith("mock"):
        return "mock"
    if "/" in m:
        return "openrouter"
    if m.startswith(("gpt", "o1", "o3", "o4")):
        return "openai"
    if m.startswith("claude"):
        return "anthropic"
    raise ConfigurationError(f"Unsupported model: {model}")


def create_provider(
    provider_type: str = "openrouter",
    model: str | None = None,
    api_key: str | None = None,
    **kwargs,
) -> LLMProvider:
    """Factory function to create LLM providers."""
    providers = {
        "openrouter": OpenRouterProvider,
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "mock": MockProvider,
    }

    if provider_type not in providers:
        raise ConfigurationError(f"Unknown provider: {provider_type}. Options: {list(providers.keys())}")

    provider_cls = providers[provider_type]

    provider_kwargs: dict[str, Any] = {}
    if model:
        provider_kwargs["model"] = model
    if api_key:
        provider_kwargs["api_key"] = api_key
    provider_kwargs.update(kwargs)

    return provider_cls(**provider_kwargs)
