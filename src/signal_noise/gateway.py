"""Model gateway: one call signature over every provider back end."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from src.core.errors import ConfigurationError, ModelInvocationError, ModelTimeoutError
from src.core.llm import LLMProvider, LLMResponse, create_provider, provider_type_for_model

from .models import Role
from .prompts import build_messages
from .visibility import assert_view_safe

logger = logging.getLogger(__name__)


class Gateway(Protocol):
    """What the round state machine needs from a gateway."""

    async def invoke(self, participant_model: str, role: Role, context: dict[str, Any]) -> str: ...


class ModelGateway:
    """
    Send a role view to a model and return its raw text.

    Providers are looked up in the explicit registry first, then created on
    demand from the model id's naming convention. Every call is bounded by
    ``timeout_seconds``. The gateway never retries; wrap several providers in a
    ``FallbackProvider`` to get an ordered list of candidates.
    """

    def __init__(
        self,
        providers: dict[str, LLMProvider] | None = None,
        *,
        timeout_seconds: float = 45.0,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ):
        self._providers: dict[str, LLMProvider] = dict(providers or {})
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens

    def register(self, model: str, provider: LLMProvider) -> None:
        self._providers[model] = provider

    def provider_for(self, model: str) -> LLMProvider:
        """Resolve a provider; raises ConfigurationError for unknown ids or missing keys."""
        provider = self._providers.get(model)
        if provider is None:
            provider = create_provider(provider_type_for_model(model), model)
            self._providers[model] = provider
        return provider

    async def complete(self, participant_model: str, role: Role, context: dict[str, Any]) -> LLMResponse:
        assert_view_safe(context)
        if context.get("role") != role.value:
            raise ValueError(f"View for role {context.get('role')!r} passed as {role.value!r}")

        provider = self.provider_for(participant_model)
        messages = build_messages(context)

        try:
            response = await asyncio.wait_for(
                provider.complete(
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ModelTimeoutError(
                participant_model, role.value, f"no response within {self.timeout_seconds:.0f}s"
            ) from e
        except ConfigurationError:
            raise
        except Exception as e:
            raise ModelInvocationError(participant_model, role.value, f"{type(e).__name__}: {e}") from e

        if not isinstance(response.content, str):
            raise ModelInvocationError(participant_model, role.value, "response content is not text")

        logger.debug("%s as %s replied: %s", participant_model, role.value, response.content)
        return response

    async def invoke(self, participant_model: str, role: Role, context: dict[str, Any]) -> str:
        response = await self.complete(participant_model, role, context)
        return response.content
