"""Tests for the model gateway and provider routing."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from src.core.errors import ConfigurationError, ModelInvocationError, ModelTimeoutError
from src.core.llm import (
    FallbackProvider,
    LLMProvider,
    LLMResponse,
    MockProvider,
    provider_type_for_model,
)
from src.signal_noise.gateway import ModelGateway
from src.signal_noise.models import Role, RoundState, SecretWord
from src.signal_noise.visibility import view_for_observer, view_for_sender


MODELS = {"model_one": "mock-a", "model_two": "mock-b"}


class _FailingProvider(LLMProvider):
    def __init__(self, exc: Exception, model: str = "failing"):
        self.exc = exc
        self.model = model
        self.calls = 0

    async def complete(self, messages, temperature=0.7, max_tokens=1024) -> LLMResponse:
        self.calls += 1
        raise self.exc


class _SlowProvider(LLMProvider):
    model = "slow"

    async def complete(self, messages, temperature=0.7, max_tokens=1024) -> LLMResponse:
        await asyncio.sleep(5)
        return LLMResponse(content="late", model=self.model, input_tokens=0, output_tokens=0, latency_ms=0)


def _state() -> RoundState:
    return RoundState(
        round_number=1,
        secret=SecretWord(word="ocean"),
        sender_receiver="model_one",
        observer="model_two",
    )


@pytest.mark.asyncio
async def test_invoke_returns_raw_text():
    provider = MockProvider(responses=['{"message": "Ships cross it"}'], model="mock-a")
    gateway = ModelGateway({"mock-a": provider})

    raw = await gateway.invoke("mock-a", Role.SENDER, view_for_sender(_state(), MODELS))

    assert raw == '{"message": "Ships cross it"}'
    assert provider.call_count == 1


@pytest.mark.asyncio
async def test_only_sender_prompt_contains_secret():
    a = MockProvider(responses=["x"], model="mock-a")
    b = MockProvider(responses=["y"], model="mock-b")
    gateway = ModelGateway({"mock-a": a, "mock-b": b})
    state = _state()

    await gateway.invoke("mock-a", Role.SENDER, view_for_sender(state, MODELS))
    await gateway.invoke("mock-b", Role.OBSERVER, view_for_observer(state, MODELS))

    assert "ocean" in " ".join(m["content"] for m in a.last_messages)
    assert "ocean" not in " ".join(m["content"] for m in b.last_messages)


@pytest.mark.asyncio
async def test_transport_failure_becomes_invocation_error():
    gateway = ModelGateway({"mock-a": _FailingProvider(httpx.ConnectError("connection refused"))})

    with pytest.raises(ModelInvocationError) as exc_info:
        await gateway.invoke("mock-a", Role.SENDER, view_for_sender(_state(), MODELS))

    assert exc_info.value.model == "mock-a"
    assert exc_info.value.role == "sender"
    assert exc_info.value.to_dict()["type"] == "ModelInvocationError"


@pytest.mark.asyncio
async def test_slow_provider_times_out():
    gateway = ModelGateway({"mock-a": _SlowProvider()}, timeout_seconds=0.05)

    with pytest.raises(ModelTimeoutError):
        await gateway.invoke("mock-a", Role.SENDER, view_for_sender(_state(), MODELS))


@pytest.mark.asyncio
async def test_unknown_model_is_configuration_error():
    gateway = ModelGateway()
    view = view_for_sender(_state(), {"model_one": "llama-3", "model_two": "mock-b"})

    with pytest.raises(ConfigurationError):
        await gateway.invoke("llama-3", Role.SENDER, view)


def test_missing_api_key_is_configuration_error(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        ModelGateway().provider_for("gpt-4o")


def test_mock_models_are_created_on_demand():
    gateway = ModelGateway()

    provider = gateway.provider_for("mock-x")

    assert isinstance(provider, MockProvider)
    assert gateway.provider_for("mock-x") is provider


@pytest.mark.asyncio
async def test_role_mismatch_is_rejected():
    gateway = ModelGateway({"mock-a": MockProvider(model="mock-a")})

    with pytest.raises(ValueError):
        await gateway.invoke("mock-a", Role.RECEIVER, view_for_sender(_state(), MODELS))


@pytest.mark.asyncio
async def test_leaky_view_is_rejected_before_the_call():
    provider = MockProvider(model="mock-b")
    gateway = ModelGateway({"mock-b": provider})
    view = view_for_observer(_state(), MODELS)
    view["secret"] = "ocean"

    with pytest.raises(AssertionError):
        await gateway.invoke("mock-b", Role.OBSERVER, view)
    assert provider.call_count == 0


# ============================================================================
# Fallback chain and routing
# ============================================================================

@pytest.mark.asyncio
async def test_fallback_uses_next_candidate():
    first = _FailingProvider(httpx.ReadTimeout("slow"), model="primary")
    second = MockProvider(responses=["backup answer"], model="backup")
    provider = FallbackProvider([first, second])

    response = await provider.complete([{"role": "user", "content": "hi"}])

    assert response.content == "backup answer"
    assert first.calls == 1
    assert second.call_count == 1


@pytest.mark.asyncio
async def test_fallback_raises_last_error_when_all_fail():
    provider = FallbackProvider([
        _FailingProvider(RuntimeError("first"), model="a"),
        _FailingProvider(RuntimeError("second"), model="b"),
    ])

    with pytest.raises(RuntimeError, match="second"):
        await provider.complete([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_fallback_does_not_mask_configuration_errors():
    second = MockProvider(model="backup")
    provider = FallbackProvider([_FailingProvider(ConfigurationError("no key")), second])

    with pytest.raises(ConfigurationError):
        await provider.complete([{"role": "user", "content": "hi"}])
    assert second.call_count == 0


def test_fallback_needs_candidates():
    with pytest.raises(ConfigurationError):
        FallbackProvider([])


@pytest.mark.parametrize(
    "model,expected",
    [
        ("mock-a", "mock"),
        ("openai/gpt-4o", "openrouter"),
        ("gpt-4o-mini", "openai"),
        ("o3-mini", "openai"),
        ("claude-3-7-sonnet-20250219", "anthropic"),
    ],
)
def test_provider_type_for_model(model, expected):
    assert provider_type_for_model(model) == expected


def test_provider_type_for_unknown_model():
    with pytest.raises(ConfigurationError):
        provider_type_for_model("llama-3")
