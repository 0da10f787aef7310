"""Core module with shared abstractions: providers, errors and parsing helpers."""

from .errors import (
    GameError,
    ConfigurationError,
    ModelInvocationError,
    ModelTimeoutError,
    ParseAmbiguityError,
    MatchStateError,
    RoundCancelledError,
)
from .parsing import (
    strip_code_fences,
    parse_json_object_strict,
    find_embedded_json_object,
    extract_labeled_field,
    extract_tagged_field,
)
from .llm import (
    LLMProvider,
    LLMResponse,
    OpenRouterProvider,
    OpenAIProvider,
    AnthropicProvider,
    MockProvider,
    FallbackProvider,
    create_provider,
    provider_type_for_model,
)

__all__ = [
    # Errors
    "GameError",
    "ConfigurationError",
    "ModelInvocationError",
    "ModelTimeoutError",
    "ParseAmbiguityError",
    "MatchStateError",
    "RoundCancelledError",
    # Parsing
    "strip_code_fences",
    "parse_json_object_strict",
    "find_embedded_json_object",
    "extract_labeled_field",
    "extract_tagged_field",
    # LLM providers
    "LLMProvider",
    "LLMResponse",
    "OpenRouterProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "MockProvider",
    "FallbackProvider",
    "create_provider",
    "provider_type_for_model",
]
