"""Structured exceptions shared by the gateway, parser and game controllers."""

from __future__ import annotations

from typing import Any


class GameError(Exception):
    """Base class for game-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class ConfigurationError(GameError, ValueError):
    """Raised for missing credentials or an unknown model identifier."""


class ModelInvocationError(GameError):
    """Raised when a model could not produce a response for a phase."""

    def __init__(self, model: str, role: str | None, message: str):
        self.model = model
        self.role = role
        prefix = f"{model}" if role is None else f"{model} ({role})"
        super().__init__(f"{prefix}: {message}")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["model"] = self.model
        if self.role is not None:
            payload["role"] = self.role
        return payload


class ModelTimeoutError(ModelInvocationError):
    """Raised when a model call exceeds the configured timeout."""


class ParseAmbiguityError(GameError):
    """Raised by a strict parser when no guess can be extracted at all."""

    def __init__(self, raw_text: str):
        self.raw_text = raw_text
        preview = raw_text if len(raw_text) <= 80 else raw_text[:80] + "..."
        super().__init__(f"No guess could be extracted from response: {preview!r}")


class MatchStateError(GameError):
    """Raised when a controller method is called in the wrong match state."""


class RoundCancelledError(GameError):
    """Raised when a round was invalidated while a model call was in flight."""
