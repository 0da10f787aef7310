"""Configuration for Signal & Noise matches."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from .models import MAX_LOOPS


# Known model ids -> names echoed into prompts.
MODEL_DISPLAY_NAMES: dict[str, str] = {
    "gpt-4o-mini": "GPT-4o-mini",
    "gpt-4o": "GPT-4o",
    "claude-3-7-sonnet": "Claude-3.7-Sonnet",
    "claude-3-5-sonnet": "Claude-3.5-Sonnet",
}

DEFAULT_MODELS = ("gpt-4o", "claude-3-7-sonnet-20250219")


def model_display_name(model: str) -> str:
    """Human-readable model name, matched by longest known prefix."""
    for prefix in sorted(MODEL_DISPLAY_NAMES, key=len, reverse=True):
        if model.startswith(prefix):
            return MODEL_DISPLAY_NAMES[prefix]
    return model


class GameConfig(BaseModel):
    """Configuration for a Signal & Noise match."""

    max_loops: int = Field(default=MAX_LOOPS, ge=1, le=MAX_LOOPS)
    total_rounds: int = Field(default=6, ge=1)
    timeout_seconds: float = Field(default=45.0, gt=0)
    temperature: float = 0.7
    max_tokens: int = 1024
    # Stop once the trailing participant can no longer catch up.
    early_stop: bool = False
    word_list_path: str | None = None
    seed: int | None = None

    @classmethod
    def from_env(cls, **overrides) -> "GameConfig":
        """Build a config from SIGNAL_NOISE_* environment variables."""
        env_map = {
            "max_loops": "SIGNAL_NOISE_MAX_LOOPS",
            "total_rounds": "SIGNAL_NOISE_TOTAL_ROUNDS",
            "timeout_seconds": "SIGNAL_NOISE_TIMEOUT",
            "temperature": "SIGNAL_NOISE_TEMPERATURE",
            "early_stop": "SIGNAL_NOISE_EARLY_STOP",
            "word_list_path": "SIGNAL_NOISE_WORD_LIST",
            "seed": "SIGNAL_NOISE_SEED",
        }
        values: dict[str, object] = {}
        for field, var in env_map.items():
            raw = os.environ.get(var)
            if raw is not None and raw != "":
                values[field] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
