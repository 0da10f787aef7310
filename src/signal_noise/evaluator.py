"""Guess evaluation against the secret word."""

from __future__ import annotations

from .models import SecretWord


def normalize(text: str | None) -> str:
    """Lower-case and trim surrounding whitespace."""
    if text is None:
        return ""
    return text.strip().lower()


def is_correct(guess: str | None, secret: SecretWord | str) -> bool:
    """
    Exact, case-insensitive comparison after trimming both sides.

    No stemming, plural handling or fuzzy matching. An empty guess is never
    correct, even against an empty secret.
    """
    word = secret.word if isinstance(secret, SecretWord) else secret
    g = normalize(guess)
    if not g:
        return False
    return g == normalize(word)
