"""Secret word sources."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class WordSource(Protocol):
    """Anything that can draw a secret word for a round."""

    def get_random_word(self) -> str: ...


def _repo_root() -> Path:
    # src/signal_noise/words.py -> src/signal_noise -> src -> repo
    return Path(__file__).resolve().parent.parent.parent


def load_word_list(path: str | Path | None = None) -> list[str]:
    """Load nouns from a file, one entry per line.

    Lines may carry a leading frequency count (``"     1 time"``); the word is
    the last whitespace-separated token. Blank lines and ``#`` comments are
    skipped.
    """
    if path is None:
        path = _repo_root() / "data" / "nouns.txt"
    words: list[str] = []
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            words.append(line.split()[-1].lower())
    if not words:
        raise ValueError(f"Word list is empty: {path}")
    return words


class WordList:
    """In-memory word source drawing uniformly at random.

    The word list is never mutated after construction, so one instance can be
    shared by concurrent matches.
    """

    def __init__(
        self,
        words: list[str],
        categories: list[str] | None = None,
        seed: int | None = None,
    ):
        if not words:
            raise ValueError("WordList needs at least one word")
        self._words = tuple(words)
        self._categories = tuple(categories) if categories else ()
        self._rng = random.Random(seed)

    @classmethod
    def from_file(cls, path: str | Path | None = None, seed: int | None = None) -> "WordList":
        return cls(load_word_list(path), seed=seed)

    @property
    def words(self) -> tuple[str, ...]:
        return self._words

    def get_random_word(self) -> str:
        return self._rng.choice(self._words)

    def get_random_category(self) -> str | None:
        if not self._categories:
            return None
        return self._rng.choice(self._categories)
