"""Turn free-form model replies into structured messages and guesses.

Three encodings are understood, in order of preference:

1. A JSON object with ``message`` / ``guess`` / ``reasoning`` keys (bare,
   fenced, or embedded in prose). A JSON reply is never used as raw text:
   without a usable ``message`` it yields an empty one, and a truncated
   object keeps whatever ``message`` text arrived.
2. Tagged output: ``GUESS: ...`` style line labels or ``<guess>...</guess>``
   XML-style tags.
3. Plain prose. A message is the whole reply; a guess is recovered with an
   ordered chain of best-effort extraction rules (``DEFAULT_GUESS_RULES``).

The prose rules are heuristics. They will sometimes pick the wrong word and
that is accepted behaviour: a wrong pick is just an incorrect guess.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Callable, Literal

from pydantic import BaseModel

from src.core.errors import ParseAmbiguityError
from src.core.parsing import (
    extract_labeled_field,
    extract_tagged_field,
    find_embedded_json_object,
    parse_json_object_strict,
    strip_code_fences,
)

from .models import EntryKind


ParseSource = Literal["json", "tagged", "prose", "fallback", "empty"]


class ParsedResponse(BaseModel):
    """Structured view of one model reply."""
    message: str | None = None
    guess: str | None = None
    reasoning: str | None = None
    source: ParseSource = "prose"
    rule: str | None = None  # name of the fallback rule that produced the guess


def normalize_guess(text: str) -> str:
    """Lower-case and keep only ASCII letters.

    A leading article is dropped first so that "the ocean" becomes "ocean".

    Examples:
        >>> normalize_guess("  Ocean! ")
        'ocean'
        >>> normalize_guess("the Sea-Shell")
        'seashell'
    """
    t = text.strip()
    t = re.sub(r"^(?:a|an|the)\s+(?=\S)", "", t, flags=re.IGNORECASE)
    return re.sub(r"[^a-z]", "", t.lower())


# ---------------------------------------------------------------------------
# Guess extraction rules
# ---------------------------------------------------------------------------

_QUOTE = r"[\"'“”‘’*]?"
_ARTICLE = r"(?:(?:a|an|the)\s+)?"
_WORD = r"([A-Za-z]+)"

GUESS_PHRASES: tuple[str, ...] = (
    r"\bguess\s*(?:(?:is|would\s+be|will\s+be)\s*:?|:)\s*",
    r"\bI\s+think\s+it(?:'s|’s|\s+is|\s+might\s+be|\s+must\s+be)\s+",
    r"\bI\s+believe\s+it(?:'s|’s|\s+is)\s+",
    r"\bI(?:'m|’m|\s+am)\s+guessing\s+",
    r"\b(?:secret\s+)?word\s+(?:is|must\s+be|might\s+be)\s*:?\s*",
    r"\banswer\s*(?:is\s*:?|:)\s*",
)

GUESS_PHRASE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p + _QUOTE + _ARTICLE + _QUOTE + _WORD, re.IGNORECASE) for p in GUESS_PHRASES
)

_QUOTED_WORD_RE = re.compile(r"[\"“‘']([A-Za-z]+)[\"”’']")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_ALPHA_TOKEN_RE = re.compile(r"[A-Za-z]+")


@dataclass(frozen=True)
class GuessRule:
    """A named extraction rule: returns a raw guess or None."""

    name: str
    extract: Callable[[str], str | None]


def _phrase_rule(text: str) -> str | None:
    for pattern in GUESS_PHRASE_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return None


def _quoted_word_rule(text: str) -> str | None:
    m = _QUOTED_WORD_RE.search(text)
    return m.group(1) if m else None


def _short_final_sentence_rule(text: str) -> str | None:
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    if not sentences:
        return None
    final = sentences[-1]
    if len(final.split()) > 3:
        return None
    tokens = _ALPHA_TOKEN_RE.findall(final)
    return tokens[-1] if tokens else None


def _last_token_rule(text: str) -> str | None:
    tokens = _ALPHA_TOKEN_RE.findall(text)
    return tokens[-1] if tokens else None


DEFAULT_GUESS_RULES: tuple[GuessRule, ...] = (
    GuessRule("phrase", _phrase_rule),
    GuessRule("quoted_word", _quoted_word_rule),
    GuessRule("short_final_sentence", _short_final_sentence_rule),
    GuessRule("last_token", _last_token_rule),
)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _as_text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = " ".join(str(v) for v in value)
    text = str(value).strip()
    return text or None


_JSON_START_RE = re.compile(r'^\s*\{|\{\s*"(?:reasoning|message|guess)"\s*:')


def _looks_like_json(text: str) -> bool:
    return bool(_JSON_START_RE.search(text))


def _partial_json_string(text: str, key: str) -> str | None:
    """Recover a string value from JSON that may be cut off mid-value.

    Examples:
        >>> _partial_json_string('{"reasoning": "x", "message": "Ships cro', "message")
        'Ships cro'
    """
    m = re.search(rf'"{re.escape(key)}"\s*:\s*"((?:[^"\\]|\\.)*)', text, re.DOTALL)
    if not m:
        return None
    value = m.group(1)
    try:
        value = json.loads(f'"{value}"')
    except ValueError:
        # Truncated inside an escape sequence.
        value = value.rstrip("\\")
    return value.strip() or None


class ResponseParser:
    """Parse model replies with a configurable chain of guess rules.

    With ``strict=True`` a reply from which no guess can be extracted raises
    ``ParseAmbiguityError``; otherwise it yields an empty guess, which the
    evaluator always scores as incorrect.
    """

    def __init__(
        self,
        guess_rules: tuple[GuessRule, ...] | list[GuessRule] = DEFAULT_GUESS_RULES,
        strict: bool = False,
    ):
        self.guess_rules = tuple(guess_rules)
        self.strict = strict

    def parse(self, raw_text: str, expected_kind: EntryKind | str) -> ParsedResponse:
        kind = EntryKind(expected_kind)
        text = strip_code_fences(raw_text or "")

        obj = parse_json_object_strict(text) or find_embedded_json_object(text)
        if obj is not None:
            parsed = self._from_json(obj, kind)
            if parsed is not None:
                return parsed
            if kind == EntryKind.MESSAGE:
                # The raw JSON carries private reasoning; it must never become the message.
                return ParsedResponse(message="", reasoning=_as_text(obj.get("reasoning")), source="empty")
        elif kind == EntryKind.MESSAGE and _looks_like_json(text):
            return self._from_partial_json(text)

        parsed = self._from_tags(text, kind)
        if parsed is not None:
            return parsed

        return self._from_prose(text, kind)

    def extract_guess(self, text: str) -> tuple[str, str | None]:
        """Run the fallback chain; returns (normalized guess, rule name)."""
        for rule in self.guess_rules:
            raw = rule.extract(text)
            if raw:
                guess = normalize_guess(raw)
                if guess:
                    return guess, rule.name
        return "", None

    def _from_json(self, obj: dict, kind: EntryKind) -> ParsedResponse | None:
        reasoning = _as_text(obj.get("reasoning"))
        message = _as_text(obj.get("message"))
        guess_raw = _as_text(obj.get("guess"))

        if kind == EntryKind.MESSAGE:
            if message is None:
                return None
            return ParsedResponse(message=message, reasoning=reasoning, source="json")

        if guess_raw is not None and normalize_guess(guess_raw):
            guess, rule = self._explicit_guess(guess_raw)
            return self._guess_result(guess, rule, reasoning, "json", guess_raw)

        # JSON without a usable guess: search its text values instead of the braces.
        prose = " ".join(
            t for t in (_as_text(v) for v in obj.values() if isinstance(v, (str, list))) if t
        )
        if not prose:
            return None
        guess, rule = self.extract_guess(prose)
        return self._guess_result(guess, rule, reasoning or prose, "fallback", prose)

    def _from_tags(self, text: str, kind: EntryKind) -> ParsedResponse | None:
        def field(name: str) -> str | None:
            return extract_tagged_field(text, name.lower()) or extract_labeled_field(text, name)

        reasoning = field("REASONING")
        if kind == EntryKind.MESSAGE:
            message = field("MESSAGE")
            if message is None:
                return None
            return ParsedResponse(message=message, reasoning=reasoning, source="tagged")

        guess_raw = field("GUESS")
        if guess_raw is None or not normalize_guess(guess_raw):
            return None
        guess, rule = self._explicit_guess(guess_raw)
        return self._guess_result(guess, rule, reasoning, "tagged", text)

    def _explicit_guess(self, guess_raw: str) -> tuple[str, str | None]:
        # A JSON or labelled guess may still be a sentence ("I'd say ocean").
        if len(guess_raw.split()) > 2:
            return self.extract_guess(guess_raw)
        return normalize_guess(guess_raw), None

    def _from_partial_json(self, text: str) -> ParsedResponse:
        message = _partial_json_string(text, "message")
        return ParsedResponse(
            message=message or "",
            reasoning=_partial_json_string(text, "reasoning"),
            source="json" if message else "empty",
        )

    def _from_prose(self, text: str, kind: EntryKind) -> ParsedResponse:
        if kind == EntryKind.MESSAGE:
            return ParsedResponse(message=text, source="prose" if text else "empty")
        guess, rule = self.extract_guess(text)
        return self._guess_result(guess, rule, text or None, "fallback", text)

    def _guess_result(
        self,
        guess: str,
        rule: str | None,
        reasoning: str | None,
        source: ParseSource,
        raw_text: str,
    ) -> ParsedResponse:
        if not guess:
            if self.strict:
                raise ParseAmbiguityError(raw_text)
            return ParsedResponse(guess="", reasoning=reasoning, source="empty")
        return ParsedResponse(guess=guess, reasoning=reasoning, source=source, rule=rule)


_default_parser = ResponseParser()


def parse_response(raw_text: str, expected_kind: EntryKind | str) -> ParsedResponse:
    """Parse with the default rule chain (non-strict)."""
    return _default_parser.parse(raw_text, expected_kind)
