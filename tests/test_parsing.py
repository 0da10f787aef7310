"""Tests for response parsing and guess extraction."""

from __future__ import annotations

import pytest

from src.core.errors import ParseAmbiguityError
from src.signal_noise.models import EntryKind
from src.signal_noise.parsing import (
    GuessRule,
    ResponseParser,
    normalize_guess,
    parse_response,
)


# ============================================================================
# Structured encodings
# ============================================================================

class TestStructuredResponses:
    """JSON and tagged replies."""

    def test_json_guess(self):
        result = parse_response('{"reasoning": "blue and vast", "guess": "Ocean"}', "guess")

        assert result.guess == "ocean"
        assert result.reasoning == "blue and vast"
        assert result.source == "json"

    def test_fenced_json_message(self):
        raw = '```json\n{"reasoning": "keep it subtle", "message": "Think of waves."}\n```'

        result = parse_response(raw, EntryKind.MESSAGE)

        assert result.message == "Think of waves."
        assert result.reasoning == "keep it subtle"

    def test_json_embedded_in_prose(self):
        raw = 'Here you go: {"guess": "sky", "reasoning": "blue"} hope that helps'

        result = parse_response(raw, "guess")

        assert result.guess == "sky"
        assert result.source == "json"

    def test_json_without_guess_searches_its_text(self):
        raw = '{"reasoning": "I think it\'s the ocean"}'

        result = parse_response(raw, "guess")

        assert result.guess == "ocean"
        assert result.source == "fallback"

    def test_labeled_fields(self):
        raw = "REASONING: It's blue.\nGUESS: Ocean"

        result = parse_response(raw, "guess")

        assert result.guess == "ocean"
        assert result.reasoning == "It's blue."
        assert result.source == "tagged"

    def test_labeled_message(self):
        raw = "MESSAGE: Ships cross it.\nREASONING: a gentle hint"

        result = parse_response(raw, "message")

        assert result.message == "Ships cross it."
        assert result.reasoning == "a gentle hint"

    def test_xml_tags(self):
        result = parse_response("<reasoning>hmm</reasoning><guess>Mountain</guess>", "guess")

        assert result.guess == "mountain"
        assert result.reasoning == "hmm"

    def test_labeled_guess_sentence_goes_through_rules(self):
        result = parse_response("GUESS: I'd say lighthouse", "guess")

        assert result.guess == "lighthouse"

    @pytest.mark.parametrize(
        "raw",
        [
            '{"guess": "I think it is ocean"}',
            "GUESS: I think it is ocean",
            "<guess>I think it is ocean</guess>",
        ],
    )
    def test_sentence_guess_agrees_across_encodings(self, raw):
        result = parse_response(raw, "guess")

        assert result.guess == "ocean"
        assert result.rule == "phrase"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('{"reasoning": "secret ocean; stay quiet", "message": ""}', ""),
            ('{"reasoning": "secret ocean", "hint": "Ships cross it"}', ""),
            ('{"reasoning": "The secret is ocean, so hint at ships", "message": "Ships cro', "Ships cro"),
            ('{"reasoning": "The secret is ocean, so hint at ships", "mess', ""),
            ('```json\n{"reasoning": "ocean", "message": "Salt and \\"waves\\"', 'Salt and "waves"'),
        ],
    )
    def test_json_message_never_falls_back_to_raw_text(self, raw, expected):
        result = parse_response(raw, "message")

        assert result.message == expected
        assert "ocean" not in result.message


# ============================================================================
# Prose fallback chain
# ============================================================================

class TestGuessFallbackChain:
    """Rules are tried in order; the first hit wins."""

    def test_prose_message_is_whole_text(self):
        result = parse_response("Think of something vast and blue.", "message")

        assert result.message == "Think of something vast and blue."
        assert result.source == "prose"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("After some thought, my guess is Ocean.", "ocean"),
            ("I think it's the sky, honestly, given everything above.", "sky"),
            ("The word is 'river' I'm fairly sure of it now.", "river"),
            ("My final answer: Anchor, because of the ships mentioned earlier.", "anchor"),
            ("I'm guessing lantern based on the light imagery here.", "lantern"),
        ],
    )
    def test_phrase_rule(self, text, expected):
        parser = ResponseParser()

        guess, rule = parser.extract_guess(text)

        assert guess == expected
        assert rule == "phrase"

    def test_quoted_word_rule(self):
        text = 'Something about "anchor" keeps coming up in the hints, so that is where I land today.'

        guess, rule = ResponseParser().extract_guess(text)

        assert guess == "anchor"
        assert rule == "quoted_word"

    def test_short_final_sentence_rule(self):
        text = "The hints mention waves and salt. Definitely harbor!"

        guess, rule = ResponseParser().extract_guess(text)

        assert guess == "harbor"
        assert rule == "short_final_sentence"

    def test_ill_say_uses_final_sentence(self):
        # "I'll say X" is not a guess phrase; the short last sentence catches it.
        result = parse_response("Hmm, tricky one... I'll say mountain.", "guess")

        assert result.guess == "mountain"
        assert result.rule == "short_final_sentence"
        assert result.reasoning == "Hmm, tricky one... I'll say mountain."

    def test_long_final_sentence_uses_last_token(self):
        result = parse_response("Hmm, tricky one... I'll go ahead and say mountain.", "guess")

        assert result.guess == "mountain"
        assert result.rule == "last_token"

    def test_nothing_extractable_gives_empty_guess(self):
        result = parse_response("!!! ???", "guess")

        assert result.guess == ""
        assert result.source == "empty"

    def test_empty_reply(self):
        assert parse_response("", "guess").guess == ""
        assert parse_response("", "message").message == ""

    def test_strict_parser_raises(self):
        parser = ResponseParser(strict=True)

        with pytest.raises(ParseAmbiguityError):
            parser.parse("... ?", "guess")

    def test_custom_rules_replace_default_chain(self):
        parser = ResponseParser(guess_rules=[GuessRule("first_word", lambda t: t.split()[0])])

        result = parser.parse("Lantern is my pick, surely", "guess")

        assert result.guess == "lantern"
        assert result.rule == "first_word"


def test_normalize_guess():
    assert normalize_guess("  Ocean! ") == "ocean"
    assert normalize_guess("the Sea-Shell") == "seashell"
    assert normalize_guess("An apple") == "apple"
    assert normalize_guess("42") == ""


def test_short_guess_with_article_is_still_a_word():
    assert parse_response('{"guess": "the ocean"}', "guess").guess == "ocean"
    assert parse_response("GUESS: an anchor", "guess").guess == "anchor"
