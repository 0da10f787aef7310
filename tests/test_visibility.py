from __future__ import annotations

import pytest

from src.signal_noise.models import EntryKind, MessageEntry, Phase, Role, RoundState, SecretWord
from src.signal_noise.prompts import build_messages
from src.signal_noise.visibility import (
    assert_no_internal_leaks,
    assert_view_safe,
    view_for_observer,
    view_for_phase,
    view_for_receiver,
    view_for_sender,
)


MODELS = {"model_one": "gpt-4o", "model_two": "claude-3-7-sonnet-20250219"}


def _round_state(loop_index: int = 1) -> RoundState:
    state = RoundState(
        round_number=1,
        secret=SecretWord(word="ocean", category="nature"),
        sender_receiver="model_one",
        observer="model_two",
    )
    state.append_entry(MessageEntry(
        role=Role.SENDER, kind=EntryKind.MESSAGE, content="Ships cross it.",
        reasoning="ocean -> ships", phase=Phase.SENDER,
    ))
    state.append_entry(MessageEntry(
        role=Role.OBSERVER, kind=EntryKind.GUESS, content="sky",
        reasoning="blue things", correct=False, phase=Phase.OBSERVER,
    ))
    state.append_entry(MessageEntry(
        role=Role.RECEIVER, kind=EntryKind.GUESS, content="lake",
        reasoning="water", correct=False, phase=Phase.RECEIVER_GUESS,
    ))
    state.append_entry(MessageEntry(
        role=Role.RECEIVER, kind=EntryKind.MESSAGE, content="Bigger, saltier?",
        reasoning="steer", phase=Phase.RECEIVER_RESPONSE,
    ))
    state.loop_index = loop_index
    return state


def test_sender_view_includes_secret_and_receiver_response() -> None:
    payload = view_for_sender(_round_state(loop_index=2), MODELS)

    assert payload["role"] == "sender"
    assert payload["secret"] == "ocean"
    assert payload["receiver_response"] == "Bigger, saltier?"
    assert payload["sender_receiver_model"] == "GPT-4o"
    assert payload["observer_model"] == "Claude-3.7-Sonnet"
    assert_view_safe(payload)


def test_sender_view_has_no_receiver_response_on_first_loop() -> None:
    state = RoundState(
        round_number=1,
        secret=SecretWord(word="ocean"),
        sender_receiver="model_one",
        observer="model_two",
    )

    payload = view_for_sender(state, MODELS)

    assert payload["receiver_response"] is None
    assert payload["history"] == []


def test_observer_view_excludes_secret() -> None:
    payload = view_for_observer(_round_state(), MODELS)

    assert payload["role"] == "observer"
    assert "secret" not in payload
    assert payload["category"] == "nature"
    assert_view_safe(payload)


def test_history_is_public_only() -> None:
    payload = view_for_observer(_round_state(), MODELS)

    history = payload["history"]
    assert len(history) == 4
    assert all("reasoning" not in e for e in history)
    assert history[1] == {"role": "observer", "kind": "guess", "content": "sky", "loop": 1, "correct": False}
    assert "correct" not in history[0]


def test_receiver_views_carry_task() -> None:
    state = _round_state()

    assert view_for_receiver(state, MODELS, "guess")["task"] == "guess"
    assert view_for_receiver(state, MODELS, "respond")["task"] == "respond"


def test_view_for_phase_follows_state() -> None:
    state = _round_state()
    state.phase = Phase.OBSERVER
    assert view_for_phase(state, MODELS)["role"] == "observer"

    state.phase = Phase.RECEIVER_RESPONSE
    view = view_for_phase(state, MODELS)
    assert view["role"] == "receiver"
    assert view["task"] == "respond"

    state.phase = Phase.ROUND_END
    with pytest.raises(ValueError):
        view_for_phase(state, MODELS)


def test_observer_view_with_secret_is_rejected() -> None:
    payload = view_for_observer(_round_state(), MODELS)
    payload["secret"] = "ocean"

    with pytest.raises(AssertionError):
        assert_view_safe(payload)


def test_forbidden_field_scanner_catches_reasoning() -> None:
    with pytest.raises(AssertionError):
        assert_no_internal_leaks({"history": [{"reasoning": "private"}]})


def test_prompts_only_show_secret_to_sender() -> None:
    state = _round_state()

    sender_text = " ".join(m["content"] for m in build_messages(view_for_sender(state, MODELS)))
    observer_text = " ".join(m["content"] for m in build_messages(view_for_observer(state, MODELS)))
    receiver_text = " ".join(
        m["content"] for m in build_messages(view_for_receiver(state, MODELS, "guess"))
    )

    assert '"ocean"' in sender_text
    assert "ocean" not in observer_text
    assert "ocean" not in receiver_text
    assert "blue things" not in observer_text
