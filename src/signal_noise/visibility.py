from __future__ import annotations

from typing import Any, Literal

from .config import model_display_name
from .models import EntryKind, MessageEntry, Phase, Role, RoundState


FORBIDDEN_INTERNAL_KEYS = {
    # private or debug state that must never be in any agent view
    "reasoning",
    "outcome",
    "seed",
    "rng",
    "debug",
}

ROLE_FORBIDDEN_KEYS = {
    "sender": set(),  # sender/receiver know the secret
    "receiver": set(),
    "observer": {"secret", "word"},
}

ReceiverTask = Literal["guess", "respond"]


def public_entry(entry: MessageEntry) -> dict[str, Any]:
    """
    Public view of one history entry: who said what, and whether a guess was
    right. Reasoning is private to the model that produced it.
    """
    out: dict[str, Any] = {
        "role": entry.role.value,
        "kind": entry.kind.value,
        "content": entry.content,
        "loop": entry.loop_index,
    }
    if entry.kind == EntryKind.GUESS:
        out["correct"] = bool(entry.correct)
    return out


def _base_view(state: RoundState, role: Role, models: dict[str, str]) -> dict[str, Any]:
    return {
        "role": role.value,
        "round_number": state.round_number,
        "loop_index": state.loop_index,
        "max_loops": state.max_loops,
        "category": state.secret.category,
        "sender_receiver_model": model_display_name(models[state.sender_receiver]),
        "observer_model": model_display_name(models[state.observer]),
        "history": [public_entry(e) for e in state.history],
    }


def view_for_sender(state: RoundState, models: dict[str, str]) -> dict[str, Any]:
    """
    Sender sees:
    - the secret word and category
    - the full public history, including the Receiver's latest response
    """
    view = _base_view(state, Role.SENDER, models)
    view["secret"] = state.secret.word
    last = state.last_message(Role.RECEIVER)
    view["receiver_response"] = last.content if (last is not None and state.loop_index > 1) else None
    return view


def view_for_receiver(state: RoundState, models: dict[str, str], task: ReceiverTask) -> dict[str, Any]:
    """
    Receiver shares the Sender's knowledge of the secret. ``task`` selects
    between guessing and replying to the Sender.
    """
    view = _base_view(state, Role.RECEIVER, models)
    view["secret"] = state.secret.word
    view["task"] = task
    return view


def view_for_observer(state: RoundState, models: dict[str, str]) -> dict[str, Any]:
    """
    Observer sees the public exchange and the category.
    Must NOT see the secret word.
    """
    return _base_view(state, Role.OBSERVER, models)


def view_for_phase(state: RoundState, models: dict[str, str]) -> dict[str, Any]:
    """Build the view for whichever role acts in the current phase."""
    if state.phase == Phase.SENDER:
        return view_for_sender(state, models)
    if state.phase == Phase.OBSERVER:
        return view_for_observer(state, models)
    if state.phase == Phase.RECEIVER_GUESS:
        return view_for_receiver(state, models, "guess")
    if state.phase == Phase.RECEIVER_RESPONSE:
        return view_for_receiver(state, models, "respond")
    raise ValueError(f"No acting role in phase {state.phase.value}")


def assert_no_internal_leaks(payload: Any) -> None:
    """
    Recursively assert that internal/debug forbidden fields do not appear in a payload.
    """
    if isinstance(payload, dict):
        for k, v in payload.items():
            if isinstance(k, str) and k in FORBIDDEN_INTERNAL_KEYS:
                raise AssertionError(f"Forbidden internal field present in payload: {k}")
            assert_no_internal_leaks(v)
    elif isinstance(payload, list):
        for item in payload:
            assert_no_internal_leaks(item)


def assert_view_safe(payload: Any) -> None:
    """
    Validate a view payload for leakage based on its declared role.
    """
    if not isinstance(payload, dict):
        raise AssertionError("View payload must be a dict")
    role = payload.get("role")
    if role not in ROLE_FORBIDDEN_KEYS:
        raise AssertionError(f"Unknown role in view payload: {role!r}")

    assert_no_internal_leaks(payload)
    forbidden = ROLE_FORBIDDEN_KEYS[role]
    for k in forbidden:
        if k in payload:
            raise AssertionError(f"Forbidden field for role={role}: {k}")
