"""Event types emitted to presentation layers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

from .models import MessageEntry, ParticipantKey, RoundOutcome

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of game events."""

    ROUND_STARTED = "round_started"
    MESSAGE_ADDED = "message_added"
    GUESS_ADDED = "guess_added"
    ROUND_ENDED = "round_ended"
    ROUND_FAILED = "round_failed"
    MATCH_ENDED = "match_ended"


class RoundStartedEvent(BaseModel):
    """Emitted when a round starts."""

    match_id: str
    round_number: int
    secret: str
    category: str | None = None
    sender_receiver: ParticipantKey
    observer: ParticipantKey
    models: dict[str, str]  # participant -> model_id


class EntryAddedEvent(BaseModel):
    """Emitted for every message or guess appended to a round's history."""

    match_id: str
    round_number: int
    entry: MessageEntry


class RoundEndedEvent(BaseModel):
    """Emitted when a round reaches an outcome."""

    match_id: str
    round_number: int
    outcome: RoundOutcome
    loops_used: int
    scores: dict[ParticipantKey, int]


class RoundFailedEvent(BaseModel):
    """Emitted when a round is aborted by a model failure."""

    match_id: str
    round_number: int
    error: dict[str, Any]


class MatchEndedEvent(BaseModel):
    """Emitted when the match is over."""

    match_id: str
    final_scores: dict[ParticipantKey, int]
    winner: ParticipantKey | None
    rounds_played: int
    tie_count: int


class GameEvent(BaseModel):
    """Wrapper for all game events."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: (
        RoundStartedEvent
        | EntryAddedEvent
        | RoundEndedEvent
        | RoundFailedEvent
        | MatchEndedEvent
    )


EventCallback = Callable[[GameEvent], None]


class EventBus:
    """Fan out game events to subscribers.

    The game logic only emits; rendering is the subscribers' business. A
    failing subscriber is logged and skipped so it cannot stall a round.
    """

    def __init__(self):
        self._subscribers: list[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, event_type: EventType, data: BaseModel) -> GameEvent:
        event = GameEvent(event_type=event_type, data=data)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber failed on %s", event_type.value)
        return event
