"""Data models for the Signal & Noise secret-exchange game."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


MAX_LOOPS = 4

ParticipantKey = Literal["model_one", "model_two"]


class Role(str, Enum):
    """Player role within a round."""
    SENDER = "sender"
    RECEIVER = "receiver"
    OBSERVER = "observer"


class EntryKind(str, Enum):
    """Kind of history entry."""
    MESSAGE = "message"
    GUESS = "guess"


class Phase(str, Enum):
    """Round phase enumeration."""
    SENDER = "sender"
    OBSERVER = "observer"
    RECEIVER_GUESS = "receiver_guess"
    RECEIVER_RESPONSE = "receiver_response"
    ROUND_END = "round_end"


class RoundOutcome(str, Enum):
    """Who won a round."""
    OBSERVER = "observer"
    RECEIVER = "receiver"
    TIE = "tie"


class SecretWord(BaseModel):
    """The word the Sender/Receiver team is trying to exchange."""

    model_config = ConfigDict(frozen=True)

    word: str
    category: str | None = None


class MessageEntry(BaseModel):
    """One message or guess in a round's conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    kind: EntryKind
    content: str
    reasoning: str | None = None
    correct: bool | None = None
    loop_index: int = 1
    phase: Phase | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _correct_only_for_guesses(self) -> "MessageEntry":
        if self.kind == EntryKind.GUESS and self.correct is None:
            raise ValueError("Guess entries must carry a correctness flag")
        if self.kind == EntryKind.MESSAGE and self.correct is not None:
            raise ValueError("Message entries must not carry a correctness flag")
        return self


class RoundState(BaseModel):
    """Mutable state of the round in progress.

    Only the round state machine mutates this object. History is append-only:
    use `append_entry`, never reassign or edit `history` in place.
    """

    round_number: int = Field(ge=1)
    secret: SecretWord
    sender_receiver: ParticipantKey
    observer: ParticipantKey
    loop_index: int = Field(default=1, ge=1)
    max_loops: int = MAX_LOOPS
    phase: Phase = Phase.SENDER
    history: list[MessageEntry] = Field(default_factory=list)
    outcome: RoundOutcome | None = None

    def append_entry(self, entry: MessageEntry) -> None:
        self.history.append(entry)

    def set_outcome(self, outcome: RoundOutcome) -> None:
        if self.outcome is not None:
            raise ValueError(f"Round {self.round_number} already ended with {self.outcome.value}")
        self.outcome = outcome
        self.phase = Phase.ROUND_END

    def last_message(self, role: Role) -> MessageEntry | None:
        for entry in reversed(self.history):
            if entry.role == role and entry.kind == EntryKind.MESSAGE:
                return entry
        return None

    def freeze(self) -> "RoundRecord":
        if self.outcome is None:
            raise ValueError("Cannot archive a round without an outcome")
        return RoundRecord(
            round_number=self.round_number,
            secret=self.secret,
            sender_receiver=self.sender_receiver,
            observer=self.observer,
            loops_used=self.loop_index,
            outcome=self.outcome,
            history=tuple(self.history),
        )


class RoundRecord(BaseModel):
    """Archived, immutable snapshot of a finished round."""

    model_config = ConfigDict(frozen=True)

    round_number: int
    secret: SecretWord
    sender_receiver: ParticipantKey
    observer: ParticipantKey
    loops_used: int
    outcome: RoundOutcome
    history: tuple[MessageEntry, ...]

    def credited_participant(self) -> ParticipantKey | None:
        if self.outcome == RoundOutcome.OBSERVER:
            return self.observer
        if self.outcome == RoundOutcome.RECEIVER:
            return self.sender_receiver
        return None


class MatchState(BaseModel):
    """Scores and archived rounds for one match."""

    match_id: str
    participants: dict[ParticipantKey, str]
    round_number: int = Field(default=1, ge=1)
    total_rounds: int = Field(ge=1)
    scores: dict[ParticipantKey, int] = Field(
        default_factory=lambda: {"model_one": 0, "model_two": 0}
    )
    score_team_sr: int = 0
    score_team_obs: int = 0
    tie_count: int = 0
    round_history: list[RoundRecord] = Field(default_factory=list)
    status: Literal["in_progress", "complete", "aborted"] = "in_progress"

    @property
    def rounds_remaining(self) -> int:
        return max(0, self.total_rounds - self.round_number + 1)

    def winner(self) -> ParticipantKey | None:
        """Participant with the higher score, or None on a level match."""
        one, two = self.scores["model_one"], self.scores["model_two"]
        if one > two:
            return "model_one"
        if two > one:
            return "model_two"
        return None
