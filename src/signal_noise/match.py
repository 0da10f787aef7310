"""Match controller: rounds, role alternation, scoring and termination."""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from src.core.errors import (
    MatchStateError,
    ModelInvocationError,
    ParseAmbiguityError,
    RoundCancelledError,
)

from .config import GameConfig
from .events import (
    EventBus,
    EventType,
    MatchEndedEvent,
    RoundEndedEvent,
    RoundFailedEvent,
    RoundStartedEvent,
)
from .gateway import Gateway
from .models import MatchState, ParticipantKey, RoundOutcome, RoundRecord, SecretWord
from .parsing import ResponseParser
from .round_machine import RoundStateMachine, new_round_state
from .words import WordSource

logger = logging.getLogger(__name__)


def roles_for_round(round_number: int) -> tuple[ParticipantKey, ParticipantKey]:
    """
    Returns (sender_receiver, observer) for a round.

    Roles swap every round: model_one sends/receives in odd rounds and
    observes in even rounds.
    """
    if round_number % 2 == 1:
        return "model_one", "model_two"
    return "model_two", "model_one"


class MatchController:
    """Own one match at a time and drive its rounds.

    Each controller holds its own ``MatchState``; run several controllers to
    play independent matches concurrently. Starting a new match (or calling
    ``abort``) invalidates any round still waiting on a model.
    """

    def __init__(
        self,
        *,
        gateway: Gateway,
        word_source: WordSource,
        config: GameConfig | None = None,
        events: EventBus | None = None,
        parser: ResponseParser | None = None,
    ):
        self.gateway = gateway
        self.word_source = word_source
        self.config = config or GameConfig()
        self.events = events or EventBus()
        self.parser = parser or ResponseParser()
        self._state: MatchState | None = None
        self._generation = 0
        self._round: RoundStateMachine | None = None

    # -- public API ---------------------------------------------------------

    def start_match(
        self,
        participants: Sequence[str],
        total_rounds: int | None = None,
    ) -> MatchState:
        if len(participants) != 2:
            raise MatchStateError(f"A match needs exactly two participants, got {len(participants)}")
        state = MatchState(
            match_id=str(uuid.uuid4())[:8],
            participants={"model_one": participants[0], "model_two": participants[1]},
            total_rounds=self.config.total_rounds if total_rounds is None else total_rounds,
        )
        self._generation += 1
        self._round = None
        self._state = state
        logger.info(
            "Starting match %s: %s vs %s, %d rounds",
            self._state.match_id, participants[0], participants[1], self._state.total_rounds,
        )
        return self.get_match_state()

    def get_match_state(self) -> MatchState:
        return self._require_state().model_copy(deep=True)

    @property
    def is_over(self) -> bool:
        state = self._require_state()
        if state.status != "in_progress":
            return True
        if state.round_number > state.total_rounds:
            return True
        return self.config.early_stop and self._outcome_decided(state)

    async def advance_round(self) -> RoundRecord:
        """Play the next round to its outcome and archive it.

        A ``ModelInvocationError`` aborts the round: nothing is archived and
        the round number does not move, so the caller may retry, skip or stop.
        """
        state = self._require_state()
        if self.is_over:
            raise MatchStateError(f"Match {state.match_id} is already over")
        if self._round is not None:
            raise MatchStateError(f"Match {state.match_id} already has a round in progress")

        generation = self._generation
        sender_receiver, observer = roles_for_round(state.round_number)
        round_state = new_round_state(
            round_number=state.round_number,
            secret=self._draw_secret(),
            sender_receiver=sender_receiver,
            observer=observer,
            max_loops=self.config.max_loops,
        )
        machine = RoundStateMachine(
            gateway=self.gateway,
            state=round_state,
            models=dict(state.participants),
            parser=self.parser,
            events=self.events,
            match_id=state.match_id,
            is_stale=lambda: self._generation != generation,
        )
        self._round = machine

        self.events.emit(
            EventType.ROUND_STARTED,
            RoundStartedEvent(
                match_id=state.match_id,
                round_number=state.round_number,
                secret=round_state.secret.word,
                category=round_state.secret.category,
                sender_receiver=sender_receiver,
                observer=observer,
                models=dict(state.participants),
            ),
        )

        try:
            record = await machine.run()
        except RoundCancelledError:
            logger.info("Round %d of match %s cancelled", round_state.round_number, state.match_id)
            raise
        except (ModelInvocationError, ParseAmbiguityError) as e:
            logger.warning("Round %d of match %s failed: %s", round_state.round_number, state.match_id, e)
            self.events.emit(
                EventType.ROUND_FAILED,
                RoundFailedEvent(
                    match_id=state.match_id,
                    round_number=round_state.round_number,
                    error=e.to_dict(),
                ),
            )
            raise
        finally:
            if self._generation == generation:
                self._round = None

        self._archive(state, record)
        self.events.emit(
            EventType.ROUND_ENDED,
            RoundEndedEvent(
                match_id=state.match_id,
                round_number=record.round_number,
                outcome=record.outcome,
                loops_used=record.loops_used,
                scores=dict(state.scores),
            ),
        )
        if self.is_over:
            self._finish(state)
        return record

    async def run_match(self) -> MatchState:
        """Advance rounds until the match is over; returns the final state."""
        while not self.is_over:
            await self.advance_round()
        return self.get_match_state()

    def abort(self) -> None:
        """Stop the match; any in-flight round result is discarded."""
        state = self._require_state()
        self._generation += 1
        self._round = None
        if state.status == "in_progress":
            state.status = "aborted"
            logger.info("Match %s aborted at round %d", state.match_id, state.round_number)

    def final_scores(self) -> dict[ParticipantKey, int]:
        return dict(self._require_state().scores)

    def winner(self) -> str | None:
        """Model id of the winning participant, or None on a level match."""
        state = self._require_state()
        key = state.winner()
        return state.participants[key] if key is not None else None

    # -- internals ----------------------------------------------------------

    def _require_state(self) -> MatchState:
        if self._state is None:
            raise MatchStateError("No match has been started")
        return self._state

    def _draw_secret(self) -> SecretWord:
        word = self.word_source.get_random_word()
        get_category = getattr(self.word_source, "get_random_category", None)
        category = get_category() if callable(get_category) else None
        return SecretWord(word=word, category=category)

    def _archive(self, state: MatchState, record: RoundRecord) -> None:
        credited = record.credited_participant()
        if record.outcome == RoundOutcome.OBSERVER:
            state.score_team_obs += 1
        elif record.outcome == RoundOutcome.RECEIVER:
            state.score_team_sr += 1
        else:
            state.tie_count += 1
        if credited is not None:
            state.scores[credited] += 1
        state.round_history.append(record)
        state.round_number += 1

    @staticmethod
    def _outcome_decided(state: MatchState) -> bool:
        # round_number already points at the next round to play.
        lead = abs(state.scores["model_one"] - state.scores["model_two"])
        return lead > state.rounds_remaining

    def _finish(self, state: MatchState) -> None:
        state.status = "complete"
        logger.info(
            "Match %s complete after %d round(s): %s",
            state.match_id, len(state.round_history), state.scores,
        )
        self.events.emit(
            EventType.MATCH_ENDED,
            MatchEndedEvent(
                match_id=state.match_id,
                final_scores=dict(state.scores),
                winner=state.winner(),
                rounds_played=len(state.round_history),
                tie_count=state.tie_count,
            ),
        )
