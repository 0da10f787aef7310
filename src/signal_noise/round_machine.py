"""Round state machine.

Phase order within a round::

    sender -> observer -> receiver_guess -> receiver_response -> sender ...

The observer ends the round by guessing the secret, the receiver by guessing
it after the observer missed. A receiver miss on the last allowed loop ends
the round in a tie. Each phase appends exactly one history entry.
"""

from __future__ import annotations

import logging
from typing import Callable

from src.core.errors import RoundCancelledError

from .evaluator import is_correct
from .events import EntryAddedEvent, EventBus, EventType
from .gateway import Gateway
from .models import (
    EntryKind,
    MessageEntry,
    ParticipantKey,
    Phase,
    Role,
    RoundOutcome,
    RoundRecord,
    RoundState,
    SecretWord,
)
from .parsing import ResponseParser
from .visibility import view_for_observer, view_for_receiver, view_for_sender

logger = logging.getLogger(__name__)


def new_round_state(
    *,
    round_number: int,
    secret: SecretWord,
    sender_receiver: ParticipantKey,
    observer: ParticipantKey,
    max_loops: int,
) -> RoundState:
    if sender_receiver == observer:
        raise ValueError("Sender/Receiver and Observer must be different participants")
    return RoundState(
        round_number=round_number,
        secret=secret,
        sender_receiver=sender_receiver,
        observer=observer,
        max_loops=max_loops,
    )


class RoundStateMachine:
    """Drive one round from the sender phase to an outcome.

    ``models`` maps participant slots to model ids. ``is_stale`` is polled
    after every gateway call; when it returns True the reply is dropped and
    ``RoundCancelledError`` is raised, leaving the state untouched.
    """

    def __init__(
        self,
        *,
        gateway: Gateway,
        state: RoundState,
        models: dict[ParticipantKey, str],
        parser: ResponseParser | None = None,
        events: EventBus | None = None,
        match_id: str = "",
        is_stale: Callable[[], bool] | None = None,
    ):
        self.gateway = gateway
        self.state = state
        self.models = models
        self.parser = parser or ResponseParser()
        self.events = events
        self.match_id = match_id
        self._is_stale = is_stale or (lambda: False)

    @property
    def done(self) -> bool:
        return self.state.outcome is not None

    async def run(self) -> RoundRecord:
        """Run phases until the round ends and return the archived record."""
        while not self.done:
            await self.step()
        return self.record()

    async def step(self) -> Phase:
        """Run the current phase and return the phase that follows it."""
        phase = self.state.phase
        if phase == Phase.SENDER:
            await self._run_sender()
        elif phase == Phase.OBSERVER:
            await self._run_observer()
        elif phase == Phase.RECEIVER_GUESS:
            await self._run_receiver_guess()
        elif phase == Phase.RECEIVER_RESPONSE:
            await self._run_receiver_response()
        else:
            raise ValueError(f"Round {self.state.round_number} has already ended")
        return self.state.phase

    def record(self) -> RoundRecord:
        return self.state.freeze()

    # -- phases -------------------------------------------------------------

    async def _run_sender(self) -> None:
        view = view_for_sender(self.state, self.models)
        raw = await self._invoke(self.state.sender_receiver, Role.SENDER, view)
        parsed = self.parser.parse(raw, EntryKind.MESSAGE)
        self._append(Role.SENDER, EntryKind.MESSAGE, parsed.message or "", parsed.reasoning)
        self.state.phase = Phase.OBSERVER

    async def _run_observer(self) -> None:
        view = view_for_observer(self.state, self.models)
        raw = await self._invoke(self.state.observer, Role.OBSERVER, view)
        parsed = self.parser.parse(raw, EntryKind.GUESS)
        entry = self._append(Role.OBSERVER, EntryKind.GUESS, parsed.guess or "", parsed.reasoning)
        if entry.correct:
            self._end(RoundOutcome.OBSERVER)
        else:
            self.state.phase = Phase.RECEIVER_GUESS

    async def _run_receiver_guess(self) -> None:
        view = view_for_receiver(self.state, self.models, "guess")
        raw = await self._invoke(self.state.sender_receiver, Role.RECEIVER, view)
        parsed = self.parser.parse(raw, EntryKind.GUESS)
        entry = self._append(Role.RECEIVER, EntryKind.GUESS, parsed.guess or "", parsed.reasoning)
        if entry.correct:
            self._end(RoundOutcome.RECEIVER)
        elif self.state.loop_index >= self.state.max_loops:
            self._end(RoundOutcome.TIE)
        else:
            self.state.phase = Phase.RECEIVER_RESPONSE

    async def _run_receiver_response(self) -> None:
        view = view_for_receiver(self.state, self.models, "respond")
        raw = await self._invoke(self.state.sender_receiver, Role.RECEIVER, view)
        parsed = self.parser.parse(raw, EntryKind.MESSAGE)
        self._append(Role.RECEIVER, EntryKind.MESSAGE, parsed.message or "", parsed.reasoning)
        self.state.loop_index += 1
        self.state.phase = Phase.SENDER

    # -- helpers ------------------------------------------------------------

    async def _invoke(self, participant: ParticipantKey, role: Role, view: dict) -> str:
        if self._is_stale():
            raise RoundCancelledError(f"Round {self.state.round_number} was cancelled")
        raw = await self.gateway.invoke(self.models[participant], role, view)
        if self._is_stale():
            # The match moved on while we were waiting; drop the reply.
            raise RoundCancelledError(f"Round {self.state.round_number} was cancelled")
        return raw

    def _append(
        self,
        role: Role,
        kind: EntryKind,
        content: str,
        reasoning: str | None,
    ) -> MessageEntry:
        entry = MessageEntry(
            role=role,
            kind=kind,
            content=content,
            reasoning=reasoning,
            correct=is_correct(content, self.state.secret) if kind == EntryKind.GUESS else None,
            loop_index=self.state.loop_index,
            phase=self.state.phase,
        )
        self.state.append_entry(entry)
        if self.events is not None:
            self.events.emit(
                EventType.GUESS_ADDED if kind == EntryKind.GUESS else EventType.MESSAGE_ADDED,
                EntryAddedEvent(
                    match_id=self.match_id,
                    round_number=self.state.round_number,
                    entry=entry,
                ),
            )
        return entry

    def _end(self, outcome: RoundOutcome) -> None:
        self.state.set_outcome(outcome)
        logger.info(
            "Round %d ended: %s after %d loop(s)",
            self.state.round_number, outcome.value, self.state.loop_index,
        )
