"""Signal & Noise: language models passing a secret word past an eavesdropper."""

from .models import (
    MAX_LOOPS,
    ParticipantKey,
    Role,
    EntryKind,
    Phase,
    RoundOutcome,
    SecretWord,
    MessageEntry,
    RoundState,
    RoundRecord,
    MatchState,
)
from .config import GameConfig, model_display_name
from .evaluator import is_correct, normalize
from .parsing import (
    GuessRule,
    DEFAULT_GUESS_RULES,
    ParsedResponse,
    ResponseParser,
    normalize_guess,
    parse_response,
)
from .words import WordSource, WordList, load_word_list
from .events import EventBus, EventType, GameEvent
from .gateway import Gateway, ModelGateway
from .round_machine import RoundStateMachine, new_round_state
from .match import MatchController, roles_for_round

__all__ = [
    # Models
    "MAX_LOOPS",
    "ParticipantKey",
    "Role",
    "EntryKind",
    "Phase",
    "RoundOutcome",
    "SecretWord",
    "MessageEntry",
    "RoundState",
    "RoundRecord",
    "MatchState",
    # Config
    "GameConfig",
    "model_display_name",
    # Evaluation + parsing
    "is_correct",
    "normalize",
    "GuessRule",
    "DEFAULT_GUESS_RULES",
    "ParsedResponse",
    "ResponseParser",
    "normalize_guess",
    "parse_response",
    # Words
    "WordSource",
    "WordList",
    "load_word_list",
    # Events
    "EventBus",
    "EventType",
    "GameEvent",
    # Gateway + controllers
    "Gateway",
    "ModelGateway",
    "RoundStateMachine",
    "new_round_state",
    "MatchController",
    "roles_for_round",
]
