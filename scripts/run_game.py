#!/usr/bin/env python3
"""Run a single Signal & Noise match between two models."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))
load_dotenv(Path(__file__).parent.parent / ".env")

from src.core.errors import ConfigurationError, ModelInvocationError
from src.signal_noise.config import DEFAULT_MODELS, GameConfig, model_display_name
from src.signal_noise.events import EventBus, EventType, GameEvent
from src.signal_noise.gateway import ModelGateway
from src.signal_noise.match import MatchController
from src.signal_noise.models import EntryKind, Role
from src.signal_noise.words import WordList


class Colors:
    RED = "\033[91m"
    BLUE = "\033[94m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    GRAY = "\033[90m"
    CYAN = "\033[96m"
    MAGENTA = "\033[95m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RESET = "\033[0m"


ROLE_COLORS = {
    Role.SENDER: Colors.BLUE,
    Role.RECEIVER: Colors.GREEN,
    Role.OBSERVER: Colors.MAGENTA,
}


class TerminalPrinter:
    """Render game events to the terminal."""

    def __init__(self, models: dict[str, str], show_reasoning: bool = True):
        self.models = models
        self.show_reasoning = show_reasoning

    def __call__(self, event: GameEvent) -> None:
        data = event.data
        if event.event_type == EventType.ROUND_STARTED:
            sr = model_display_name(self.models[data.sender_receiver])
            obs = model_display_name(self.models[data.observer])
            print(f"\n{Colors.BOLD}{'=' * 60}{Colors.RESET}")
            print(f"{Colors.BOLD}ROUND {data.round_number}{Colors.RESET}  "
                  f"{Colors.DIM}secret:{Colors.RESET} {Colors.YELLOW}{data.secret}{Colors.RESET}")
            print(f"  Sender/Receiver: {sr} ({data.sender_receiver})   Observer: {obs} ({data.observer})")
        elif event.event_type in (EventType.MESSAGE_ADDED, EventType.GUESS_ADDED):
            entry = data.entry
            color = ROLE_COLORS[entry.role]
            label = entry.role.value.capitalize()
            if self.show_reasoning and entry.reasoning:
                reasoning = entry.reasoning if len(entry.reasoning) <= 200 else entry.reasoning[:200] + "..."
                print(f"{Colors.GRAY}  [{label} reasoning] {reasoning}{Colors.RESET}")
            if entry.kind == EntryKind.GUESS:
                mark = f"{Colors.GREEN}correct" if entry.correct else f"{Colors.RED}wrong"
                print(f"{color}  {label} guesses: {entry.content or '(nothing)'}{Colors.RESET} [{mark}{Colors.RESET}]")
            else:
                print(f"{color}  {label}: {entry.content}{Colors.RESET}")
        elif event.event_type == EventType.ROUND_ENDED:
            print(f"{Colors.CYAN}  -> {data.outcome.value} after {data.loops_used} loop(s); "
                  f"scores {data.scores}{Colors.RESET}")
        elif event.event_type == EventType.ROUND_FAILED:
            print(f"{Colors.RED}  round failed: {data.error.get('message')}{Colors.RESET}")
        elif event.event_type == EventType.MATCH_ENDED:
            print(f"\n{Colors.BOLD}MATCH OVER{Colors.RESET} after {data.rounds_played} round(s), "
                  f"{data.tie_count} tie(s)")
            for key, score in data.final_scores.items():
                print(f"  {model_display_name(self.models[key])} ({key}): {score}")
            if data.winner is None:
                print(f"{Colors.YELLOW}  It's a tie!{Colors.RESET}")
            else:
                print(f"{Colors.GREEN}  {model_display_name(self.models[data.winner])} wins!{Colors.RESET}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run a single Signal & Noise match")
    parser.add_argument("--model-one", default=DEFAULT_MODELS[0])
    parser.add_argument("--model-two", default=DEFAULT_MODELS[1])
    parser.add_argument("--rounds", type=int, default=None)
    parser.add_argument("--max-loops", type=int, default=None)
    parser.add_argument("--timeout", type=float, default=None, help="Seconds per model call")
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--word-list", default=None)
    parser.add_argument("--early-stop", action="store_true", help="Stop once the match is decided")
    parser.add_argument("--quiet", "-q", action="store_true", help="Hide model reasoning")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = GameConfig.from_env(
        total_rounds=args.rounds,
        max_loops=args.max_loops,
        timeout_seconds=args.timeout,
        temperature=args.temperature,
        seed=args.seed,
        word_list_path=args.word_list,
        early_stop=True if args.early_stop else None,
    )

    events = EventBus()
    models = {"model_one": args.model_one, "model_two": args.model_two}
    events.subscribe(TerminalPrinter(models, show_reasoning=not args.quiet))

    controller = MatchController(
        gateway=ModelGateway(
            timeout_seconds=config.timeout_seconds,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        ),
        word_source=WordList.from_file(config.word_list_path, seed=config.seed),
        config=config,
        events=events,
    )
    controller.start_match([args.model_one, args.model_two])

    try:
        await controller.run_match()
    except ConfigurationError as e:
        print(f"{Colors.RED}Configuration error: {e}{Colors.RESET}")
        return 2
    except ModelInvocationError as e:
        print(f"{Colors.RED}Match halted: {e}{Colors.RESET}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
