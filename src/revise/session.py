"""Interactive learning loop over a set's cards."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from .models import Card
from .options import parse_guess
from .patterns import Variant
from .scheduler import KnowledgeStore, Scheduler

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
OVERRIDE_COMMANDS = {"c"}


class PromptMode(Enum):
    """How the prompt side of a card is shown."""

    DEFINITIONS = "definitions"
    EXAMPLES = "examples"


class SessionCancelled(Exception):
    """The learner left the session at a prompt."""


@dataclass(frozen=True)
class SessionSummary:
    """Outcome of one learning session."""

    asked: int
    correct: int
    completed: bool
    cancelled: bool


def is_correct(card: Card, answer: str) -> bool:
    """Return whether every expected variant accepts at least one typed option."""
    options = parse_guess(answer)
    return all(any(variant.accepts(option) for option in options) for variant in card.definitions)


def format_variants(variants: Sequence[Variant]) -> str:
    return ", ".join(variant.pattern for variant in variants)


class Session:
    """Ask cards until all are mastered or the learner quits."""

    def __init__(
        self,
        cards: Sequence[Card],
        store: KnowledgeStore,
        *,
        title: str,
        mode: PromptMode = PromptMode.DEFINITIONS,
        input_fn: InputFn = input,
        print_fn: PrintFn = print,
        rng: random.Random | None = None,
    ) -> None:
        self.title = title
        self.mode = mode
        self._input = input_fn
        self._print = print_fn
        self._rng = rng if rng is not None else random.Random()
        self._store = store
        self._cards = {card.identity: card for card in cards}

    def run(self) -> SessionSummary:
        """Drive the question loop; state is written through after every answer."""
        scheduler = Scheduler(self._cards, self._store, self._rng)
        logger.info("Starting session %r with %d card(s).", self.title, len(scheduler))
        asked = 0
        correct = 0
        cancelled = False
        try:
            while not scheduler.finished:
                identity = scheduler.select()
                self._print_header(scheduler)
                outcome = self._ask(self._cards[identity])
                asked += 1
                correct += int(outcome)
                scheduler.record(identity, outcome)
        except SessionCancelled:
            cancelled = True

        completed = scheduler.finished
        if completed:
            self._print(f"\nAll {len(scheduler)} card(s) learnt.")
        self._print(f"Session {'ended early' if cancelled else 'complete'}: {correct}/{asked} correct")
        logger.info("Session %r finished: asked=%d correct=%d cancelled=%s.", self.title, asked, correct, cancelled)
        return SessionSummary(asked=asked, correct=correct, completed=completed, cancelled=cancelled)

    def _print_header(self, scheduler: Scheduler) -> None:
        distribution = " ".join(str(count) for count in scheduler.level_distribution())
        self._print(f"\n=== {self.title} ===")
        self._print(f"Levels 0-3: {distribution}")

    def _prompt_text(self, card: Card) -> str:
        variant = self._rng.choice(card.terms)
        if self.mode is PromptMode.EXAMPLES:
            return variant.generate(self._rng)
        return variant.pattern

    def _ask(self, card: Card) -> bool:
        """Ask one card; a miss can be overridden, otherwise it must be typed out."""
        self._print(f"\n{self._prompt_text(card)}\n")
        if is_correct(card, self._read("Answer: ")):
            self._print("Correct.")
            return True

        self._print("Incorrect.")
        self._print(f"Answer: {format_variants(card.definitions)}")
        choice = self._read("Override (c)orrect or press Enter to continue: ").strip().lower()
        if choice in OVERRIDE_COMMANDS:
            return True
        while not is_correct(card, self._read("Type it out: ")):
            pass
        return False

    def _read(self, prompt: str) -> str:
        try:
            line = self._input(prompt)
        except (EOFError, KeyboardInterrupt) as exc:
            raise SessionCancelled() from exc
        if line.strip().lower() in FLOW_EXIT_COMMANDS:
            raise SessionCancelled()
        return line
