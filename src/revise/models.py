"""Core domain models for set documents, diagnostics and knowledge."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, replace
from enum import Enum

from .patterns import Variant

CardIdentity = str

MAX_LEVEL = 3


@dataclass(frozen=True)
class Span:
    """Half-open range of code-point offsets into a set file's text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span {self.start}..{self.end}.")

    def __len__(self) -> int:
        return self.end - self.start


class DiagnosticKind(Enum):
    """Category of a set file grammar violation."""

    EMPTY_TITLE = "empty-title"
    EMPTY_OPTION_LIST = "empty-option-list"
    UNTERMINATED_QUOTE = "unterminated-quote"
    MISSING_SEPARATOR = "missing-separator"
    TRAILING_CONTENT = "trailing-content"
    MALFORMED_COMMENT = "malformed-comment"
    INVALID_PATTERN = "invalid-pattern"
    INVALID_ESCAPE = "invalid-escape"
    CONTROL_CHARACTER = "control-character"
    DUPLICATE_CARD = "duplicate-card"
    EMPTY_SET = "empty-set"


@dataclass(frozen=True)
class Diagnostic:
    """One positioned description of where a set file stops being well formed."""

    kind: DiagnosticKind
    span: Span
    line: int
    column: int
    message: str

    @property
    def offset(self) -> int:
        return self.span.start

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message} [{self.kind.value}]"


@dataclass(frozen=True)
class Card:
    """A row pairing term variants with definition variants."""

    terms: tuple[Variant, ...]
    definitions: tuple[Variant, ...]
    span: Span = field(default=Span(0, 0), compare=False)

    def __post_init__(self) -> None:
        if not self.terms or not self.definitions:
            raise ValueError("A card needs at least one term and one definition.")

    @property
    def identity(self) -> CardIdentity:
        """Stable key derived from the card's content."""
        return card_identity(
            [variant.pattern for variant in self.terms],
            [variant.pattern for variant in self.definitions],
        )

    def inverted(self) -> Card:
        """Return the card with terms and definitions swapped."""
        return replace(self, terms=self.definitions, definitions=self.terms)


@dataclass(frozen=True)
class SetDocument:
    """Validated, immutable form of one set file."""

    title: str
    cards: tuple[Card, ...]


@dataclass(frozen=True)
class KnowledgeRecord:
    """How well one card is known."""

    identity: CardIdentity
    level: int = 0
    consecutive_failures: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.level <= MAX_LEVEL:
            raise ValueError(f"Knowledge level {self.level} outside 0..{MAX_LEVEL}.")
        if self.consecutive_failures < 0:
            raise ValueError("Consecutive failures cannot be negative.")

    @property
    def mastered(self) -> bool:
        return self.level == MAX_LEVEL


def card_identity(prompts: list[str], answers: list[str]) -> CardIdentity:
    """Hash the de-duplicated, sorted option texts of both card sides."""
    payload = json.dumps([sorted(set(prompts)), sorted(set(answers))], ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
