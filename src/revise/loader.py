"""Load set files into validated documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .models import Diagnostic, SetDocument
from .scanner import scan
from .validator import validate

logger = logging.getLogger(__name__)

SET_EXTENSION = ".set"
TITLE_JOINER = " + "


class SetLoadError(Exception):
    """A set file produced one or more diagnostics and was not loaded."""

    def __init__(self, path: Path | str, text: str, diagnostics: tuple[Diagnostic, ...]) -> None:
        count = len(diagnostics)
        super().__init__(f"{path}: {count} error{'s' if count != 1 else ''}")
        self.path = path
        self.text = text
        self.diagnostics = diagnostics


def read_set(path: Path) -> str:
    """Read a set file as UTF-8 text. Raises OSError or UnicodeDecodeError."""
    return path.read_text(encoding="utf-8")


def load_set_text(text: str, origin: Path | str = "<string>") -> SetDocument:
    """Validate set text and return its document, or raise SetLoadError."""
    result = validate(text, scan(text))
    if result.document is None:
        raise SetLoadError(origin, text, result.diagnostics)
    logger.debug("Loaded %d card(s) from %s.", len(result.document.cards), origin)
    return result.document


def load_set(path: Path) -> SetDocument:
    """Read and validate one set file."""
    return load_set_text(read_set(path), path)


def merge_documents(documents: Iterable[SetDocument]) -> SetDocument:
    """Merge sets in order, joining titles and keeping the first of equal cards."""
    titles: list[str] = []
    cards = {}
    for document in documents:
        titles.append(document.title)
        for card in document.cards:
            cards.setdefault(card.identity, card)
    return SetDocument(title=TITLE_JOINER.join(titles), cards=tuple(cards.values()))


def invert_document(document: SetDocument) -> SetDocument:
    """Swap terms and definitions on every card."""
    return SetDocument(title=document.title, cards=tuple(card.inverted() for card in document.cards))


def has_set_extension(path: Path) -> bool:
    return path.suffix == SET_EXTENSION
