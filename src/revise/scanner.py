"""Permissive structural scan of set files.

The scanner never rejects input. It cuts the text into one region per line and
classifies each as blank/comment, title or provisional card, recording where a
card's separator and comment would be. The strict validator re-reads every
region and reports where it disagrees.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .lexical import is_blank
from .models import Span
from .options import COMMA, COMMENT, ESCAPE, HYPHEN, QUOTE


class RegionKind(Enum):
    """Tentative classification of one line."""

    BLANK = "blank"
    TITLE = "title"
    CARD = "card"


@dataclass(frozen=True)
class Region:
    """One line of the set file, newline excluded."""

    kind: RegionKind
    span: Span
    line: int
    separator: Span | None = None
    comment: Span | None = None


@dataclass(frozen=True)
class Skeleton:
    """Structural outline of a set file."""

    text: str
    regions: tuple[Region, ...]

    @property
    def title(self) -> Region | None:
        for region in self.regions:
            if region.kind is RegionKind.TITLE:
                return region
        return None

    @property
    def cards(self) -> tuple[Region, ...]:
        return tuple(region for region in self.regions if region.kind is RegionKind.CARD)


def scan(text: str) -> Skeleton:
    """Segment text into title, card and blank regions. Total over all strings."""
    regions: list[Region] = []
    seen_title = False
    start = 0
    line = 1
    while True:
        newline = text.find("\n", start)
        end = len(text) if newline == -1 else newline
        if newline != -1 and end > start and text[end - 1] == "\r":
            end -= 1

        region = _classify(text, start, end, line, seen_title)
        seen_title = seen_title or region.kind is RegionKind.TITLE
        regions.append(region)

        if newline == -1:
            break
        start = newline + 1
        line += 1
    return Skeleton(text=text, regions=tuple(regions))


def _classify(text: str, start: int, end: int, line: int, seen_title: bool) -> Region:
    span = Span(start, end)
    first = start
    while first < end and is_blank(text[first]):
        first += 1

    if first == end or text[first] == COMMENT:
        comment = Span(first, end) if first < end else None
        return Region(RegionKind.BLANK, span, line, comment=comment)

    if not seen_title:
        hash_at = text.find(COMMENT, first, end)
        comment = Span(hash_at, end) if hash_at != -1 else None
        return Region(RegionKind.TITLE, span, line, comment=comment)

    separator, comment = _split_card(text, first, end)
    return Region(RegionKind.CARD, span, line, separator=separator, comment=comment)


def _split_card(text: str, start: int, end: int) -> tuple[Span | None, Span | None]:
    """Find the card separator and comment start, skipping quoted sections.

    The separator is the first unquoted `-` with blanks on both sides, falling
    back to the first one with a blank on either side.
    """
    both_sides: int | None = None
    one_side: int | None = None
    in_quote = False
    previous = ""
    index = start
    while index < end:
        char = text[index]
        if in_quote:
            if char == ESCAPE:
                index += 2
                continue
            if char == QUOTE:
                in_quote = False
        elif char == QUOTE and (previous == "" or previous == COMMA or is_blank(previous)):
            in_quote = True
        elif char == COMMENT:
            break
        elif char == HYPHEN:
            following = text[index + 1] if index + 1 < end else ""
            blank_before = previous != "" and is_blank(previous)
            blank_after = following != "" and is_blank(following)
            if blank_before and blank_after and both_sides is None:
                both_sides = index
            if (blank_before or blank_after) and one_side is None:
                one_side = index
        previous = char
        index += 1

    chosen = both_sides if both_sides is not None else one_side
    separator = Span(chosen, chosen + 1) if chosen is not None else None
    comment = Span(index, end) if index < end else None
    return separator, comment
