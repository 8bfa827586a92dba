"""Character classification shared by the set file and guess parsers."""

from __future__ import annotations

import unicodedata

NEWLINE_CHARS = frozenset("\r\n")


def is_newline(char: str) -> bool:
    """Return whether a character ends (or starts ending) a line."""
    return char in NEWLINE_CHARS


def is_blank(char: str) -> bool:
    """Return whether a character is whitespace that does not break a line."""
    return char.isspace() and not is_newline(char)


def is_control(char: str) -> bool:
    """Return whether a character is a control character that is not a blank.

    Inside a line this is what a stray carriage return looks like, since only a
    `\\r\\n` pair is consumed as a line break.
    """
    return not is_blank(char) and unicodedata.category(char) == "Cc"


def line_column(text: str, offset: int) -> tuple[int, int]:
    """Convert a code-point offset into a 1-based (line, column) pair."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def line_bounds(text: str, offset: int) -> tuple[int, int]:
    """Return the [start, end) offsets of the line holding `offset`, without its newline."""
    offset = max(0, min(offset, len(text)))
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    if end == -1:
        end = len(text)
    if end > start and text[end - 1] == "\r" and end < len(text):
        end -= 1
    return start, end
