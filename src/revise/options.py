"""Comma-separated option lists, shared by card fields and typed guesses.

Both modes read the same shape, `option (',' option)*`, where an option is a
double-quoted string (with `\\"` and `\\\\` escapes) or a run of bare atoms
joined by separator runs that are kept in the option text. They differ in what
a bare atom may contain and in how they treat malformed input:

- field mode (card lines) stops atoms at `,`, `-`, blanks, `#` and control
  characters, and raises `Divergence` at the first grammar violation;
- guess mode (typed answers) stops atoms only at `,` and whitespace and always
  returns some list of options.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .lexical import is_blank, is_control
from .models import DiagnosticKind, Span

QUOTE = '"'
ESCAPE = "\\"
COMMA = ","
HYPHEN = "-"
COMMENT = "#"


class OptionMode(Enum):
    """Which character exclusions apply to bare option atoms."""

    FIELD = "field"
    GUESS = "guess"


class Divergence(Exception):
    """The strict grammar stopped matching at `offset`."""

    def __init__(self, kind: DiagnosticKind, offset: int, message: str, end: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.offset = offset
        self.end = offset + 1 if end is None else end
        self.message = message


@dataclass(frozen=True)
class ParsedOption:
    """One option with its unescaped text and source span."""

    text: str
    span: Span
    quoted: bool


class Cursor:
    """Read position over `text[start:end]`."""

    def __init__(self, text: str, start: int = 0, end: int | None = None) -> None:
        self.text = text
        self.pos = start
        self.end = len(text) if end is None else end

    @property
    def at_end(self) -> bool:
        return self.pos >= self.end

    def peek(self, ahead: int = 0) -> str:
        """Return the character `ahead` places on, or '' past the end."""
        index = self.pos + ahead
        if index >= self.end:
            return ""
        return self.text[index]

    def advance(self) -> str:
        char = self.peek()
        if char:
            self.pos += 1
        return char

    def take_while(self, predicate) -> str:
        """Consume and return the longest run of characters matching `predicate`."""
        start = self.pos
        while not self.at_end and predicate(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos]


def is_separator_blank(char: str, mode: OptionMode) -> bool:
    """Return whether a character separates atoms inside one option."""
    if mode is OptionMode.GUESS:
        return char.isspace()
    return is_blank(char)


def is_atom(char: str, mode: OptionMode) -> bool:
    """Return whether a character may appear in a bare option atom."""
    if not char or char == COMMA or char.isspace():
        return False
    if mode is OptionMode.GUESS:
        return True
    return char not in (HYPHEN, COMMENT) and not is_control(char)


def parse_option(cursor: Cursor, mode: OptionMode) -> ParsedOption | None:
    """Parse one quoted or bare option, or return None without consuming anything."""
    start = cursor.pos
    if cursor.peek() == QUOTE:
        text = _parse_quoted(cursor, mode)
        if mode is OptionMode.GUESS:
            text += _parse_atom_chain(cursor, mode, glued=True)
        return ParsedOption(text=text, span=Span(start, cursor.pos), quoted=True)
    if is_atom(cursor.peek(), mode):
        text = _parse_atom_chain(cursor, mode, glued=False)
        return ParsedOption(text=text, span=Span(start, cursor.pos), quoted=False)
    return None


def parse_options(cursor: Cursor, mode: OptionMode) -> list[ParsedOption]:
    """Parse `option {{WS} ',' [{WS} option]}`; an empty list means no leading option."""
    first = parse_option(cursor, mode)
    if first is None:
        return []
    options = [first]
    while True:
        before_comma = cursor.pos
        cursor.take_while(lambda char: is_separator_blank(char, mode))
        if cursor.peek() != COMMA:
            cursor.pos = before_comma
            break
        cursor.advance()
        after_comma = cursor.pos
        cursor.take_while(lambda char: is_separator_blank(char, mode))
        option = parse_option(cursor, mode)
        if option is None:
            cursor.pos = after_comma
            continue
        options.append(option)
    return options


def parse_guess(text: str) -> tuple[str, ...]:
    """Parse a typed answer into distinct non-empty options, in input order.

    Never fails: an unterminated quote takes the rest of the input and a
    trailing backslash is kept literally.
    """
    cursor = Cursor(text)
    found: list[str] = []
    while True:
        cursor.take_while(str.isspace)
        option = parse_option(cursor, OptionMode.GUESS)
        if option is not None and option.text and option.text not in found:
            found.append(option.text)
        cursor.take_while(str.isspace)
        if cursor.peek() != COMMA:
            break
        cursor.advance()
    return tuple(found)


def _parse_atom_chain(cursor: Cursor, mode: OptionMode, *, glued: bool) -> str:
    """Read `atom {[{'-'}+|{WS}+] atom}`, keeping separators that lead to another atom.

    With `glued`, the chain may be empty and continues text that ended at a
    closing quote.
    """
    parts: list[str] = []
    if not glued:
        parts.append(cursor.take_while(lambda char: is_atom(char, mode)))
    while True:
        before = cursor.pos
        if mode is OptionMode.FIELD and cursor.peek() == HYPHEN:
            separator = cursor.take_while(lambda char: char == HYPHEN)
        else:
            separator = cursor.take_while(lambda char: is_separator_blank(char, mode))
        if not is_atom(cursor.peek(), mode):
            cursor.pos = before
            break
        parts.append(separator)
        parts.append(cursor.take_while(lambda char: is_atom(char, mode)))
    return "".join(parts)


def _parse_quoted(cursor: Cursor, mode: OptionMode) -> str:
    """Read a double-quoted string starting at the cursor."""
    start = cursor.pos
    cursor.advance()
    value: list[str] = []
    while True:
        char = cursor.peek()
        if not char:
            if mode is OptionMode.FIELD:
                raise Divergence(
                    DiagnosticKind.UNTERMINATED_QUOTE,
                    start,
                    "unterminated quoted option, expected a closing '\"'",
                    end=cursor.pos,
                )
            return "".join(value)
        if char == QUOTE:
            cursor.advance()
            return "".join(value)
        if char == ESCAPE:
            escaped = cursor.peek(1)
            if escaped in (QUOTE, ESCAPE):
                value.append(escaped)
                cursor.pos += 2
                continue
            if mode is OptionMode.GUESS:
                value.append(escaped or ESCAPE)
                cursor.pos += 2 if escaped else 1
                continue
            if not escaped:
                raise Divergence(
                    DiagnosticKind.UNTERMINATED_QUOTE,
                    start,
                    "unterminated quoted option, expected a closing '\"'",
                    end=cursor.pos + 1,
                )
            raise Divergence(
                DiagnosticKind.INVALID_ESCAPE,
                cursor.pos,
                f"unknown escape '\\{escaped}', only '\\\"' and '\\\\' are allowed",
                end=cursor.pos + 2,
            )
        if mode is OptionMode.FIELD and is_control(char):
            raise Divergence(DiagnosticKind.CONTROL_CHARACTER, cursor.pos, f"unexpected control character {char!r}")
        value.append(char)
        cursor.advance()
