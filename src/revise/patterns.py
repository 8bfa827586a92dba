"""Unanchored regular-expression matching and example generation for card variants."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field

import rstr

UNSUPPORTED_ANCHOR_ESCAPES = frozenset("AZbBz")


class InvalidPatternError(ValueError):
    """A term or definition could not be compiled as a pattern."""

    def __init__(self, pattern: str, reason: str, position: int | None = None) -> None:
        super().__init__(f"invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason
        self.position = position


@dataclass(frozen=True)
class Variant:
    """One regular-expression alternative for a term or definition."""

    pattern: str
    regex: re.Pattern[str] = field(compare=False, repr=False)

    def accepts(self, candidate: str) -> bool:
        """Return whether the pattern occurs anywhere inside the candidate."""
        return self.regex.search(candidate) is not None

    def generate(self, rng: random.Random | None = None) -> str:
        """Return one string drawn from the pattern's language."""
        return generate(self, rng)

    def __str__(self) -> str:
        return self.pattern


def compile_variant(pattern: str) -> Variant:
    """Compile option text into a variant.

    `^` and `$` outside character classes match themselves; zero-width anchor
    escapes such as `\\A` or `\\b` are rejected.
    """
    literal_anchors = _escape_anchors(pattern)
    try:
        regex = re.compile(literal_anchors)
    except re.error as exc:
        raise InvalidPatternError(pattern, exc.msg, exc.pos) from exc
    return Variant(pattern=pattern, regex=regex)


def generate(variant: Variant, rng: random.Random | None = None) -> str:
    """Produce an example string matched by a variant."""
    generator = rstr.Rstr(rng if rng is not None else random.Random())
    return generator.xeger(variant.regex)


def _escape_anchors(pattern: str) -> str:
    """Rewrite `^`/`$` as literals and reject zero-width anchor escapes."""
    out: list[str] = []
    index = 0
    in_class = False
    class_start = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            escaped = pattern[index + 1 : index + 2]
            if not in_class and escaped in UNSUPPORTED_ANCHOR_ESCAPES and escaped:
                raise InvalidPatternError(pattern, f"anchor \\{escaped} is not supported", index)
            out.append(pattern[index : index + 2])
            index += 2
            continue
        if in_class:
            # A `]` directly after `[` or `[^` is a member, not the end of the class.
            if char == "]" and index > class_start:
                in_class = False
            out.append(char)
        elif char == "[":
            in_class = True
            class_start = index + 1
            if pattern[class_start : class_start + 1] == "^":
                class_start += 1
                out.append("[^")
                index += 2
                continue
            out.append(char)
        elif char in "^$":
            out.append("\\" + char)
        else:
            out.append(char)
        index += 1
    return "".join(out)
