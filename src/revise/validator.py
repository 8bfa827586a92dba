"""Strict per-region validation of a scanned set file."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .lexical import is_blank, is_control, line_column
from .models import Card, Diagnostic, DiagnosticKind, SetDocument, Span
from .options import COMMENT, HYPHEN, Cursor, Divergence, OptionMode, ParsedOption, is_atom, parse_options
from .patterns import InvalidPatternError, Variant, compile_variant
from .scanner import Region, RegionKind, Skeleton, scan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Diagnostics for a set file, plus its document when there are none."""

    diagnostics: tuple[Diagnostic, ...]
    document: SetDocument | None

    @property
    def ok(self) -> bool:
        return not self.diagnostics


@dataclass(frozen=True)
class _CardFields:
    terms: list[ParsedOption]
    definitions: list[ParsedOption]


def validate(text: str, skeleton: Skeleton | None = None) -> ValidationResult:
    """Check every region against the grammar and build the set document.

    At most one diagnostic is reported per region, at the first place where the
    strict grammar and the scanned structure disagree.
    """
    if skeleton is None:
        skeleton = scan(text)

    diagnostics: list[Diagnostic] = []
    cards: list[Card] = []
    seen: dict[str, Region] = {}
    title: str | None = None

    def report(divergence: Divergence) -> None:
        diagnostics.append(_diagnostic(text, divergence))

    for region in skeleton.regions:
        try:
            if region.kind is RegionKind.BLANK:
                _check_blank(text, region)
            elif region.kind is RegionKind.TITLE:
                title = _check_title(text, region)
            else:
                card = _check_card(text, region)
                original = seen.get(card.identity)
                if original is not None:
                    raise Divergence(
                        DiagnosticKind.DUPLICATE_CARD,
                        region.span.start,
                        f"duplicate card, already defined on line {original.line}",
                        end=region.span.end,
                    )
                seen[card.identity] = region
                cards.append(card)
        except Divergence as divergence:
            report(divergence)

    if skeleton.title is None:
        report(Divergence(DiagnosticKind.EMPTY_TITLE, len(text), "expected a title line before any cards", end=len(text)))
    elif not skeleton.cards:
        report(Divergence(DiagnosticKind.EMPTY_SET, len(text), "set has no cards", end=len(text)))

    diagnostics.sort(key=lambda diagnostic: diagnostic.span.start)
    if diagnostics or title is None:
        logger.debug("Set rejected with %d diagnostic(s).", len(diagnostics))
        return ValidationResult(diagnostics=tuple(diagnostics), document=None)
    return ValidationResult(diagnostics=(), document=SetDocument(title=title, cards=tuple(cards)))


def _diagnostic(text: str, divergence: Divergence) -> Diagnostic:
    start = min(divergence.offset, len(text))
    end = max(start, min(divergence.end, len(text)))
    line, column = line_column(text, start)
    return Diagnostic(
        kind=divergence.kind,
        span=Span(start, end),
        line=line,
        column=column,
        message=divergence.message,
    )


def _skip_blanks(cursor: Cursor) -> int:
    return len(cursor.take_while(is_blank))


def _check_comment(cursor: Cursor) -> None:
    """Consume a `#` comment to the end of the region, rejecting control characters."""
    cursor.advance()
    while not cursor.at_end:
        char = cursor.peek()
        if is_control(char):
            raise Divergence(
                DiagnosticKind.MALFORMED_COMMENT,
                cursor.pos,
                f"comment contains control character {char!r}",
            )
        cursor.advance()


def _check_end(cursor: Cursor) -> None:
    """Require an optional comment and then the end of the region."""
    _skip_blanks(cursor)
    if cursor.at_end:
        return
    char = cursor.peek()
    if char == COMMENT:
        _check_comment(cursor)
        return
    if is_control(char):
        raise Divergence(DiagnosticKind.CONTROL_CHARACTER, cursor.pos, f"unexpected control character {char!r}")
    raise Divergence(
        DiagnosticKind.TRAILING_CONTENT,
        cursor.pos,
        "unexpected content at end of line",
        end=cursor.end,
    )


def _check_blank(text: str, region: Region) -> None:
    cursor = Cursor(text, region.span.start, region.span.end)
    _check_end(cursor)


def _check_title(text: str, region: Region) -> str:
    cursor = Cursor(text, region.span.start, region.span.end)
    _skip_blanks(cursor)
    start = cursor.pos
    while not cursor.at_end and cursor.peek() != COMMENT:
        char = cursor.peek()
        if is_control(char):
            raise Divergence(DiagnosticKind.CONTROL_CHARACTER, cursor.pos, f"unexpected control character {char!r}")
        cursor.advance()
    title = text[start : cursor.pos].strip()
    _check_end(cursor)
    return title


def _check_card(text: str, region: Region) -> Card:
    fields = _parse_card_fields(text, region)
    return Card(
        terms=_compile(fields.terms),
        definitions=_compile(fields.definitions),
        span=region.span,
    )


def _parse_card_fields(text: str, region: Region) -> _CardFields:
    cursor = Cursor(text, region.span.start, region.span.end)
    _skip_blanks(cursor)

    terms = parse_options(cursor, OptionMode.FIELD)
    if not _non_empty(terms):
        _missing_options(cursor, region, "term")

    _check_separator(cursor, region, terms[-1])

    definitions = parse_options(cursor, OptionMode.FIELD)
    if not _non_empty(definitions):
        _missing_options(cursor, region, "definition")

    _skip_blanks(cursor)
    char = cursor.peek()
    if char and char != COMMENT and not is_control(char):
        if definitions[-1].quoted and cursor.pos == definitions[-1].span.end:
            raise Divergence(
                DiagnosticKind.TRAILING_CONTENT,
                cursor.pos,
                "unexpected characters after closing quote",
                end=cursor.end,
            )
        if char == HYPHEN:
            raise Divergence(
                DiagnosticKind.TRAILING_CONTENT,
                cursor.pos,
                "unexpected third section, a card has one ' - ' separator",
                end=cursor.end,
            )
    _check_end(cursor)
    return _CardFields(terms=_non_empty(terms), definitions=_non_empty(definitions))


def _non_empty(options: list[ParsedOption]) -> list[ParsedOption]:
    return [option for option in options if option.text]


def _missing_options(cursor: Cursor, region: Region, side: str) -> None:
    char = cursor.peek()
    if char and is_control(char):
        raise Divergence(DiagnosticKind.CONTROL_CHARACTER, cursor.pos, f"unexpected control character {char!r}")
    raise Divergence(
        DiagnosticKind.EMPTY_OPTION_LIST,
        region.span.start,
        f"expected at least one {side}",
        end=region.span.end,
    )


def _check_separator(cursor: Cursor, region: Region, last_term: ParsedOption) -> None:
    """Consume `{WS}+ '-' {WS}+` or raise at the first mismatch."""
    blanks_before = _skip_blanks(cursor)
    char = cursor.peek()

    if char == HYPHEN:
        if blanks_before == 0:
            raise Divergence(DiagnosticKind.MISSING_SEPARATOR, cursor.pos, "expected a space before the '-' separator")
        cursor.advance()
        if _skip_blanks(cursor) == 0:
            if cursor.at_end or cursor.peek() == COMMENT:
                raise Divergence(
                    DiagnosticKind.EMPTY_OPTION_LIST,
                    region.span.start,
                    "expected at least one definition",
                    end=region.span.end,
                )
            raise Divergence(DiagnosticKind.MISSING_SEPARATOR, cursor.pos, "expected a space after the '-' separator")
        return

    if char and is_control(char):
        raise Divergence(DiagnosticKind.CONTROL_CHARACTER, cursor.pos, f"unexpected control character {char!r}")
    if last_term.quoted and blanks_before == 0 and is_atom(char, OptionMode.FIELD):
        raise Divergence(
            DiagnosticKind.TRAILING_CONTENT,
            cursor.pos,
            "unexpected characters after closing quote",
            end=region.span.end,
        )
    if region.separator is not None and region.separator.start > cursor.pos:
        raise Divergence(
            DiagnosticKind.TRAILING_CONTENT,
            cursor.pos,
            "unexpected content before the ' - ' separator",
            end=region.separator.start,
        )
    raise Divergence(DiagnosticKind.MISSING_SEPARATOR, cursor.pos, "expected ' - ' separator after the term list")


def _compile(options: list[ParsedOption]) -> tuple[Variant, ...]:
    variants = []
    for option in options:
        try:
            variants.append(compile_variant(option.text))
        except InvalidPatternError as exc:
            raise Divergence(
                DiagnosticKind.INVALID_PATTERN,
                option.span.start,
                f"invalid pattern {option.text!r}: {exc.reason}",
                end=option.span.end,
            ) from exc
    return tuple(variants)
