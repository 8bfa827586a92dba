"""Plain-text rendering of set file diagnostics."""

from __future__ import annotations

from pathlib import Path

from .lexical import line_bounds
from .models import Diagnostic, DiagnosticKind

HELP = {
    DiagnosticKind.EMPTY_TITLE: "the first non-comment line of a set is its title",
    DiagnosticKind.EMPTY_OPTION_LIST: "write cards as `terms - definitions`",
    DiagnosticKind.MISSING_SEPARATOR: "separate terms from definitions with ` - `",
    DiagnosticKind.INVALID_ESCAPE: 'only \\" and \\\\ can be escaped inside quotes',
    DiagnosticKind.DUPLICATE_CARD: "consider removing the repeated card",
    DiagnosticKind.EMPTY_SET: "add one or more `terms - definitions` lines after the title",
}


def render_diagnostic(diagnostic: Diagnostic, text: str, origin: Path | str) -> str:
    """Render one diagnostic with its source line and a caret marker."""
    start, end = line_bounds(text, diagnostic.span.start)
    source_line = text[start:end]
    column = diagnostic.span.start - start
    width = max(1, min(len(diagnostic.span), end - diagnostic.span.start))
    gutter = " " * len(str(diagnostic.line))

    lines = [
        f"error: {diagnostic.message}",
        f"{gutter}--> {origin}:{diagnostic.line}:{diagnostic.column}",
        f"{gutter} |",
        f"{diagnostic.line} | {source_line}",
        f"{gutter} | {' ' * column}{'^' * width}",
    ]
    help_text = HELP.get(diagnostic.kind)
    if help_text is not None:
        lines.append(f"{gutter} = help: {help_text}")
    return "\n".join(lines)


def render_diagnostics(diagnostics: tuple[Diagnostic, ...], text: str, origin: Path | str) -> str:
    """Render every diagnostic, separated by blank lines."""
    return "\n\n".join(render_diagnostic(diagnostic, text, origin) for diagnostic in diagnostics)
