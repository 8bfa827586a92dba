"""CLI entrypoint for learning and checking set files."""

from __future__ import annotations

import argparse
import logging
import os
import random
import sys
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .loader import SetLoadError, has_set_extension, invert_document, load_set_text, merge_documents, read_set
from .models import SetDocument
from .progress import PersistenceError, ProgressStore
from .report import render_diagnostics
from .session import PromptMode, Session

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]

DB_ENV_VAR = "REVISE_DB"
DEFAULT_DB_PATH = Path(".revise") / "knowledge.db"


def _print_err(message: str) -> None:
    print(message, file=sys.stderr)


def _db_path(explicit: str | None) -> Path:
    """Resolve the knowledge database path from the option, environment or default."""
    if explicit:
        return Path(explicit)
    from_env = os.environ.get(DB_ENV_VAR, "").strip()
    if from_env:
        return Path(from_env)
    return DEFAULT_DB_PATH


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for `revise`."""
    parser = argparse.ArgumentParser(prog="revise", description="Learn flashcard sets from plain-text files")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    commands = parser.add_subparsers(dest="command", required=True)

    learn = commands.add_parser("learn", help="learn all the cards in one or more sets")
    learn.add_argument("sets", nargs="+", type=Path, help="the sets to learn")
    learn.add_argument("-i", "--invert", action="store_true", help="ask for terms instead of definitions")
    learn.add_argument("-e", "--examples", action="store_true", help="show generated examples instead of patterns")
    learn.add_argument("--db", help=f"knowledge database path (default: ${DB_ENV_VAR} or {DEFAULT_DB_PATH})")
    learn.add_argument("--seed", type=int, help="seed for card selection and examples")

    check = commands.add_parser("check", help="check one or more sets without learning anything")
    check.add_argument("sets", nargs="+", type=Path, help="the sets to check")
    return parser


def run(
    argv: list[str] | None = None,
    input_fn: InputFn = input,
    print_fn: PrintFn = print,
    err_fn: PrintFn = _print_err,
) -> int:
    """Run the CLI application."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    documents = _load_documents(args.sets, err_fn)
    if documents is None:
        err_fn("error: aborting due to previous error")
        return 1

    if args.command == "check":
        for path, document in zip(args.sets, documents):
            print_fn(f"{path}: ok ({len(document.cards)} cards)")
        return 0

    document = merge_documents(documents)
    if args.invert:
        document = invert_document(document)
    mode = PromptMode.EXAMPLES if args.examples else PromptMode.DEFINITIONS
    return _learn(document, _db_path(args.db), mode, random.Random(args.seed), input_fn, print_fn, err_fn)


def _load_documents(paths: list[Path], err_fn: PrintFn) -> list[SetDocument] | None:
    """Load every set, reporting all failures before giving up."""
    documents: list[SetDocument] = []
    failed = False
    for path in paths:
        if not has_set_extension(path):
            err_fn(
                f"warning: {path} is recommended to have a file extension of `.set`: `{path.with_suffix('.set')}`"
            )
        try:
            text = read_set(path)
        except (OSError, UnicodeDecodeError) as exc:
            err_fn(f"error: couldn't read {path}: {exc}")
            failed = True
            continue
        try:
            documents.append(load_set_text(text, path))
        except SetLoadError as exc:
            err_fn(render_diagnostics(exc.diagnostics, exc.text, exc.path))
            failed = True
    return None if failed else documents


def _learn(
    document: SetDocument,
    db_path: Path,
    mode: PromptMode,
    rng: random.Random,
    input_fn: InputFn,
    print_fn: PrintFn,
    err_fn: PrintFn,
) -> int:
    try:
        store = ProgressStore(db_path)
    except PersistenceError as exc:
        err_fn(f"error: {exc}")
        return 1
    try:
        session = Session(
            document.cards,
            store,
            title=document.title,
            mode=mode,
            input_fn=input_fn,
            print_fn=print_fn,
            rng=rng,
        )
        session.run()
    except PersistenceError as exc:
        err_fn(f"error: {exc}")
        return 1
    finally:
        store.close()
    return 0


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
