from __future__ import annotations

import random
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from revise.models import CardIdentity, KnowledgeRecord  # noqa: E402

EXAMPLE_SET = "Example Set\n\nmi - me, my, myself\nmoku - food, to eat\n"


class DictStore:
    """Knowledge store backed by a dict, recording every write."""

    def __init__(self, records: dict[CardIdentity, KnowledgeRecord] | None = None) -> None:
        self.records = dict(records or {})
        self.writes: list[KnowledgeRecord] = []

    def get(self, identity: CardIdentity) -> KnowledgeRecord | None:
        return self.records.get(identity)

    def put(self, record: KnowledgeRecord) -> None:
        self.records[record.identity] = record
        self.writes.append(record)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def write_set(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(text: str, name: str = "words.set") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
