"""Knowledge levels and card selection for a learning session."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from .models import MAX_LEVEL, CardIdentity, KnowledgeRecord

logger = logging.getLogger(__name__)

FAILURES_BEFORE_DEMOTION = 2


class KnowledgeStore(Protocol):
    """Persistence seam for knowledge records."""

    def get(self, identity: CardIdentity) -> KnowledgeRecord | None: ...

    def put(self, record: KnowledgeRecord) -> None: ...


def after_correct(record: KnowledgeRecord) -> KnowledgeRecord:
    """Promote one level and clear the failure count."""
    return replace(record, level=min(record.level + 1, MAX_LEVEL), consecutive_failures=0)


def after_incorrect(record: KnowledgeRecord) -> KnowledgeRecord:
    """Count a failure, demoting one level on every second consecutive failure."""
    failures = record.consecutive_failures + 1
    if failures < FAILURES_BEFORE_DEMOTION:
        return replace(record, consecutive_failures=failures)
    return replace(record, level=max(record.level - 1, 0), consecutive_failures=0)


class Scheduler:
    """Pick the next card and apply answer outcomes, writing each change through."""

    def __init__(
        self,
        identities: Iterable[CardIdentity],
        store: KnowledgeStore,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._rng = rng if rng is not None else random.Random()
        self._records: dict[CardIdentity, KnowledgeRecord] = {}
        self._previous: CardIdentity | None = None
        for identity in identities:
            if identity not in self._records:
                self._records[identity] = self._open(identity)

    def _open(self, identity: CardIdentity) -> KnowledgeRecord:
        """Load a record, capping mastered cards so each is asked at least once more."""
        record = self._store.get(identity)
        if record is None:
            return KnowledgeRecord(identity=identity)
        if record.mastered:
            record = replace(record, level=MAX_LEVEL - 1)
            self._store.put(record)
        return record

    @property
    def finished(self) -> bool:
        return all(record.mastered for record in self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def knowledge(self, identity: CardIdentity) -> KnowledgeRecord:
        return self._records[identity]

    def level_distribution(self) -> tuple[int, ...]:
        """Return the number of cards at each level, lowest first."""
        counts = [0] * (MAX_LEVEL + 1)
        for record in self._records.values():
            counts[record.level] += 1
        return tuple(counts)

    def select(self) -> CardIdentity:
        """Choose uniformly among unmastered cards, avoiding an immediate repeat."""
        candidates = [identity for identity, record in self._records.items() if not record.mastered]
        if not candidates:
            raise RuntimeError("No cards left to select; the session is finished.")
        if len(candidates) > 1 and self._previous in candidates:
            candidates.remove(self._previous)
        chosen = self._rng.choice(candidates)
        self._previous = chosen
        return chosen

    def record(self, identity: CardIdentity, correct: bool) -> KnowledgeRecord:
        """Apply an answer outcome and persist the new record."""
        before = self._records[identity]
        after = after_correct(before) if correct else after_incorrect(before)
        self._store.put(after)
        self._records[identity] = after
        logger.debug(
            "Card %s: level %d -> %d (%s).",
            identity[:12],
            before.level,
            after.level,
            "correct" if correct else "incorrect",
        )
        return after
