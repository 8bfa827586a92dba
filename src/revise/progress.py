"""SQLite persistence for per-card knowledge levels."""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

from .models import MAX_LEVEL, CardIdentity, KnowledgeRecord

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class PersistenceError(Exception):
    """The knowledge database could not be opened, read or written."""


class ProgressStore:
    """Database access layer for card knowledge."""

    def __init__(self, db_path: Path | str) -> None:
        """Open the database and bring its schema up to date."""
        target = str(db_path)
        try:
            if isinstance(db_path, Path):
                db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(target)
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"couldn't open knowledge database {target}: {exc}") from exc
        try:
            self._conn.row_factory = sqlite3.Row
            self._apply_migrations()
        except PersistenceError:
            self._conn.close()
            raise
        except sqlite3.Error as exc:
            self._conn.close()
            raise PersistenceError(f"couldn't open knowledge database {target}: {exc}") from exc
        logger.debug("Opened knowledge database %s.", target)

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise PersistenceError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create the knowledge table."""
        with self._conn:
            self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS knowledge (
                    card TEXT NOT NULL PRIMARY KEY,
                    level INTEGER NOT NULL CHECK (level >= 0 AND level <= {MAX_LEVEL}),
                    consecutive_failures INTEGER NOT NULL CHECK (consecutive_failures >= 0),
                    updated_at TEXT NOT NULL
                ) WITHOUT ROWID
                """)

    def get(self, identity: CardIdentity) -> KnowledgeRecord | None:
        """Return the stored record for a card, if any."""
        try:
            row = self._conn.execute(
                "SELECT card, level, consecutive_failures FROM knowledge WHERE card = ?",
                (identity,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"couldn't read knowledge: {exc}") from exc
        if row is None:
            return None
        return KnowledgeRecord(
            identity=str(row["card"]),
            level=int(row["level"]),
            consecutive_failures=int(row["consecutive_failures"]),
        )

    def put(self, record: KnowledgeRecord) -> None:
        """Insert or replace one card's record in its own transaction."""
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO knowledge (card, level, consecutive_failures, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(card) DO UPDATE SET
                        level = excluded.level,
                        consecutive_failures = excluded.consecutive_failures,
                        updated_at = excluded.updated_at
                    """,
                    (record.identity, record.level, record.consecutive_failures, datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"couldn't save knowledge: {exc}") from exc

    def count(self) -> int:
        """Return the number of cards with stored knowledge."""
        return int(self._conn.execute("SELECT COUNT(*) FROM knowledge").fetchone()[0])

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __enter__(self) -> ProgressStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
