import sqlite3
from pathlib import Path

import pytest

from revise.models import KnowledgeRecord
from revise.progress import SCHEMA_VERSION, PersistenceError, ProgressStore


def test_get_missing_record_returns_none() -> None:
    store = ProgressStore(":memory:")
    assert store.get("nope") is None


def test_put_then_get_round_trip_and_update() -> None:
    store = ProgressStore(":memory:")
    store.put(KnowledgeRecord("card-1", level=2, consecutive_failures=1))
    assert store.get("card-1") == KnowledgeRecord("card-1", level=2, consecutive_failures=1)

    store.put(KnowledgeRecord("card-1", level=3))
    assert store.get("card-1") == KnowledgeRecord("card-1", level=3)
    assert store.count() == 1


def test_migration_sets_user_version_and_schema_history() -> None:
    store = ProgressStore(":memory:")
    version = int(store._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == SCHEMA_VERSION
    rows = store._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()  # noqa: SLF001
    assert [int(row["version"]) for row in rows] == [1]


def test_level_constraint_is_enforced_by_schema() -> None:
    store = ProgressStore(":memory:")
    with pytest.raises(sqlite3.IntegrityError):
        with store._conn:  # noqa: SLF001
            store._conn.execute(  # noqa: SLF001
                "INSERT INTO knowledge (card, level, consecutive_failures, updated_at) VALUES ('x', 7, 0, 'now')"
            )


def test_records_persist_across_connections(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "knowledge.db"
    with ProgressStore(db_path) as store:
        store.put(KnowledgeRecord("abc", level=1))
    assert db_path.exists()

    with ProgressStore(db_path) as reopened:
        assert reopened.get("abc") == KnowledgeRecord("abc", level=1)


def test_newer_schema_version_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
    conn.close()

    with pytest.raises(PersistenceError):
        ProgressStore(db_path)


def test_write_failure_is_wrapped() -> None:
    store = ProgressStore(":memory:")
    store.close()
    with pytest.raises(PersistenceError):
        store.put(KnowledgeRecord("abc"))
    with pytest.raises(PersistenceError):
        store.get("abc")


def test_unopenable_database_is_wrapped(tmp_path: Path) -> None:
    with pytest.raises(PersistenceError):
        ProgressStore(str(tmp_path))


def test_database_under_a_regular_file_is_wrapped(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(PersistenceError):
        ProgressStore(blocker / "nested" / "knowledge.db")
