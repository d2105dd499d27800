"""Tests for SqliteSnapshotStore and store degradation."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import pytest

from dialoguegraph.graph import (
    SnapshotFormatError,
    SnapshotStoreError,
    SqliteSnapshotStore,
    open_snapshot_store,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def store() -> SqliteSnapshotStore:
    """In-memory SQLite store."""
    return SqliteSnapshotStore()


class TestSaveLoad:
    """Basic persistence."""

    def test_load_empty(self, store: SqliteSnapshotStore) -> None:
        assert store.load() is None
        assert store.last_saved_at() is None

    def test_round_trip(self, store: SqliteSnapshotStore) -> None:
        snapshot = {"char_1": {"id": "char_1", "name": "Zoë", "icon": "👤"}}
        store.save(snapshot)
        assert store.load() == snapshot
        assert store.last_saved_at() is not None

    def test_save_replaces_single_row(self, store: SqliteSnapshotStore) -> None:
        store.save({"a": 1})
        store.save({"b": 2})
        assert store.load() == {"b": 2}
        assert store.save_count() == 2

    def test_keys_are_separate(self, tmp_path: Path) -> None:
        db = tmp_path / "keys.db"
        first = SqliteSnapshotStore(db)
        second = SqliteSnapshotStore(db, key="other")
        try:
            first.save({"a": 1})
            assert second.load() is None
            assert first.load() == {"a": 1}
        finally:
            first.close()
            second.close()


class TestFileDatabase:
    """Stores on disk survive reopening."""

    def test_reopen(self, tmp_path: Path) -> None:
        db = tmp_path / "nested" / "dialogue.db"
        store = SqliteSnapshotStore(db)
        store.save({"char_1": {"id": "char_1"}})
        store.close()

        reopened = SqliteSnapshotStore(db)
        try:
            assert reopened.load() == {"char_1": {"id": "char_1"}}
            assert reopened.db_path == str(db)
        finally:
            reopened.close()

    def test_row_is_keyed_characters(self, tmp_path: Path) -> None:
        db = tmp_path / "dialogue.db"
        store = SqliteSnapshotStore(db)
        store.save({})
        store.close()

        conn = sqlite3.connect(db)
        try:
            rows = conn.execute("SELECT key FROM snapshots").fetchall()
        finally:
            conn.close()
        assert rows == [("characters",)]


class TestErrors:
    """Backend failures surface as store errors."""

    def test_unopenable_path(self, tmp_path: Path) -> None:
        with pytest.raises(SnapshotStoreError, match="Cannot open"):
            SqliteSnapshotStore(tmp_path)

    def test_save_after_close(self, store: SqliteSnapshotStore) -> None:
        store.close()
        with pytest.raises(SnapshotStoreError, match="Failed to save"):
            store.save({"a": 1})

    def test_corrupt_value(self, tmp_path: Path) -> None:
        db = tmp_path / "dialogue.db"
        SqliteSnapshotStore(db).close()
        conn = sqlite3.connect(db)
        conn.execute("INSERT INTO snapshots (key, value) VALUES ('characters', '{oops')")
        conn.commit()
        conn.close()

        store = SqliteSnapshotStore(db)
        try:
            with pytest.raises(SnapshotFormatError):
                store.load()
        finally:
            store.close()

    def test_non_object_value(self, store: SqliteSnapshotStore) -> None:
        store.save([1, 2])  # type: ignore[arg-type]
        with pytest.raises(SnapshotFormatError, match="not a JSON object"):
            store.load()


class TestOpenSnapshotStore:
    """open_snapshot_store degrades to None."""

    def test_opens(self, tmp_path: Path) -> None:
        store = open_snapshot_store(tmp_path / "dialogue.db")
        assert store is not None
        store.close()

    def test_degrades_on_failure(self, tmp_path: Path) -> None:
        assert open_snapshot_store(tmp_path) is None
