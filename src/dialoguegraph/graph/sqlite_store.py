"""SQLite-backed snapshot storage.

SqliteSnapshotStore keeps serialized editor state in a single key/value
table, one row per key. The editor uses one key (``"characters"``) holding
the whole snapshot as JSON; every save replaces it.

Every save also appends a row to ``save_log`` (timestamp and byte size) so a
project's save activity can be inspected without keeping old snapshots.

sqlite3 errors are wrapped in SnapshotStoreError so callers can treat any
backend failure uniformly.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, cast

from dialoguegraph.graph.errors import SnapshotFormatError, SnapshotStoreError
from dialoguegraph.observability.logging import get_logger

log = get_logger(__name__)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS snapshots (
    key      TEXT PRIMARY KEY,
    value    JSON NOT NULL,
    saved_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now'))
);

CREATE TABLE IF NOT EXISTS save_log (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    key       TEXT NOT NULL,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now')),
    size      INTEGER NOT NULL
);
"""

DATA_KEY = "characters"


class SqliteSnapshotStore:
    """SQLite snapshot store.

    The connection may be used from a background writer thread; access is
    serialized with a lock.
    """

    def __init__(self, db_path: str | Path = ":memory:", *, key: str = DATA_KEY) -> None:
        """Open or create a snapshot database.

        Args:
            db_path: Path to ``.db`` file, or ``":memory:"`` for in-memory.
            key: Row key the snapshot is stored under.

        Raises:
            SnapshotStoreError: If the database cannot be opened or initialized.
        """
        self._db_path = str(db_path) if isinstance(db_path, Path) else db_path
        self._key = key
        self._lock = threading.Lock()
        try:
            if isinstance(db_path, Path):
                db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self._db_path,
                isolation_level=None,  # autocommit; each save is one statement pair
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise SnapshotStoreError(f"Cannot open snapshot database {self._db_path}: {e}") from e

    @property
    def db_path(self) -> str:
        return self._db_path

    def save(self, snapshot: dict[str, Any]) -> None:
        """Replace the stored snapshot.

        Raises:
            SnapshotStoreError: If the write fails.
        """
        payload = json.dumps(snapshot, ensure_ascii=False)
        with self._lock:
            try:
                self._conn.execute("BEGIN")
                self._conn.execute(
                    "INSERT OR REPLACE INTO snapshots (key, value, saved_at) "
                    "VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%f','now'))",
                    (self._key, payload),
                )
                self._conn.execute(
                    "INSERT INTO save_log (key, size) VALUES (?, ?)",
                    (self._key, len(payload.encode("utf-8"))),
                )
                self._conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback()
                raise SnapshotStoreError(f"Failed to save snapshot: {e}") from e
        log.debug("snapshot_saved", key=self._key, size=len(payload))

    def _rollback(self) -> None:
        # A closed connection has no transaction to undo.
        try:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
        except sqlite3.ProgrammingError:
            log.debug("rollback_skipped", reason="connection_closed")

    def load(self) -> dict[str, Any] | None:
        """Return the stored snapshot, or None if nothing was saved.

        Raises:
            SnapshotStoreError: If the read fails.
            SnapshotFormatError: If the stored value is not a JSON object.
        """
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT value FROM snapshots WHERE key = ?", (self._key,)
                ).fetchone()
            except sqlite3.Error as e:
                raise SnapshotStoreError(f"Failed to load snapshot: {e}") from e
        if row is None:
            return None
        try:
            data = json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"Stored snapshot is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SnapshotFormatError("Stored snapshot is not a JSON object")
        return cast("dict[str, Any]", data)

    def save_count(self) -> int:
        """Number of saves recorded in the save log for this key."""
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) AS cnt FROM save_log WHERE key = ?", (self._key,)
            ).fetchone()
        return row["cnt"]  # type: ignore[no-any-return]

    def last_saved_at(self) -> str | None:
        """ISO timestamp of the stored snapshot, or None if nothing was saved."""
        with self._lock:
            row = self._conn.execute(
                "SELECT saved_at FROM snapshots WHERE key = ?", (self._key,)
            ).fetchone()
        return None if row is None else row["saved_at"]

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()


def open_snapshot_store(db_path: str | Path) -> SqliteSnapshotStore | None:
    """Open a snapshot database, degrading to None if it cannot be opened.

    A session without a store keeps full editing and undo; it only loses
    durability.
    """
    try:
        return SqliteSnapshotStore(db_path)
    except SnapshotStoreError as e:
        log.error("persistence_unavailable", path=str(db_path), error=str(e))
        return None
