"""Linear undo/redo history of full editor snapshots.

History keeps an ordered list of serialized snapshots and a cursor pointing
at the current one. Recording after an undo discards the redo-able future;
there is no branching timeline.

Snapshots are stored in the serialized snapshot format, so later changes to
a live EditorState can never reach a stored entry, and every state handed
back by :meth:`History.undo`/:meth:`History.redo` is freshly built.

Each record, undo and redo saves the resulting snapshot to the configured
SnapshotStore, so the store always mirrors the cursor position. Save
failures are logged and do not interrupt editing.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from dialoguegraph.graph.errors import SnapshotStoreError
from dialoguegraph.graph.state import EditorState
from dialoguegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from dialoguegraph.graph.store import SnapshotStore

log = get_logger(__name__)


class History:
    """Snapshot history with a cursor.

    Attributes:
        store: Where snapshots are persisted, or None for no persistence.
        max_entries: Upper bound on retained snapshots (None = unbounded).
    """

    def __init__(
        self,
        initial: EditorState,
        *,
        store: SnapshotStore | None = None,
        max_entries: int | None = None,
    ) -> None:
        """Start a history whose only entry is *initial* (cursor 0).

        The initial snapshot is not persisted; it is either empty or was
        just loaded from the store.

        Raises:
            ValueError: If *max_entries* is less than 1.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.store = store
        self.max_entries = max_entries
        self._entries: list[dict[str, Any]] = [initial.to_dict()]
        self._cursor = 0

    # -- Introspection ---------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def current(self) -> EditorState:
        """Return a copy of the snapshot at the cursor."""
        return self.snapshot_at(self._cursor)

    def snapshot_at(self, index: int) -> EditorState:
        """Return a copy of the snapshot at *index*."""
        return EditorState.from_dict(copy.deepcopy(self._entries[index]))

    # -- Transitions -----------------------------------------------------------

    def record(self, state: EditorState) -> None:
        """Append *state* after the cursor, discarding any redo-able entries."""
        snapshot = state.to_dict()
        discarded = len(self._entries) - (self._cursor + 1)
        del self._entries[self._cursor + 1 :]
        self._entries.append(snapshot)
        self._cursor += 1

        if self.max_entries is not None and len(self._entries) > self.max_entries:
            overflow = len(self._entries) - self.max_entries
            del self._entries[:overflow]
            self._cursor -= overflow

        log.debug(
            "history_recorded",
            cursor=self._cursor,
            entries=len(self._entries),
            discarded=discarded,
        )
        self._persist(snapshot)

    def undo(self) -> EditorState | None:
        """Step the cursor back.

        Returns:
            The snapshot now at the cursor, or None if already at the start.
        """
        if not self.can_undo:
            return None
        self._cursor -= 1
        self._persist(self._entries[self._cursor])
        return self.current()

    def redo(self) -> EditorState | None:
        """Step the cursor forward.

        Returns:
            The snapshot now at the cursor, or None if already at the end.
        """
        if not self.can_redo:
            return None
        self._cursor += 1
        self._persist(self._entries[self._cursor])
        return self.current()

    # -- Persistence -----------------------------------------------------------

    def _persist(self, snapshot: dict[str, Any]) -> None:
        if self.store is None:
            return
        try:
            self.store.save(snapshot)
        except SnapshotStoreError as e:
            # The next save supersedes this one; editing continues.
            log.warning("snapshot_save_failed", cursor=self._cursor, error=str(e))

    def __repr__(self) -> str:
        return f"History(entries={len(self._entries)}, cursor={self._cursor})"
