"""Snapshot storage protocol and in-memory implementation.

The SnapshotStore protocol is the persistence boundary of the editor: the
history engine hands it the full serialized state after every edit, undo and
redo, and a session asks it for the last saved state at startup. Stores keep
one snapshot, the latest.

MemorySnapshotStore keeps the snapshot in a dict and is used for tests and
sessions without durability. SqliteSnapshotStore provides a durable backend.
"""

from __future__ import annotations

import copy
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SnapshotStore(Protocol):
    """Persistence backend protocol for editor snapshots.

    Implementations raise SnapshotStoreError when the backend fails; they
    never validate the snapshot contents.
    """

    def save(self, snapshot: dict[str, Any]) -> None:
        """Persist *snapshot*, replacing any previously saved one."""
        ...

    def load(self) -> dict[str, Any] | None:
        """Return the saved snapshot, or None if nothing has been saved."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class MemorySnapshotStore:
    """In-memory snapshot store.

    Attributes:
        save_count: Number of saves performed (useful for assertions).
    """

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        self._snapshot: dict[str, Any] | None = copy.deepcopy(snapshot)
        self.save_count = 0

    def save(self, snapshot: dict[str, Any]) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self.save_count += 1

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._snapshot)

    def close(self) -> None:
        """Nothing to release."""
