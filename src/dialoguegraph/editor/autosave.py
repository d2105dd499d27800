"""Background snapshot writer.

QueuedSnapshotWriter wraps another SnapshotStore and moves writes onto a
single daemon thread. It is the only writer of the wrapped store, so saves
land in the order they were made; when several saves are pending, only the
latest is written.
"""

from __future__ import annotations

import copy
import queue
import threading
from typing import TYPE_CHECKING, Any

from dialoguegraph.graph.errors import SnapshotStoreError
from dialoguegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from dialoguegraph.graph.store import SnapshotStore

log = get_logger(__name__)

_STOP = object()


class QueuedSnapshotWriter:
    """SnapshotStore that writes to *inner* from a background thread.

    Attributes:
        writes: Number of snapshots actually written to the inner store.
    """

    def __init__(self, inner: SnapshotStore) -> None:
        self._inner = inner
        self._queue: queue.Queue[Any] = queue.Queue()
        self._closed = False
        self.writes = 0
        self._thread = threading.Thread(
            target=self._run, name="dialoguegraph-autosave", daemon=True
        )
        self._thread.start()

    @property
    def inner(self) -> SnapshotStore:
        return self._inner

    def save(self, snapshot: dict[str, Any]) -> None:
        """Queue *snapshot* for writing and return immediately."""
        if self._closed:
            raise SnapshotStoreError("Autosave writer is closed")
        self._queue.put(copy.deepcopy(snapshot))

    def load(self) -> dict[str, Any] | None:
        """Wait for pending writes, then read from the inner store."""
        self.flush()
        return self._inner.load()

    def flush(self) -> None:
        """Block until every queued snapshot has been handled."""
        self._queue.join()

    def close(self) -> None:
        """Write pending snapshots, stop the thread, and close the inner store."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._thread.join()
        self._inner.close()

    def _run(self) -> None:
        while True:
            pending = [self._queue.get()]
            while True:
                try:
                    pending.append(self._queue.get_nowait())
                except queue.Empty:
                    break
            snapshots = [item for item in pending if item is not _STOP]
            try:
                if snapshots:
                    self._write(snapshots[-1], skipped=len(snapshots) - 1)
            finally:
                for _ in pending:
                    self._queue.task_done()
            if len(snapshots) != len(pending):
                return

    def _write(self, snapshot: dict[str, Any], *, skipped: int) -> None:
        try:
            self._inner.save(snapshot)
        except SnapshotStoreError as e:
            log.warning("autosave_failed", error=str(e))
            return
        except Exception as e:
            # flush() relies on this thread surviving every save
            log.exception("autosave_crashed", error=str(e), error_type=type(e).__name__)
            return
        self.writes += 1
        if skipped:
            log.debug("autosave_coalesced", skipped=skipped)
