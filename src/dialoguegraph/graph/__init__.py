"""Graph package - dialogue graph state, edits, history, and storage.

The editor state holds every character and its dialogue graph. Edits are
applied through the mutation API, recorded by the history engine, and
persisted through a snapshot store.
"""

from dialoguegraph.graph.errors import (
    CharacterExistsError,
    CharacterNotFoundError,
    ConnectionNotFoundError,
    DialogueGraphError,
    NodeNotFoundError,
    SnapshotFormatError,
    SnapshotStoreError,
)
from dialoguegraph.graph.history import History
from dialoguegraph.graph.paths import build_predecessors, reconstruct_path, root_node_ids
from dialoguegraph.graph.serialize import (
    deserialize_state,
    dumps_state,
    loads_state,
    serialize_state,
)
from dialoguegraph.graph.sqlite_store import SqliteSnapshotStore, open_snapshot_store
from dialoguegraph.graph.state import (
    EditorState,
    anchor_connection,
    live_connections,
    live_interruptions,
    require_node,
)
from dialoguegraph.graph.store import MemorySnapshotStore, SnapshotStore

__all__ = [
    "CharacterExistsError",
    "CharacterNotFoundError",
    "ConnectionNotFoundError",
    "DialogueGraphError",
    "EditorState",
    "History",
    "MemorySnapshotStore",
    "NodeNotFoundError",
    "SnapshotFormatError",
    "SnapshotStore",
    "SnapshotStoreError",
    "SqliteSnapshotStore",
    "anchor_connection",
    "build_predecessors",
    "deserialize_state",
    "dumps_state",
    "live_connections",
    "live_interruptions",
    "loads_state",
    "open_snapshot_store",
    "reconstruct_path",
    "require_node",
    "root_node_ids",
    "serialize_state",
]
