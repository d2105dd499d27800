"""Snapshot serialization.

The snapshot format is a JSON-compatible tree::

    {
      "<characterId>": {
        "id", "name", "icon", "color", "x", "y",
        "dialogue": {
          "nodes": {"<nodeId>": {"id", "text", "fullText", "notes", "x", "y", "color"}},
          "connections": [{"id", "from", "to", "text"}],
          "interruptions": [{"from": {"fromNode", "toNode", "connectionId"}, "to"}]
        }
      }
    }

Round-tripping a state through this format is lossless.
"""

from __future__ import annotations

import json
from typing import Any

from dialoguegraph.graph.errors import SnapshotFormatError
from dialoguegraph.graph.state import EditorState


def serialize_state(state: EditorState) -> dict[str, Any]:
    """Convert *state* to the snapshot format (independent of the state)."""
    return state.to_dict()


def deserialize_state(data: Any) -> EditorState:
    """Build an EditorState from the snapshot format.

    Raises:
        SnapshotFormatError: If *data* is not a valid snapshot.
    """
    return EditorState.from_dict(data)


def dumps_state(state: EditorState, *, indent: int | None = None) -> str:
    """Serialize *state* to a JSON string."""
    return json.dumps(serialize_state(state), indent=indent, ensure_ascii=False)


def loads_state(text: str) -> EditorState:
    """Parse a JSON string produced by :func:`dumps_state`.

    Raises:
        SnapshotFormatError: If *text* is not valid JSON or not a snapshot.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e
    return deserialize_state(data)
