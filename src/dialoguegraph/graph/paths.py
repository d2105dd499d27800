"""Ancestry queries over a dialogue's connections.

Pure functions that read a dialogue without modifying it. Used by the view
layer to highlight the chain of lines leading to a selected node.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dialoguegraph.models import Dialogue


def build_predecessors(dialogue: Dialogue) -> dict[str, str]:
    """Map each connection target to its source.

    When several connections share a target, the one latest in the
    connection sequence wins.
    """
    predecessors: dict[str, str] = {}
    for conn in dialogue.connections:
        predecessors[conn.to_id] = conn.from_id
    return predecessors


def reconstruct_path(dialogue: Dialogue, node_id: str) -> list[str]:
    """Walk back from *node_id* to the root of its chain.

    Stops at a node with no predecessor, or at the first node already
    visited, so cycles terminate.

    Returns:
        Node ids ordered from *node_id* back to the root, both inclusive.
    """
    predecessors = build_predecessors(dialogue)
    path: list[str] = []
    seen: set[str] = set()
    current: str | None = node_id
    while current is not None and current not in seen:
        path.append(current)
        seen.add(current)
        current = predecessors.get(current)
    return path


def root_node_ids(dialogue: Dialogue) -> list[str]:
    """Nodes that no connection points to, in dialogue order."""
    targets = {conn.to_id for conn in dialogue.connections if conn.from_id in dialogue.nodes}
    return [nid for nid in dialogue.nodes if nid not in targets]
