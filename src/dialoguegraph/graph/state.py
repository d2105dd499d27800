"""In-memory editor state: every character and its dialogue graph.

EditorState is the single source of truth for a session. It is pure data
plus invariant-preserving accessors; the edits themselves live in
:mod:`dialoguegraph.graph.mutations` and are applied to a copy of the state
so a failed or rejected edit never leaves a half-applied graph behind.

Dangling references (a connection or interruption naming a node that is no
longer present) are inert: the ``live_*`` helpers skip them, and
:meth:`EditorState.validate_invariants` reports them for diagnostics.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from dialoguegraph.graph.errors import (
    CharacterExistsError,
    CharacterNotFoundError,
    NodeNotFoundError,
    SnapshotFormatError,
)
from dialoguegraph.models import Character, Connection, Dialogue, Interruption, Node

_CHARACTERS: TypeAdapter[dict[str, Character]] = TypeAdapter(dict[str, Character])


class EditorState:
    """All characters keyed by id.

    Attributes:
        _characters: Live mapping of character id to Character.
    """

    def __init__(self, characters: dict[str, Character] | None = None) -> None:
        self._characters: dict[str, Character] = characters if characters is not None else {}

    @classmethod
    def empty(cls) -> EditorState:
        return cls()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Any) -> EditorState:
        """Build state from the serialized snapshot format.

        Args:
            data: Mapping of character id to serialized character.

        Returns:
            New EditorState owning freshly validated models.

        Raises:
            SnapshotFormatError: If *data* does not match the snapshot format.
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError(
                f"Snapshot must be a mapping of character id to character, got {type(data).__name__}"
            )
        try:
            characters = _CHARACTERS.validate_python(data)
        except ValidationError as e:
            raise SnapshotFormatError(f"Invalid snapshot: {e}") from e
        return cls(characters)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible snapshot format (fresh objects)."""
        result: dict[str, Any] = _CHARACTERS.dump_python(
            self._characters, by_alias=True, mode="json"
        )
        return result

    def copy(self) -> EditorState:
        """Return a deep, independent copy of this state."""
        return EditorState({cid: c.model_copy(deep=True) for cid, c in self._characters.items()})

    # -------------------------------------------------------------------------
    # Characters
    # -------------------------------------------------------------------------

    @property
    def characters(self) -> dict[str, Character]:
        """Live character mapping. Mutate only through the mutation API."""
        return self._characters

    def character_ids(self) -> list[str]:
        return list(self._characters)

    def has_character(self, character_id: str) -> bool:
        return character_id in self._characters

    def get_character(self, character_id: str) -> Character | None:
        return self._characters.get(character_id)

    def require_character(self, character_id: str) -> Character:
        """Get a character, raising if it does not exist.

        Raises:
            CharacterNotFoundError: If the id is unknown.
        """
        character = self._characters.get(character_id)
        if character is None:
            raise CharacterNotFoundError(character_id, available=self.character_ids())
        return character

    def add_character(self, character: Character) -> None:
        """Add a new character. Fails if the id is already taken.

        Raises:
            CharacterExistsError: If a character with this id exists.
        """
        if character.id in self._characters:
            raise CharacterExistsError(character.id)
        self._characters[character.id] = character

    def dialogue(self, character_id: str) -> Dialogue:
        return self.require_character(character_id).dialogue

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_invariants(self) -> list[str]:
        """Report dangling references and key mismatches.

        Dangling references are tolerated by the editor, so this is for
        diagnostics (e.g. after loading hand-edited data), not enforcement.

        Returns:
            List of violation messages (empty if clean).
        """
        violations: list[str] = []
        for cid, character in self._characters.items():
            if character.id != cid:
                violations.append(f"Character key '{cid}' does not match id '{character.id}'")
            dialogue = character.dialogue
            for nid, node in dialogue.nodes.items():
                if node.id != nid:
                    violations.append(f"{cid}: node key '{nid}' does not match id '{node.id}'")
            for i, conn in enumerate(dialogue.connections):
                for end, node_id in (("source", conn.from_id), ("target", conn.to_id)):
                    if node_id not in dialogue.nodes:
                        violations.append(
                            f"{cid}: connection {i} {end} '{node_id}' does not exist"
                        )
            for i, inter in enumerate(dialogue.interruptions):
                if anchor_connection(dialogue, inter) is None:
                    violations.append(
                        f"{cid}: interruption {i} anchor "
                        f"'{inter.anchor.from_node}'->'{inter.anchor.to_node}' has no connection"
                    )
                if inter.to_id not in dialogue.nodes:
                    violations.append(f"{cid}: interruption {i} target '{inter.to_id}' does not exist")
        return violations

    # -------------------------------------------------------------------------
    # Utility
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EditorState):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        dialogues = [c.dialogue for c in self._characters.values()]
        nodes = sum(len(d.nodes) for d in dialogues)
        connections = sum(len(d.connections) for d in dialogues)
        return (
            f"EditorState(characters={len(self._characters)}, "
            f"nodes={nodes}, connections={connections})"
        )


# -----------------------------------------------------------------------------
# Dialogue queries
# -----------------------------------------------------------------------------


def require_node(dialogue: Dialogue, node_id: str, context: str = "") -> Node:
    """Get a node from *dialogue*, raising NodeNotFoundError if absent."""
    node = dialogue.nodes.get(node_id)
    if node is None:
        raise NodeNotFoundError(node_id, available=list(dialogue.nodes), context=context)
    return node


def anchor_connection(dialogue: Dialogue, interruption: Interruption) -> Connection | None:
    """Resolve the connection an interruption branches off.

    The stable connection id wins when present and still live; otherwise the
    first connection with the anchor's endpoints is used.
    """
    anchor = interruption.anchor
    if anchor.connection_id is not None:
        for conn in dialogue.connections:
            if conn.id == anchor.connection_id:
                return conn
    for conn in dialogue.connections:
        if conn.from_id == anchor.from_node and conn.to_id == anchor.to_node:
            return conn
    return None


def live_connections(dialogue: Dialogue) -> list[tuple[int, Connection]]:
    """Connections whose endpoints both exist, with their sequence index."""
    return [
        (i, conn)
        for i, conn in enumerate(dialogue.connections)
        if conn.from_id in dialogue.nodes and conn.to_id in dialogue.nodes
    ]


def live_interruptions(dialogue: Dialogue) -> list[tuple[Interruption, Connection]]:
    """Interruptions that resolve to a live connection and an existing target."""
    live: list[tuple[Interruption, Connection]] = []
    for inter in dialogue.interruptions:
        conn = anchor_connection(dialogue, inter)
        if conn is None or inter.to_id not in dialogue.nodes:
            continue
        if conn.from_id not in dialogue.nodes or conn.to_id not in dialogue.nodes:
            continue
        live.append((inter, conn))
    return live
