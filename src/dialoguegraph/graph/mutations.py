"""Mutation API for characters and dialogue graphs.

Every function edits the state or dialogue it is handed in place. Callers
(see :class:`dialoguegraph.editor.session.DialogueEditor`) hand in a working
copy and commit it only when the function reports success, so each public
edit is atomic: either a complete new snapshot or nothing.

Empty or blank user input is rejected by returning ``None``/``False``/``0``
rather than raising. Referencing a node, character, or connection index that
does not exist is a caller bug and raises a
:class:`~dialoguegraph.graph.errors.DialogueGraphError`.
"""

from __future__ import annotations

from collections.abc import Iterable

from dialoguegraph.graph.errors import ConnectionNotFoundError
from dialoguegraph.graph.state import EditorState, require_node
from dialoguegraph.models import (
    DEFAULT_CHARACTER_NAME,
    DEFAULT_ICON,
    DEFAULT_NODE_COLOR,
    Character,
    Connection,
    Dialogue,
    Interruption,
    InterruptionAnchor,
    Node,
    derive_short_text,
    new_character_id,
    new_node_id,
)
from dialoguegraph.observability.logging import get_logger

log = get_logger(__name__)

INTERRUPT_TEXT = "Interrupt"
INTERRUPT_FULL_TEXT = "Interrupt Dialogue"
INTERRUPT_OFFSET = 50
OPTION_OFFSET_X = 250


# -----------------------------------------------------------------------------
# Characters
# -----------------------------------------------------------------------------


def create_character(
    state: EditorState,
    name: str,
    color: str,
    *,
    icon: str = DEFAULT_ICON,
    x: float = 100,
    y: float = 100,
) -> Character | None:
    """Create a character with an empty dialogue.

    Returns:
        The new character, or None if *name* is blank.
    """
    name = name.strip()
    if not name:
        return None
    character = Character(id=new_character_id(), name=name, icon=icon, color=color, x=x, y=y)
    state.add_character(character)
    log.debug("character_created", character_id=character.id, name=name)
    return character


def edit_character_info(state: EditorState, character_id: str, name: str, icon: str) -> bool:
    """Rename a character and change its icon.

    Blank values fall back to ``"Char"`` and the default icon.
    """
    character = state.require_character(character_id)
    character.name = name.strip() or DEFAULT_CHARACTER_NAME
    character.icon = icon.strip() or DEFAULT_ICON
    return True


def recolor_characters(state: EditorState, character_ids: Iterable[str], color: str) -> int:
    """Set *color* on every listed character that exists.

    Returns:
        Number of characters whose color changed.
    """
    count = 0
    for cid in character_ids:
        character = state.get_character(cid)
        if character is not None and character.color != color:
            character.color = color
            count += 1
    return count


def move_character(state: EditorState, character_id: str, x: float, y: float) -> bool:
    """Move a character on the home canvas. Coordinates are clamped to >= 0.

    Returns:
        False if the clamped position is where the character already is.
    """
    character = state.require_character(character_id)
    x, y = max(0, x), max(0, y)
    if (character.x, character.y) == (x, y):
        return False
    character.x = x
    character.y = y
    return True


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------


def create_node(
    dialogue: Dialogue,
    full_text: str,
    x: float,
    y: float,
    notes: str = "",
    *,
    short_text: str | None = None,
    color: str = DEFAULT_NODE_COLOR,
) -> Node | None:
    """Add a node to *dialogue*.

    Args:
        dialogue: Dialogue to add to.
        full_text: The dialogue line. Empty text is rejected.
        x: Canvas x position.
        y: Canvas y position.
        notes: Free-form author notes.
        short_text: Explicit label. Defaults to the first word of *full_text*.
        color: Node fill color.

    Returns:
        The new node, or None if *full_text* is empty.
    """
    if not full_text:
        return None
    node = Node(
        id=new_node_id(),
        text=short_text or derive_short_text(full_text),
        full_text=full_text,
        notes=notes,
        x=x,
        y=y,
        color=color,
    )
    dialogue.nodes[node.id] = node
    return node


def edit_node_text(dialogue: Dialogue, node_id: str, full_text: str, notes: str = "") -> bool:
    """Replace a node's text and notes, re-deriving its label.

    Returns:
        False if *full_text* is blank (nothing changes), True otherwise.

    Raises:
        NodeNotFoundError: If the node does not exist.
    """
    node = require_node(dialogue, node_id, context="edit_node_text")
    full_text = full_text.strip()
    if not full_text:
        return False
    node.full_text = full_text
    node.notes = notes.strip()
    node.text = derive_short_text(full_text)
    return True


def recolor_nodes(dialogue: Dialogue, node_ids: Iterable[str], color: str) -> int:
    """Set *color* on every listed node that exists.

    Returns:
        Number of nodes whose color changed.
    """
    count = 0
    for nid in node_ids:
        node = dialogue.nodes.get(nid)
        if node is not None and node.color != color:
            node.color = color
            count += 1
    return count


def move_node(dialogue: Dialogue, node_id: str, x: float, y: float) -> bool:
    """Move a node on the editor canvas. Coordinates are clamped to >= 0.

    A drop on the starting position is not a move and returns False.
    """
    node = require_node(dialogue, node_id, context="move_node")
    x, y = max(0, x), max(0, y)
    if (node.x, node.y) == (x, y):
        return False
    node.x = x
    node.y = y
    return True


def delete_nodes(dialogue: Dialogue, node_ids: Iterable[str]) -> bool:
    """Delete nodes along with every connection and interruption touching them.

    All ids are removed in one pass so no intermediate state exists in which
    a deleted node is still referenced.

    Returns:
        True if anything was removed.
    """
    doomed = set(node_ids)
    if not doomed:
        return False

    removed_nodes = [nid for nid in doomed if dialogue.nodes.pop(nid, None) is not None]

    connections = [
        c for c in dialogue.connections if c.from_id not in doomed and c.to_id not in doomed
    ]
    interruptions = [
        i for i in dialogue.interruptions if not any(i.references(nid) for nid in doomed)
    ]
    removed_connections = len(dialogue.connections) - len(connections)
    removed_interruptions = len(dialogue.interruptions) - len(interruptions)
    dialogue.connections = connections
    dialogue.interruptions = interruptions

    log.debug(
        "nodes_deleted",
        nodes=len(removed_nodes),
        connections=removed_connections,
        interruptions=removed_interruptions,
    )
    return bool(removed_nodes or removed_connections or removed_interruptions)


# -----------------------------------------------------------------------------
# Connections and interruptions
# -----------------------------------------------------------------------------


def create_connection(dialogue: Dialogue, from_id: str, to_id: str, label: str) -> Connection:
    """Append a connection. Self-loops are not checked here; callers guard them."""
    connection = Connection(from_id=from_id, to_id=to_id, text=label)
    dialogue.connections.append(connection)
    return connection


def edit_connection_label(dialogue: Dialogue, index: int, text: str) -> bool:
    """Change a connection's label.

    Returns:
        False if the label is unchanged.

    Raises:
        ConnectionNotFoundError: If *index* is out of range.
    """
    if not 0 <= index < len(dialogue.connections):
        raise ConnectionNotFoundError(index, len(dialogue.connections))
    connection = dialogue.connections[index]
    if connection.text == text:
        return False
    connection.text = text
    return True


def create_interruption(dialogue: Dialogue, connection_index: int, node: Node) -> Interruption | None:
    """Anchor an interruption from the connection at *connection_index* to *node*.

    The anchor records the connection's endpoints and id, not its index.

    Returns:
        The interruption, or None if the index does not name a connection.
    """
    if not 0 <= connection_index < len(dialogue.connections):
        return None
    connection = dialogue.connections[connection_index]
    interruption = Interruption(
        anchor=InterruptionAnchor(
            from_node=connection.from_id,
            to_node=connection.to_id,
            connection_id=connection.id,
        ),
        to_id=node.id,
    )
    dialogue.interruptions.append(interruption)
    return interruption


def branch_from_connection(
    dialogue: Dialogue,
    connection_index: int,
    x: float,
    y: float,
    *,
    color: str = DEFAULT_NODE_COLOR,
    offset: float = INTERRUPT_OFFSET,
) -> Node | None:
    """Create an interruption node next to (*x*, *y*) and branch it off a connection.

    Returns:
        The new interruption node, or None if the connection does not exist.
    """
    if not 0 <= connection_index < len(dialogue.connections):
        return None
    node = create_node(
        dialogue,
        INTERRUPT_FULL_TEXT,
        x + offset,
        y + offset,
        short_text=INTERRUPT_TEXT,
        color=color,
    )
    if node is None:
        return None
    create_interruption(dialogue, connection_index, node)
    return node


def create_option(
    dialogue: Dialogue,
    from_node_id: str,
    full_text: str,
    option_text: str = "",
    notes: str = "",
    *,
    x: float | None = None,
    y: float | None = None,
    offset_x: float = OPTION_OFFSET_X,
    color: str = DEFAULT_NODE_COLOR,
) -> Node | None:
    """Create the node an option leads to and connect it from *from_node_id*.

    The node is placed at (*x*, *y*) when given (e.g. where a connection drag
    was released), otherwise *offset_x* to the right of the origin node.

    Returns:
        The resulting node, or None if *full_text* is empty.

    Raises:
        NodeNotFoundError: If the origin node does not exist.
    """
    origin = require_node(dialogue, from_node_id, context="create_option")
    if not full_text:
        return None
    node = create_node(
        dialogue,
        full_text,
        origin.x + offset_x if x is None else x,
        origin.y if y is None else y,
        notes,
        color=color,
    )
    if node is None:
        return None
    create_connection(dialogue, from_node_id, node.id, option_text)
    return node
