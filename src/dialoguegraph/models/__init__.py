"""Data models for characters and dialogue graphs."""

from dialoguegraph.models.dialogue import (
    DEFAULT_CHARACTER_COLOR,
    DEFAULT_CHARACTER_NAME,
    DEFAULT_ICON,
    DEFAULT_NODE_COLOR,
    DEFAULT_NODE_TEXT,
    Character,
    Connection,
    Dialogue,
    Interruption,
    InterruptionAnchor,
    Node,
    derive_short_text,
)
from dialoguegraph.models.ids import new_character_id, new_connection_id, new_node_id

__all__ = [
    "DEFAULT_CHARACTER_COLOR",
    "DEFAULT_CHARACTER_NAME",
    "DEFAULT_ICON",
    "DEFAULT_NODE_COLOR",
    "DEFAULT_NODE_TEXT",
    "Character",
    "Connection",
    "Dialogue",
    "Interruption",
    "InterruptionAnchor",
    "Node",
    "derive_short_text",
    "new_character_id",
    "new_connection_id",
    "new_node_id",
]
