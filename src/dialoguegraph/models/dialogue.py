"""Pydantic models for characters and their dialogue graphs.

Python attribute names are snake_case. The serialized form uses the aliases
(``fullText``, ``from``, ``fromNode`` ...) so a dump with ``by_alias=True``
is the persisted wire format.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from dialoguegraph.models.ids import new_connection_id

DEFAULT_ICON = "👤"
DEFAULT_CHARACTER_NAME = "Char"
DEFAULT_NODE_TEXT = "Node"
DEFAULT_NODE_COLOR = "#ffffff"
DEFAULT_CHARACTER_COLOR = "#336699"


def derive_short_text(full_text: str) -> str:
    """Return the node label for *full_text*: its first word, or ``"Node"``."""
    tokens = full_text.split()
    return tokens[0] if tokens else DEFAULT_NODE_TEXT


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Node(_WireModel):
    """A single line of dialogue."""

    id: str = Field(min_length=1)
    text: str = Field(description="Short label, derived from full_text at write time")
    full_text: str = Field(alias="fullText")
    notes: str = ""
    x: float = 0
    y: float = 0
    color: str = DEFAULT_NODE_COLOR


class Connection(_WireModel):
    """A directed, labeled dialogue option from one node to another."""

    id: str = Field(default_factory=new_connection_id)
    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    text: str = ""


class InterruptionAnchor(_WireModel):
    """The connection an interruption branches off, identified by endpoints."""

    from_node: str = Field(alias="fromNode")
    to_node: str = Field(alias="toNode")
    connection_id: str | None = Field(default=None, alias="connectionId")


class Interruption(_WireModel):
    """A branch leaving an existing connection towards another node."""

    anchor: InterruptionAnchor = Field(alias="from")
    to_id: str = Field(alias="to")

    def references(self, node_id: str) -> bool:
        return node_id in (self.anchor.from_node, self.anchor.to_node, self.to_id)


class Dialogue(_WireModel):
    """The dialogue graph owned by one character."""

    nodes: dict[str, Node] = Field(default_factory=dict)
    connections: list[Connection] = Field(default_factory=list)
    interruptions: list[Interruption] = Field(default_factory=list)


class Character(_WireModel):
    """A character on the home canvas, owning exactly one dialogue."""

    id: str = Field(min_length=1)
    name: str
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_CHARACTER_COLOR
    x: float = 100
    y: float = 100
    dialogue: Dialogue = Field(default_factory=Dialogue)
