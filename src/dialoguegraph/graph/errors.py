"""Error types for the dialogue graph and its snapshot stores.

Empty or malformed user input is rejected silently by the mutation API and
never reaches these types. They are raised when a caller targets something
that does not exist (a programming error in the input or view layer), or
when persistence fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches


class DialogueGraphError(Exception):
    """Base class for dialogue graph errors."""


def _suggest(missing: str, available: list[str]) -> list[str]:
    """Find ids similar to *missing* that might be typos."""
    return get_close_matches(missing, available, n=3, cutoff=0.6)


@dataclass
class CharacterNotFoundError(DialogueGraphError):
    """Raised when referencing a character id that is not in the state.

    Attributes:
        character_id: The id that was referenced.
        available: Character ids that do exist.
    """

    character_id: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        msg = f"Character '{self.character_id}' not found"
        suggestions = _suggest(self.character_id, self.available)
        if suggestions:
            msg += f" (did you mean: {', '.join(suggestions)})"
        super().__init__(msg)


@dataclass
class CharacterExistsError(DialogueGraphError):
    """Raised when adding a character whose id is already taken."""

    character_id: str

    def __post_init__(self) -> None:
        super().__init__(f"Character '{self.character_id}' already exists")


@dataclass
class NodeNotFoundError(DialogueGraphError):
    """Raised when referencing a node id that is not in the dialogue.

    Attributes:
        node_id: The id that was referenced.
        available: Node ids present in the dialogue.
        context: Description of where the reference occurred.
    """

    node_id: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        msg = f"Node '{self.node_id}' not found"
        if self.context:
            msg += f" ({self.context})"
        suggestions = _suggest(self.node_id, self.available)
        if suggestions:
            msg += f"; did you mean: {', '.join(suggestions)}"
        super().__init__(msg)


@dataclass
class ConnectionNotFoundError(DialogueGraphError):
    """Raised when a connection index is out of range."""

    index: int
    count: int

    def __post_init__(self) -> None:
        super().__init__(
            f"Connection index {self.index} out of range (dialogue has {self.count})"
        )


class SnapshotStoreError(DialogueGraphError):
    """Raised by a snapshot store when the backend cannot read or write."""


class SnapshotFormatError(DialogueGraphError):
    """Raised when serialized state does not match the snapshot format."""
