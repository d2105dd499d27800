"""Editing session: the application state shared by the input and view layers.

DialogueEditor owns the live EditorState, the currently open character, the
undo history, and the snapshot store for one editing run. Every entry point
applies its edit to a copy of the live state; when the edit succeeds the
copy becomes the live state and is recorded exactly once in the history
(which persists it). Rejected input leaves the live state, the history, and
the store untouched.

Selection is owned by the caller: methods take the ids they act on.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, TypeVar

from dialoguegraph.editor.autosave import QueuedSnapshotWriter
from dialoguegraph.editor.config import EditorConfig, load_project_config
from dialoguegraph.graph import mutations
from dialoguegraph.graph.errors import SnapshotFormatError, SnapshotStoreError
from dialoguegraph.graph.history import History
from dialoguegraph.graph.paths import reconstruct_path
from dialoguegraph.graph.sqlite_store import open_snapshot_store
from dialoguegraph.graph.state import EditorState
from dialoguegraph.observability.logging import bind_context, get_logger, unbind_context

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from dialoguegraph.graph.store import SnapshotStore
    from dialoguegraph.models import Character, Connection, Dialogue, Node

log = get_logger(__name__)

T = TypeVar("T")


def load_initial_state(store: SnapshotStore | None) -> EditorState:
    """Read the saved state from *store*, or start empty.

    A missing store, an empty store, unreadable data, and malformed data all
    yield an empty state; only the last two are logged as errors.
    """
    if store is None:
        return EditorState.empty()
    try:
        data = store.load()
    except (SnapshotStoreError, SnapshotFormatError) as e:
        log.error("state_load_failed", error=str(e))
        return EditorState.empty()
    if not data:
        log.info("no_saved_state")
        return EditorState.empty()
    try:
        state = EditorState.from_dict(data)
    except SnapshotFormatError as e:
        log.error("state_load_failed", error=str(e))
        return EditorState.empty()
    log.info("state_loaded", characters=len(state.characters))
    return state


class DialogueEditor:
    """One editing session over all characters.

    Attributes:
        config: Project configuration (defaults, history, storage).
        store: Snapshot store, or None when running without persistence.
        history: Undo/redo history; its cursor tracks the live state.
        current_character_id: Character whose dialogue is open, if any.
    """

    def __init__(
        self,
        state: EditorState | None = None,
        *,
        store: SnapshotStore | None = None,
        config: EditorConfig | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.store = store
        self._state = state.copy() if state is not None else EditorState.empty()
        self.history = History(
            self._state, store=store, max_entries=self.config.history.max_entries
        )
        self.current_character_id: str | None = None

    @classmethod
    def open(cls, project_path: Path, config: EditorConfig | None = None) -> DialogueEditor:
        """Start a session for a project directory.

        Loads ``dialogue.yaml`` (unless *config* is given), opens the
        project's snapshot database and restores the saved state. If the
        database cannot be opened the session runs without persistence.

        Raises:
            ProjectConfigError: If *config* is None and dialogue.yaml is unusable.
        """
        config = config or load_project_config(project_path)
        store: SnapshotStore | None = open_snapshot_store(config.db_path(project_path))
        if store is not None and config.storage.background_autosave:
            store = QueuedSnapshotWriter(store)
        state = load_initial_state(store)
        return cls(state, store=store, config=config)

    @classmethod
    def from_store(cls, store: SnapshotStore, config: EditorConfig | None = None) -> DialogueEditor:
        """Start a session restoring whatever *store* holds."""
        return cls(load_initial_state(store), store=store, config=config)

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> EditorState:
        """The live state. Read it; change it only through this class."""
        return self._state

    @property
    def current_character(self) -> Character | None:
        if self.current_character_id is None:
            return None
        return self._state.get_character(self.current_character_id)

    @property
    def current_dialogue(self) -> Dialogue | None:
        character = self.current_character
        return None if character is None else character.dialogue

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _apply(self, action: str, mutate: Callable[[EditorState], T]) -> T:
        """Run *mutate* on a working copy and commit it if it reports success."""
        working = self._state.copy()
        result = mutate(working)
        if not result:
            log.debug("edit_rejected", action=action)
            return result
        self._state = working
        self.history.record(working)
        log.debug("edit_applied", action=action, cursor=self.history.cursor)
        return result

    def _apply_to_dialogue(self, action: str, mutate: Callable[[Dialogue], T]) -> T | None:
        """Like :meth:`_apply`, scoped to the open dialogue. None if none is open."""
        character_id = self.current_character_id
        if character_id is None:
            log.debug("edit_rejected", action=action, reason="no_open_dialogue")
            return None
        return self._apply(action, lambda state: mutate(state.dialogue(character_id)))

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def open_dialogue(self, character_id: str) -> Character:
        """Open a character's dialogue for editing.

        An empty dialogue gets a start node when ``auto_start_node`` is set.

        Raises:
            CharacterNotFoundError: If the character does not exist.
        """
        self._state.require_character(character_id)
        self.current_character_id = character_id
        bind_context(character_id=character_id)
        dialogue = self._state.dialogue(character_id)
        if self.config.auto_start_node and not dialogue.nodes:
            defaults = self.config.defaults
            self.create_node(
                defaults.start_full_text,
                defaults.start_x,
                defaults.start_y,
                short_text=defaults.start_text,
            )
        return self._state.require_character(character_id)

    def close_dialogue(self) -> None:
        """Return to the character overview."""
        self.current_character_id = None
        unbind_context("character_id")

    # -------------------------------------------------------------------------
    # Characters
    # -------------------------------------------------------------------------

    def create_character(self, name: str, color: str | None = None) -> Character | None:
        """Create a character. Returns None if *name* is blank."""
        defaults = self.config.defaults
        return self._apply(
            "create_character",
            lambda state: mutations.create_character(
                state,
                name,
                color or defaults.character_color,
                icon=defaults.icon,
                x=defaults.character_x,
                y=defaults.character_y,
            ),
        )

    def edit_character_info(self, character_id: str, name: str, icon: str) -> bool:
        return self._apply(
            "edit_character_info",
            lambda state: mutations.edit_character_info(state, character_id, name, icon),
        )

    def recolor_characters(self, character_ids: Iterable[str], color: str) -> int:
        ids = list(character_ids)
        return self._apply(
            "recolor_characters",
            lambda state: mutations.recolor_characters(state, ids, color),
        )

    def move_character(self, character_id: str, x: float, y: float) -> bool:
        return self._apply(
            "move_character",
            lambda state: mutations.move_character(state, character_id, x, y),
        )

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def create_node(
        self,
        full_text: str,
        x: float,
        y: float,
        notes: str = "",
        *,
        short_text: str | None = None,
    ) -> Node | None:
        """Add a node to the open dialogue.

        Returns:
            The node, or None if no dialogue is open or *full_text* is empty.
        """
        color = self.config.defaults.node_color
        return self._apply_to_dialogue(
            "create_node",
            lambda d: mutations.create_node(
                d, full_text, x, y, notes, short_text=short_text, color=color
            ),
        )

    def create_root_node(self, full_text: str, notes: str = "") -> Node | None:
        """Add a starting-point node (no incoming option) to the open dialogue."""
        defaults = self.config.defaults
        return self.create_node(full_text, defaults.root_x, defaults.root_y, notes)

    def create_option(
        self,
        from_node_id: str,
        full_text: str,
        option_text: str = "",
        notes: str = "",
        *,
        x: float | None = None,
        y: float | None = None,
    ) -> Node | None:
        """Create an option from *from_node_id* leading to a new node."""
        defaults = self.config.defaults
        return self._apply_to_dialogue(
            "create_option",
            lambda d: mutations.create_option(
                d,
                from_node_id,
                full_text,
                option_text,
                notes,
                x=x,
                y=y,
                offset_x=defaults.option_offset_x,
                color=defaults.node_color,
            ),
        )

    def edit_node_text(self, node_id: str, full_text: str, notes: str = "") -> bool:
        result = self._apply_to_dialogue(
            "edit_node_text",
            lambda d: mutations.edit_node_text(d, node_id, full_text, notes),
        )
        return bool(result)

    def recolor_nodes(self, node_ids: Iterable[str], color: str) -> int:
        ids = list(node_ids)
        result = self._apply_to_dialogue(
            "recolor_nodes", lambda d: mutations.recolor_nodes(d, ids, color)
        )
        return result or 0

    def move_node(self, node_id: str, x: float, y: float) -> bool:
        result = self._apply_to_dialogue(
            "move_node", lambda d: mutations.move_node(d, node_id, x, y)
        )
        return bool(result)

    def delete_nodes(self, node_ids: Iterable[str]) -> bool:
        """Delete nodes and everything referencing them, as one edit."""
        ids = list(node_ids)
        result = self._apply_to_dialogue(
            "delete_nodes", lambda d: mutations.delete_nodes(d, ids)
        )
        return bool(result)

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def create_connection(self, from_id: str, to_id: str, label: str) -> Connection | None:
        """Append a connection without any checks on its endpoints."""
        return self._apply_to_dialogue(
            "create_connection",
            lambda d: mutations.create_connection(d, from_id, to_id, label),
        )

    def connect_nodes(
        self, from_id: str, to_id: str | None, label: str | None = None
    ) -> Connection | None:
        """Finish a connection drag from *from_id* onto *to_id*.

        Dropping on empty canvas (*to_id* None) or back on the origin node
        makes no connection and returns None; the caller then offers to
        create a new option node instead.
        """
        if to_id is None or to_id == from_id:
            log.debug("connection_abandoned", from_id=from_id, to_id=to_id)
            return None
        return self.create_connection(
            from_id, to_id, self.config.defaults.option_label if label is None else label
        )

    def edit_connection_label(self, index: int, text: str) -> bool:
        """Relabel a connection. Unchanged labels record nothing."""
        result = self._apply_to_dialogue(
            "edit_connection_label",
            lambda d: mutations.edit_connection_label(d, index, text),
        )
        return bool(result)

    def branch_from_connection(self, index: int, x: float, y: float) -> Node | None:
        """Branch an interruption off the connection at *index* near (*x*, *y*)."""
        defaults = self.config.defaults
        return self._apply_to_dialogue(
            "branch_from_connection",
            lambda d: mutations.branch_from_connection(
                d, index, x, y, color=defaults.node_color, offset=defaults.interrupt_offset
            ),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def highlight_path(self, node_id: str) -> list[str]:
        """Ids from *node_id* back to its root in the open dialogue."""
        dialogue = self.current_dialogue
        if dialogue is None:
            return []
        return reconstruct_path(dialogue, node_id)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> EditorState | None:
        """Restore the previous snapshot. Returns None if there is none."""
        return self._restore(self.history.undo(), "undo")

    def redo(self) -> EditorState | None:
        """Restore the next snapshot. Returns None if there is none."""
        return self._restore(self.history.redo(), "redo")

    def _restore(self, state: EditorState | None, action: str) -> EditorState | None:
        if state is None:
            return None
        self._state = state
        if self.current_character_id is not None and not state.has_character(
            self.current_character_id
        ):
            self.close_dialogue()
        log.debug(action, cursor=self.history.cursor)
        return state

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Flush pending writes and release the store."""
        if self.store is not None:
            self.store.close()
            self.store = None
            self.history.store = None

    def __enter__(self) -> DialogueEditor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"DialogueEditor(state={self._state!r}, history={self.history!r}, "
            f"open={self.current_character_id})"
        )
