"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from dialoguegraph.editor import DialogueEditor, EditorConfig
from dialoguegraph.graph import EditorState, MemorySnapshotStore
from dialoguegraph.models import Character, Connection, Dialogue, Interruption, Node


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def store() -> MemorySnapshotStore:
    """Empty in-memory snapshot store."""
    return MemorySnapshotStore()


@pytest.fixture
def bare_config() -> EditorConfig:
    """Config that does not seed a start node into empty dialogues."""
    return EditorConfig(name="test", auto_start_node=False)


@pytest.fixture
def editor(store: MemorySnapshotStore, bare_config: EditorConfig) -> DialogueEditor:
    """Session over an empty state, persisting to *store*."""
    return DialogueEditor(store=store, config=bare_config)


def _make_node(node_id: str, text: str | None = None, **kwargs: object) -> Node:
    """Build a node whose full text defaults to its id."""
    full_text = text if text is not None else node_id
    return Node(id=node_id, text=full_text.split()[0], full_text=full_text, **kwargs)


@pytest.fixture
def sample_state() -> EditorState:
    """Two characters; Ann has A -> B -> C with an interruption on A -> B."""
    ann = Character(
        id="char_1",
        name="Ann",
        color="#aa0000",
        dialogue=Dialogue(
            nodes={nid: _make_node(nid, f"{nid} says hello") for nid in ("A", "B", "C", "I")},
            connections=[
                Connection(id="conn_1", from_id="A", to_id="B", text="Hi"),
                Connection(id="conn_2", from_id="B", to_id="C", text="Bye"),
            ],
            interruptions=[
                Interruption.model_validate(
                    {"from": {"fromNode": "A", "toNode": "B", "connectionId": "conn_1"}, "to": "I"}
                )
            ],
        ),
    )
    bob = Character(id="char_2", name="Bob", icon="🧙", x=300, y=40)
    return EditorState({ann.id: ann, bob.id: bob})
