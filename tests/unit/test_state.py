"""Tests for EditorState, the in-memory graph store."""

from __future__ import annotations

import pytest

from dialoguegraph.graph import (
    CharacterExistsError,
    CharacterNotFoundError,
    EditorState,
    NodeNotFoundError,
    SnapshotFormatError,
    anchor_connection,
    live_connections,
    live_interruptions,
    require_node,
)
from dialoguegraph.models import Character, Connection, Interruption


class TestCharacters:
    """Character lookup and insertion."""

    def test_empty(self) -> None:
        state = EditorState.empty()
        assert state.characters == {}
        assert state.character_ids() == []

    def test_add_and_get(self) -> None:
        state = EditorState.empty()
        state.add_character(Character(id="char_1", name="Ann"))
        assert state.has_character("char_1")
        assert state.get_character("char_1") is not None
        assert state.get_character("missing") is None

    def test_add_duplicate_raises(self) -> None:
        state = EditorState.empty()
        state.add_character(Character(id="char_1", name="Ann"))
        with pytest.raises(CharacterExistsError, match="char_1"):
            state.add_character(Character(id="char_1", name="Other"))

    def test_require_missing_suggests(self, sample_state: EditorState) -> None:
        with pytest.raises(CharacterNotFoundError) as exc_info:
            sample_state.require_character("char_3")
        assert "did you mean" in str(exc_info.value)
        assert exc_info.value.available == ["char_1", "char_2"]

    def test_dialogue_accessor(self, sample_state: EditorState) -> None:
        assert set(sample_state.dialogue("char_1").nodes) == {"A", "B", "C", "I"}


class TestCopy:
    """Copies are fully independent."""

    def test_copy_equal(self, sample_state: EditorState) -> None:
        assert sample_state.copy() == sample_state

    def test_copy_is_deep(self, sample_state: EditorState) -> None:
        clone = sample_state.copy()
        clone.dialogue("char_1").nodes["A"].full_text = "changed"
        clone.dialogue("char_1").connections.clear()
        assert sample_state.dialogue("char_1").nodes["A"].full_text == "A says hello"
        assert len(sample_state.dialogue("char_1").connections) == 2

    def test_not_hashable(self) -> None:
        with pytest.raises(TypeError):
            hash(EditorState.empty())

    def test_repr_counts(self, sample_state: EditorState) -> None:
        assert repr(sample_state) == "EditorState(characters=2, nodes=4, connections=2)"


class TestSerialization:
    """to_dict/from_dict use the wire format."""

    def test_to_dict_wire_names(self, sample_state: EditorState) -> None:
        data = sample_state.to_dict()
        node = data["char_1"]["dialogue"]["nodes"]["A"]
        assert node["fullText"] == "A says hello"
        conn = data["char_1"]["dialogue"]["connections"][0]
        assert (conn["from"], conn["to"]) == ("A", "B")
        inter = data["char_1"]["dialogue"]["interruptions"][0]
        assert inter == {"from": {"fromNode": "A", "toNode": "B", "connectionId": "conn_1"}, "to": "I"}

    def test_from_dict_rejects_non_mapping(self) -> None:
        with pytest.raises(SnapshotFormatError, match="mapping"):
            EditorState.from_dict([1, 2, 3])

    def test_from_dict_rejects_bad_character(self) -> None:
        with pytest.raises(SnapshotFormatError, match="Invalid snapshot"):
            EditorState.from_dict({"char_1": {"id": "char_1"}})

    def test_to_dict_returns_fresh_objects(self, sample_state: EditorState) -> None:
        data = sample_state.to_dict()
        data["char_1"]["name"] = "Mutated"
        assert sample_state.require_character("char_1").name == "Ann"


class TestDialogueQueries:
    """Node lookup and dangling-reference helpers."""

    def test_require_node(self, sample_state: EditorState) -> None:
        dialogue = sample_state.dialogue("char_1")
        assert require_node(dialogue, "A").id == "A"
        with pytest.raises(NodeNotFoundError, match="edit"):
            require_node(dialogue, "Z", context="edit")

    def test_anchor_prefers_connection_id(self, sample_state: EditorState) -> None:
        dialogue = sample_state.dialogue("char_1")
        # A second A -> B connection comes first; the id still picks conn_1.
        dialogue.connections.insert(0, Connection(id="conn_0", from_id="A", to_id="B"))
        inter = dialogue.interruptions[0]
        conn = anchor_connection(dialogue, inter)
        assert conn is not None
        assert conn.id == "conn_1"

    def test_anchor_falls_back_to_endpoints(self, sample_state: EditorState) -> None:
        dialogue = sample_state.dialogue("char_1")
        inter = Interruption.model_validate({"from": {"fromNode": "B", "toNode": "C"}, "to": "I"})
        conn = anchor_connection(dialogue, inter)
        assert conn is not None
        assert conn.id == "conn_2"

    def test_anchor_missing(self, sample_state: EditorState) -> None:
        dialogue = sample_state.dialogue("char_1")
        inter = Interruption.model_validate({"from": {"fromNode": "C", "toNode": "A"}, "to": "I"})
        assert anchor_connection(dialogue, inter) is None

    def test_live_helpers_skip_dangling(self, sample_state: EditorState) -> None:
        dialogue = sample_state.dialogue("char_1")
        dialogue.connections.append(Connection(from_id="C", to_id="ghost"))
        del dialogue.nodes["I"]
        assert [i for i, _ in live_connections(dialogue)] == [0, 1]
        assert live_interruptions(dialogue) == []


class TestValidateInvariants:
    """validate_invariants reports but never repairs."""

    def test_clean(self, sample_state: EditorState) -> None:
        assert sample_state.validate_invariants() == []

    def test_reports_dangling(self, sample_state: EditorState) -> None:
        dialogue = sample_state.dialogue("char_1")
        dialogue.connections.append(Connection(from_id="C", to_id="ghost"))
        dialogue.interruptions.append(
            Interruption.model_validate({"from": {"fromNode": "X", "toNode": "Y"}, "to": "lost"})
        )
        violations = sample_state.validate_invariants()
        assert any("ghost" in v for v in violations)
        assert any("has no connection" in v for v in violations)
        assert any("lost" in v for v in violations)
        assert len(dialogue.connections) == 3

    def test_reports_key_mismatch(self) -> None:
        state = EditorState({"char_x": Character(id="char_y", name="Ann")})
        assert state.validate_invariants() == ["Character key 'char_x' does not match id 'char_y'"]
