"""Tests for the linear undo/redo history."""

from __future__ import annotations

import pytest

from dialoguegraph.graph import EditorState, History, MemorySnapshotStore, SnapshotStoreError
from dialoguegraph.models import Character


def _state_with(*names: str) -> EditorState:
    """Build a state containing one character per name (ids = names)."""
    return EditorState({n: Character(id=n, name=n) for n in names})


class FailingStore(MemorySnapshotStore):
    """Store whose saves always fail."""

    def save(self, snapshot: dict) -> None:
        raise SnapshotStoreError("disk full")


class TestHistoryBasics:
    """Initial history state."""

    def test_initial(self) -> None:
        history = History(EditorState.empty())
        assert len(history) == 1
        assert history.cursor == 0
        assert not history.can_undo
        assert not history.can_redo
        assert history.current() == EditorState.empty()

    def test_initial_not_persisted(self) -> None:
        store = MemorySnapshotStore()
        History(_state_with("a"), store=store)
        assert store.save_count == 0

    def test_undo_redo_at_bounds(self) -> None:
        history = History(EditorState.empty())
        assert history.undo() is None
        assert history.redo() is None
        assert history.cursor == 0

    def test_invalid_max_entries(self) -> None:
        with pytest.raises(ValueError, match="max_entries"):
            History(EditorState.empty(), max_entries=0)


class TestHistoryLinearity:
    """Recording after an undo drops the redo-able future."""

    def test_record_after_undo_truncates(self) -> None:
        s0, s1, s2, s3 = (
            EditorState.empty(),
            _state_with("a"),
            _state_with("a", "b"),
            _state_with("a", "c"),
        )
        history = History(s0)
        history.record(s1)
        history.record(s2)
        history.undo()
        history.record(s3)

        assert len(history) == 3
        assert [history.snapshot_at(i) for i in range(3)] == [s0, s1, s3]
        assert history.redo() is None
        assert history.current() == s3

    def test_undo_redo_round_trip(self) -> None:
        states = [EditorState.empty(), _state_with("a"), _state_with("a", "b")]
        history = History(states[0])
        for state in states[1:]:
            history.record(state)

        assert history.undo() == states[1]
        assert history.undo() == states[0]
        assert not history.can_undo
        assert history.redo() == states[1]
        assert history.redo() == states[2]
        assert not history.can_redo


class TestSnapshotIndependence:
    """Stored snapshots never change after they are recorded."""

    def test_mutating_recorded_state(self) -> None:
        state = _state_with("a")
        history = History(EditorState.empty())
        history.record(state)
        state.require_character("a").name = "changed"
        assert history.current().require_character("a").name == "a"

    def test_mutating_returned_state(self) -> None:
        history = History(EditorState.empty())
        history.record(_state_with("a"))
        history.record(_state_with("a", "b"))
        restored = history.undo()
        assert restored is not None
        restored.require_character("a").name = "changed"
        assert history.current().require_character("a").name == "a"
        assert history.redo() == _state_with("a", "b")


class TestMaxEntries:
    """Bounded history drops the oldest snapshots."""

    def test_oldest_dropped(self) -> None:
        history = History(EditorState.empty(), max_entries=2)
        history.record(_state_with("a"))
        history.record(_state_with("a", "b"))
        assert len(history) == 2
        assert history.cursor == 1
        assert history.undo() == _state_with("a")
        assert history.undo() is None


class TestHistoryPersistence:
    """Every cursor change is mirrored to the store."""

    def test_record_undo_redo_save(self) -> None:
        store = MemorySnapshotStore()
        history = History(EditorState.empty(), store=store)
        history.record(_state_with("a"))
        assert store.load() == _state_with("a").to_dict()
        history.undo()
        assert store.load() == {}
        history.redo()
        assert store.load() == _state_with("a").to_dict()
        assert store.save_count == 3

    def test_save_failure_is_not_fatal(self) -> None:
        history = History(EditorState.empty(), store=FailingStore())
        history.record(_state_with("a"))
        assert history.cursor == 1
        assert history.undo() == EditorState.empty()

    def test_repr(self) -> None:
        history = History(EditorState.empty())
        history.record(_state_with("a"))
        assert repr(history) == "History(entries=2, cursor=1)"
