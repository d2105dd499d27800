"""Tests for dialogue graph visualization."""

from __future__ import annotations

import pytest

from dialoguegraph.graph import EditorState
from dialoguegraph.models import Character, Connection, Node
from dialoguegraph.visualization import (
    build_dialogue_view,
    contrast_color,
    render_dot,
    render_mermaid,
)


def _ann(state: EditorState) -> Character:
    return state.require_character("char_1")


class TestContrastColor:
    """Font color follows YIQ brightness."""

    @pytest.mark.parametrize(
        ("background", "expected"),
        [
            ("#ffffff", "#000"),
            ("#000000", "#fff"),
            ("#ffff00", "#000"),
            ("#0000ff", "#fff"),
            ("#fff", "#000"),
            ("808080", "#000"),
        ],
    )
    def test_contrast(self, background: str, expected: str) -> None:
        assert contrast_color(background) == expected

    def test_threshold_boundary(self) -> None:
        # (r*299 + g*587 + b*114) / 1000 == 128 exactly for gray 128.
        assert contrast_color("#808080") == "#000"
        assert contrast_color("#7f7f7f") == "#fff"

    def test_invalid(self) -> None:
        with pytest.raises(ValueError, match="Not a hex color"):
            contrast_color("#12")


class TestBuildDialogueView:
    """View extraction from a character's dialogue."""

    def test_nodes_and_edges(self, sample_state: EditorState) -> None:
        view = build_dialogue_view(_ann(sample_state))
        assert view.title == "Ann"
        assert [n.id for n in view.nodes] == ["A", "B", "C", "I"]
        options = [e for e in view.edges if e.kind == "option"]
        interruptions = [e for e in view.edges if e.kind == "interruption"]
        assert [(e.from_id, e.to_id, e.label) for e in options] == [
            ("A", "B", "Hi"),
            ("B", "C", "Bye"),
        ]
        # Interruptions are drawn from the source of the connection they branch off.
        assert [(e.from_id, e.to_id) for e in interruptions] == [("A", "I")]

    def test_roots(self, sample_state: EditorState) -> None:
        view = build_dialogue_view(_ann(sample_state))
        roots = {n.id for n in view.nodes if n.is_root}
        assert roots == {"A", "I"}

    def test_highlight(self, sample_state: EditorState) -> None:
        view = build_dialogue_view(_ann(sample_state), highlight="C")
        assert view.highlight_path == ["C", "B", "A"]
        assert {n.id for n in view.nodes if n.highlighted} == {"A", "B", "C"}
        assert all(e.highlighted for e in view.edges if e.kind == "option")

    def test_highlight_only_walked_options(self, sample_state: EditorState) -> None:
        """Other options between nodes on the path stay unlit."""
        char = _ann(sample_state)
        connections = char.dialogue.connections
        connections.insert(0, Connection(from_id="A", to_id="B", text="Wave"))
        connections.append(Connection(from_id="C", to_id="A", text="Back"))

        view = build_dialogue_view(char, highlight="C")
        assert view.highlight_path == ["C", "B", "A"]
        lit = [e.label for e in view.edges if e.highlighted]
        assert lit == ["Hi", "Bye"]

    def test_dangling_references_skipped(self, sample_state: EditorState) -> None:
        char = _ann(sample_state)
        char.dialogue.connections.append(Connection(from_id="C", to_id="ghost"))
        del char.dialogue.nodes["B"]
        view = build_dialogue_view(char)
        assert view.edges == []

    def test_bad_color_falls_back(self, sample_state: EditorState) -> None:
        char = _ann(sample_state)
        char.dialogue.nodes["A"].color = "tomato"
        view = build_dialogue_view(char)
        assert view.nodes[0].font_color == "#000"

    def test_long_label_truncated(self, sample_state: EditorState) -> None:
        char = _ann(sample_state)
        char.dialogue.nodes["A"].text = "x" * 60
        view = build_dialogue_view(char)
        assert view.nodes[0].label.endswith("...")
        assert len(view.nodes[0].label) == 40


class TestRenderDot:
    """DOT output."""

    def test_structure(self, sample_state: EditorState) -> None:
        dot = render_dot(build_dialogue_view(_ann(sample_state)))
        assert dot.startswith("digraph dialogue {")
        assert dot.endswith("}")
        assert '"A" -> "B" [label="Hi"];' in dot
        assert '"A" -> "I" [style="dashed"' in dot
        assert 'fontcolor="#000"' in dot
        assert "peripheries=2" in dot

    def test_no_labels(self, sample_state: EditorState) -> None:
        dot = render_dot(build_dialogue_view(_ann(sample_state)), no_labels=True)
        assert 'label="Hi"' not in dot
        assert '"A" -> "B";' in dot

    def test_highlight_attrs(self, sample_state: EditorState) -> None:
        dot = render_dot(build_dialogue_view(_ann(sample_state), highlight="B"))
        assert 'penwidth="3"' in dot
        assert '"A" -> "B" [label="Hi" color="#FF8C00" penwidth="2"];' in dot

    def test_escapes_quotes(self, sample_state: EditorState) -> None:
        char = _ann(sample_state)
        char.dialogue.nodes["A"].text = 'Say "hi"'
        dot = render_dot(build_dialogue_view(char))
        assert 'label="Say \\"hi\\""' in dot


class TestRenderMermaid:
    """Mermaid output."""

    def test_structure(self, sample_state: EditorState) -> None:
        mermaid = render_mermaid(build_dialogue_view(_ann(sample_state)))
        assert mermaid.startswith("graph LR")
        assert 'A -->|"Hi"| B' in mermaid
        assert "A -.-> I" in mermaid
        assert "style A fill:#ffffff,color:#000" in mermaid

    def test_highlight(self, sample_state: EditorState) -> None:
        mermaid = render_mermaid(build_dialogue_view(_ann(sample_state), highlight="C"))
        assert ":::highlight" in mermaid
        assert "linkStyle 0,1 " in mermaid

    def test_safe_ids(self) -> None:
        state = EditorState({"c": Character(id="c", name="C")})
        char = state.require_character("c")
        char.dialogue.connections.append(Connection(from_id="a-b", to_id="c d"))
        char.dialogue.nodes["a-b"] = Node(id="a-b", text="x", full_text="x")
        char.dialogue.nodes["c d"] = Node(id="c d", text="y", full_text="y")
        mermaid = render_mermaid(build_dialogue_view(char))
        assert "a_b --> c_d" in mermaid
