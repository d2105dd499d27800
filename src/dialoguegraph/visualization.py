"""Dialogue graph visualization.

Extracts the node/option structure of one character's dialogue and renders
it as DOT (Graphviz) or Mermaid markup. Read-only; inert references
(connections or interruptions naming missing nodes) are left out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from dialoguegraph.graph.paths import reconstruct_path, root_node_ids
from dialoguegraph.graph.state import live_connections, live_interruptions
from dialoguegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from dialoguegraph.models import Character

log = get_logger(__name__)

_HIGHLIGHT_COLOR = "#FF8C00"  # dark orange for the selected node's ancestry
_INTERRUPT_COLOR = "#333333"
_LABEL_MAX = 40

EdgeKind = Literal["option", "interruption"]


@dataclass
class VizNode:
    """A dialogue node in the visualization."""

    id: str
    label: str
    full_text: str = ""
    fill: str = "#ffffff"
    font_color: str = "#000"
    is_root: bool = False
    highlighted: bool = False


@dataclass
class VizEdge:
    """An option or interruption edge in the visualization."""

    from_id: str
    to_id: str
    label: str = ""
    kind: EdgeKind = "option"
    highlighted: bool = False


@dataclass
class DialogueView:
    """Complete visualization data for one character's dialogue."""

    title: str
    nodes: list[VizNode]
    edges: list[VizEdge]
    highlight_path: list[str] = field(default_factory=list)


def contrast_color(hex_color: str) -> str:
    """Pick black or white text for a background color.

    Uses YIQ brightness: backgrounds at or above 128 get black text.

    Raises:
        ValueError: If *hex_color* is not ``#rgb`` or ``#rrggbb``.
    """
    value = hex_color.removeprefix("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        raise ValueError(f"Not a hex color: {hex_color!r}")
    r, g, b = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return "#000" if yiq >= 128 else "#fff"


def build_dialogue_view(character: Character, *, highlight: str | None = None) -> DialogueView:
    """Extract visualization data from a character's dialogue.

    Args:
        character: Character whose dialogue to draw.
        highlight: Node whose ancestry chain should be emphasized.

    Returns:
        DialogueView with nodes and edges.
    """
    dialogue = character.dialogue
    path = reconstruct_path(dialogue, highlight) if highlight is not None else []
    on_path = set(path)
    roots = set(root_node_ids(dialogue))

    nodes: list[VizNode] = []
    for nid, node in dialogue.nodes.items():
        try:
            font_color = contrast_color(node.color)
        except ValueError:
            log.warning("unparseable_node_color", node_id=nid, color=node.color)
            font_color = "#000"
        nodes.append(
            VizNode(
                id=nid,
                label=_truncate(node.text, _LABEL_MAX),
                full_text=node.full_text,
                fill=node.color,
                font_color=font_color,
                is_root=nid in roots,
                highlighted=nid in on_path,
            )
        )

    # The walk follows the last connection into each node, so only those are lit
    last_into = {conn.to_id: index for index, conn in enumerate(dialogue.connections)}
    walked = {last_into[nid] for nid in path[:-1]}

    edges: list[VizEdge] = []
    for index, conn in live_connections(dialogue):
        edges.append(
            VizEdge(
                from_id=conn.from_id,
                to_id=conn.to_id,
                label=conn.text,
                highlighted=index in walked,
            )
        )
    for inter, conn in live_interruptions(dialogue):
        edges.append(VizEdge(from_id=conn.from_id, to_id=inter.to_id, kind="interruption"))

    log.info(
        "dialogue_view_built",
        character_id=character.id,
        nodes=len(nodes),
        edges=len(edges),
        highlighted=len(path),
    )
    return DialogueView(title=character.name, nodes=nodes, edges=edges, highlight_path=path)


def render_dot(view: DialogueView, *, no_labels: bool = False) -> str:
    """Render a DialogueView as DOT (Graphviz) markup.

    Args:
        view: Dialogue view data.
        no_labels: If True, omit option labels on edges.

    Returns:
        DOT format string.
    """
    lines = [
        "digraph dialogue {",
        f'  label="{_dot_escape(view.title)}";',
        "  rankdir=LR;",
        '  node [fontname="Helvetica" fontsize=10 shape=box style="filled,rounded"];',
        '  edge [fontname="Helvetica" fontsize=8];',
        "",
    ]

    for node in view.nodes:
        attrs = {
            "label": f'"{_dot_escape(node.label)}"',
            "tooltip": f'"{_dot_escape(node.full_text)}"',
            "fillcolor": f'"{node.fill}"',
            "fontcolor": f'"{node.font_color}"',
        }
        if node.is_root:
            attrs["peripheries"] = "2"
        if node.highlighted:
            attrs["color"] = f'"{_HIGHLIGHT_COLOR}"'
            attrs["penwidth"] = '"3"'
        attr_str = " ".join(f"{k}={v}" for k, v in attrs.items())
        lines.append(f'  "{node.id}" [{attr_str}];')

    lines.append("")

    for edge in view.edges:
        edge_attrs: dict[str, str] = {}
        if not no_labels and edge.label:
            edge_attrs["label"] = f'"{_dot_escape(edge.label)}"'
        if edge.kind == "interruption":
            edge_attrs["style"] = '"dashed"'
            edge_attrs["color"] = f'"{_INTERRUPT_COLOR}"'
        elif edge.highlighted:
            edge_attrs["color"] = f'"{_HIGHLIGHT_COLOR}"'
            edge_attrs["penwidth"] = '"2"'
        edge_attr_str = " ".join(f"{k}={v}" for k, v in edge_attrs.items())
        suffix = f" [{edge_attr_str}]" if edge_attr_str else ""
        lines.append(f'  "{edge.from_id}" -> "{edge.to_id}"{suffix};')

    lines.append("}")
    return "\n".join(lines)


def render_mermaid(view: DialogueView, *, no_labels: bool = False) -> str:
    """Render a DialogueView as Mermaid markup.

    Args:
        view: Dialogue view data.
        no_labels: If True, omit option labels on edges.

    Returns:
        Mermaid format string.
    """
    lines = ["graph LR"]

    for node in view.nodes:
        safe_id = _mermaid_id(node.id)
        label = _mermaid_escape(node.label)
        shape = f'(["{label}"])' if node.is_root else f'["{label}"]'
        suffix = ":::highlight" if node.highlighted else ""
        lines.append(f"  {safe_id}{shape}{suffix}")
        lines.append(f"  style {safe_id} fill:{node.fill},color:{node.font_color}")

    lines.append("")

    highlighted_edges: list[int] = []
    for i, edge in enumerate(view.edges):
        src = _mermaid_id(edge.from_id)
        dst = _mermaid_id(edge.to_id)
        arrow = "-.->" if edge.kind == "interruption" else "-->"
        if not no_labels and edge.label:
            label = _mermaid_escape(edge.label)
            lines.append(f'  {src} {arrow}|"{label}"| {dst}')
        else:
            lines.append(f"  {src} {arrow} {dst}")
        if edge.highlighted:
            highlighted_edges.append(i)

    lines.append("")
    lines.append(f"  classDef highlight stroke:{_HIGHLIGHT_COLOR},stroke-width:3px")
    if highlighted_edges:
        idx_list = ",".join(str(i) for i in highlighted_edges)
        lines.append(f"  linkStyle {idx_list} stroke:{_HIGHLIGHT_COLOR},stroke-width:2px")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _truncate(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _dot_escape(text: str) -> str:
    """Escape special characters for DOT labels."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _mermaid_id(node_id: str) -> str:
    """Convert a node ID to a Mermaid-safe identifier."""
    return node_id.replace("::", "_").replace(" ", "_").replace("-", "_")


def _mermaid_escape(text: str) -> str:
    """Escape special characters for Mermaid labels."""
    return text.replace('"', "&quot;").replace("\n", " ")
