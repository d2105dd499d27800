"""dialoguegraph CLI - typer application entry point."""

from __future__ import annotations

import atexit
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dialoguegraph.observability import (
    bind_context,
    clear_context,
    close_file_logging,
    configure_logging,
    get_logger,
)

# Load environment variables from .env file
load_dotenv()

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dialoguegraph.editor import DialogueEditor
    from dialoguegraph.models import Character

app = typer.Typer(
    name="dlg",
    help="dialoguegraph: author branching character dialogues.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

# Default directory for projects
DEFAULT_PROJECTS_DIR = Path("projects")

EXPORT_FORMATS = ("dot", "mermaid")

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False
_projects_dir: Path = DEFAULT_PROJECTS_DIR

ProjectOption = Annotated[
    Path | None,
    typer.Option(
        "--project",
        "-p",
        help="Project directory. Can be a path or name (looks in --projects-dir).",
    ),
]
CharacterArg = Annotated[str, typer.Argument(help="Character id or name.")]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_to_file: Annotated[
        bool,
        typer.Option("--log", help="Enable file logging to {project}/logs/debug.jsonl."),
    ] = False,
    projects_dir: Annotated[
        Path,
        typer.Option(
            "--projects-dir",
            "-d",
            help="Base directory for projects (default: ./projects).",
            envvar="DLG_PROJECTS_DIR",
        ),
    ] = DEFAULT_PROJECTS_DIR,
) -> None:
    """dialoguegraph: author branching character dialogues."""
    global _verbose, _log_enabled, _projects_dir
    _verbose = verbose
    _log_enabled = log_to_file
    _projects_dir = projects_dir

    # File logging is configured later, once the project is known
    configure_logging(verbosity=verbose)


def _configure_project_logging(project_path: Path) -> None:
    """Configure file logging if --log flag was set."""
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_path)
        atexit.register(close_file_logging)


def _resolve_project_path(project: Path | None) -> Path:
    """Resolve project path from argument.

    Resolution order:
    1. If project is None, use current directory
    2. If project exists as given, use it
    3. If project is a name (no path separators), look in _projects_dir

    Args:
        project: Project path or name from CLI argument.

    Returns:
        Resolved project path.
    """
    if project is None:
        return Path()

    if project.exists():
        return project

    if len(project.parts) == 1:
        projects_path = _projects_dir / project
        if projects_path.exists():
            return projects_path

    # Return as-is (will fail in _require_project with helpful error)
    return project


def _require_project(project_path: Path) -> None:
    """Verify dialogue.yaml exists, exit with error if not."""
    from dialoguegraph.editor import CONFIG_FILENAME

    if not (project_path / CONFIG_FILENAME).exists():
        console.print(
            f"[red]Error:[/red] No {CONFIG_FILENAME} found. "
            "Run 'dlg init <name>' first or use --project."
        )
        raise typer.Exit(1)


@contextmanager
def _open_editor(project: Path | None) -> Iterator[DialogueEditor]:
    """Open an editing session for a project, reporting errors on the console.

    The session is closed (and pending snapshots written) on exit.
    """
    from dialoguegraph.editor import DialogueEditor, ProjectConfigError
    from dialoguegraph.graph import DialogueGraphError

    project_path = _resolve_project_path(project)
    _require_project(project_path)
    _configure_project_logging(project_path)

    try:
        editor = DialogueEditor.open(project_path)
    except ProjectConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if editor.store is None:
        console.print("[yellow]Warning:[/yellow] Storage unavailable; changes will not be saved.")

    bind_context(project=project_path.resolve().name)
    try:
        with editor:
            yield editor
    except DialogueGraphError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    finally:
        clear_context()


def _find_character(editor: DialogueEditor, ref: str) -> Character:
    """Look up a character by id, then by (case-insensitive) name.

    Raises:
        CharacterNotFoundError: If neither matches.
    """
    state = editor.state
    character = state.get_character(ref)
    if character is not None:
        return character
    wanted = ref.casefold()
    matches = [c for c in state.characters.values() if c.name.casefold() == wanted]
    if len(matches) > 1:
        console.print(f"[yellow]Warning:[/yellow] {len(matches)} characters named '{escape(ref)}'")
    if matches:
        return matches[0]
    return state.require_character(ref)


def _open_character(editor: DialogueEditor, ref: str) -> Character:
    """Resolve *ref* and open that character's dialogue."""
    return editor.open_dialogue(_find_character(editor, ref).id)


# =============================================================================
# Project commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from dialoguegraph import __version__

    console.print(f"dialoguegraph v{__version__}")


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Project name")],
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Parent directory for the project (default: --projects-dir).",
        ),
    ] = None,
) -> None:
    """Initialize a new dialogue project.

    Creates a project directory containing dialogue.yaml. The snapshot
    database is created on first use.
    """
    from dialoguegraph.editor import create_default_config, write_project_config

    parent_dir = path if path is not None else _projects_dir
    project_path = parent_dir / name
    if project_path.exists():
        console.print(f"[red]Error:[/red] Directory '{escape(str(project_path))}' already exists")
        raise typer.Exit(1)

    write_project_config(project_path, create_default_config(name))
    log.info("project_created", name=name, path=str(project_path))

    console.print(f"[green]✓[/green] Created project: [bold]{escape(name)}[/bold]")
    console.print(f"  Location: {escape(str(project_path.absolute()))}")
    console.print()
    console.print("Next steps:")
    console.print(f'  dlg add-character "Name" -p {escape(name)}')


# =============================================================================
# Characters
# =============================================================================


@app.command()
def characters(project: ProjectOption = None) -> None:
    """List the characters in a project."""
    with _open_editor(project) as editor:
        chars = list(editor.state.characters.values())
        if not chars:
            console.print("[dim]No characters yet.[/dim]")
            return

        table = Table(title="Characters")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Icon")
        table.add_column("Color")
        table.add_column("Nodes", justify="right")
        table.add_column("Options", justify="right")
        for char in chars:
            table.add_row(
                escape(char.id),
                escape(char.name),
                escape(char.icon),
                escape(char.color),
                str(len(char.dialogue.nodes)),
                str(len(char.dialogue.connections)),
            )
        console.print()
        console.print(table)
        console.print()


@app.command("add-character")
def add_character(
    name: Annotated[str, typer.Argument(help="Character name")],
    color: Annotated[
        str | None,
        typer.Option("--color", "-c", help="Character color (hex, e.g. #336699)."),
    ] = None,
    project: ProjectOption = None,
) -> None:
    """Create a character with an empty dialogue."""
    with _open_editor(project) as editor:
        character = editor.create_character(name, color)
        if character is None:
            console.print("[red]Error:[/red] Character name must not be blank")
            raise typer.Exit(1)
        console.print(
            f"[green]✓[/green] Created character [bold]{escape(character.name)}[/bold] "
            f"({character.id})"
        )


# =============================================================================
# Dialogue editing
# =============================================================================


@app.command()
def show(character: CharacterArg, project: ProjectOption = None) -> None:
    """Show the nodes, options and interruptions of a character's dialogue."""
    from dialoguegraph.graph import anchor_connection

    with _open_editor(project) as editor:
        char = _open_character(editor, character)
        dialogue = char.dialogue

        console.print()
        console.print(
            f"{escape(char.icon)} [bold]{escape(char.name)}[/bold] [dim]({char.id})[/dim]"
        )

        nodes = Table(title="Nodes")
        nodes.add_column("ID", style="cyan")
        nodes.add_column("Text", style="bold")
        nodes.add_column("Full text")
        nodes.add_column("Notes", style="dim")
        for nid, node in dialogue.nodes.items():
            nodes.add_row(
                escape(nid), escape(node.text), escape(node.full_text), escape(node.notes)
            )
        console.print(nodes)

        if dialogue.connections:
            conns = Table(title="Options")
            conns.add_column("#", justify="right")
            conns.add_column("From", style="cyan")
            conns.add_column("To", style="cyan")
            conns.add_column("Label")
            for index, conn in enumerate(dialogue.connections):
                conns.add_row(
                    str(index), escape(conn.from_id), escape(conn.to_id), escape(conn.text)
                )
            console.print(conns)

        if dialogue.interruptions:
            inters = Table(title="Interruptions")
            inters.add_column("Branches off", style="cyan")
            inters.add_column("To", style="cyan")
            for inter in dialogue.interruptions:
                anchor = anchor_connection(dialogue, inter)
                where = escape(f"{inter.anchor.from_node} → {inter.anchor.to_node}")
                if anchor is None:
                    where += " [dim](detached)[/dim]"
                inters.add_row(where, escape(inter.to_id))
            console.print(inters)
        console.print()


@app.command("add-node")
def add_node(
    character: CharacterArg,
    text: Annotated[str, typer.Argument(help="Full text of the node")],
    notes: Annotated[str, typer.Option("--notes", "-n", help="Author notes.")] = "",
    x: Annotated[float | None, typer.Option("--x", help="Canvas x position.")] = None,
    y: Annotated[float | None, typer.Option("--y", help="Canvas y position.")] = None,
    project: ProjectOption = None,
) -> None:
    """Add a node with no incoming option (a new starting point)."""
    with _open_editor(project) as editor:
        _open_character(editor, character)
        defaults = editor.config.defaults
        node = editor.create_node(
            text,
            defaults.root_x if x is None else x,
            defaults.root_y if y is None else y,
            notes,
        )
        if node is None:
            console.print("[red]Error:[/red] Node text must not be empty")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Added node [bold]{escape(node.text)}[/bold] ({node.id})")


@app.command("add-option")
def add_option(
    character: CharacterArg,
    from_node: Annotated[str, typer.Argument(help="Node the option starts from")],
    text: Annotated[str, typer.Argument(help="Full text of the node the option leads to")],
    label: Annotated[str, typer.Option("--label", "-l", help="Option label.")] = "",
    notes: Annotated[str, typer.Option("--notes", "-n", help="Author notes.")] = "",
    project: ProjectOption = None,
) -> None:
    """Add an option leading from a node to a new node."""
    with _open_editor(project) as editor:
        _open_character(editor, character)
        node = editor.create_option(from_node, text, label, notes)
        if node is None:
            console.print("[red]Error:[/red] Node text must not be empty")
            raise typer.Exit(1)
        console.print(
            f"[green]✓[/green] Added option {escape(from_node)} → "
            f"[bold]{escape(node.text)}[/bold] ({node.id})"
        )


@app.command()
def connect(
    character: CharacterArg,
    from_node: Annotated[str, typer.Argument(help="Source node id")],
    to_node: Annotated[str, typer.Argument(help="Target node id")],
    label: Annotated[
        str | None, typer.Option("--label", "-l", help="Option label (default from config).")
    ] = None,
    project: ProjectOption = None,
) -> None:
    """Connect two existing nodes with an option."""
    from dialoguegraph.graph import require_node

    with _open_editor(project) as editor:
        char = _open_character(editor, character)
        require_node(char.dialogue, from_node, context="connect source")
        require_node(char.dialogue, to_node, context="connect target")
        conn = editor.connect_nodes(from_node, to_node, label)
        if conn is None:
            console.print("[red]Error:[/red] A node cannot be connected to itself")
            raise typer.Exit(1)
        console.print(
            f"[green]✓[/green] Connected {escape(conn.from_id)} → {escape(conn.to_id)} "
            f"[dim]'{escape(conn.text)}'[/dim]"
        )


@app.command()
def label(
    character: CharacterArg,
    index: Annotated[int, typer.Argument(help="Option index (see 'dlg show')")],
    text: Annotated[str, typer.Argument(help="New label")],
    project: ProjectOption = None,
) -> None:
    """Relabel an option."""
    with _open_editor(project) as editor:
        _open_character(editor, character)
        if editor.edit_connection_label(index, text):
            console.print(f"[green]✓[/green] Relabeled option {index}")
        else:
            console.print(f"[dim]Option {index} already has that label.[/dim]")


@app.command()
def branch(
    character: CharacterArg,
    index: Annotated[int, typer.Argument(help="Option index (see 'dlg show')")],
    project: ProjectOption = None,
) -> None:
    """Branch an interruption off an option."""
    from dialoguegraph.graph import ConnectionNotFoundError, require_node

    with _open_editor(project) as editor:
        char = _open_character(editor, character)
        dialogue = char.dialogue
        if not 0 <= index < len(dialogue.connections):
            raise ConnectionNotFoundError(index, len(dialogue.connections))
        conn = dialogue.connections[index]
        # Place the branch at the option's midpoint, as if clicked on the line
        start = require_node(dialogue, conn.from_id, context="branch")
        end = require_node(dialogue, conn.to_id, context="branch")
        node = editor.branch_from_connection(
            index, (start.x + end.x) / 2, (start.y + end.y) / 2
        )
        if node is None:
            console.print("[red]Error:[/red] Could not branch from that option")
            raise typer.Exit(1)
        console.print(
            f"[green]✓[/green] Added interruption [bold]{escape(node.text)}[/bold] ({node.id}) "
            f"on {escape(conn.from_id)} → {escape(conn.to_id)}"
        )


@app.command("edit-node")
def edit_node(
    character: CharacterArg,
    node_id: Annotated[str, typer.Argument(help="Node id")],
    text: Annotated[str, typer.Argument(help="New full text")],
    notes: Annotated[str, typer.Option("--notes", "-n", help="Author notes.")] = "",
    project: ProjectOption = None,
) -> None:
    """Replace a node's text and notes."""
    with _open_editor(project) as editor:
        _open_character(editor, character)
        if not editor.edit_node_text(node_id, text, notes):
            console.print("[red]Error:[/red] Node text must not be blank")
            raise typer.Exit(1)
        node = editor.current_dialogue.nodes[node_id]
        console.print(
            f"[green]✓[/green] Updated [bold]{escape(node.text)}[/bold] ({escape(node_id)})"
        )


@app.command()
def delete(
    character: CharacterArg,
    node_ids: Annotated[list[str], typer.Argument(help="Node ids to delete")],
    project: ProjectOption = None,
) -> None:
    """Delete nodes together with their options and interruptions."""
    with _open_editor(project) as editor:
        _open_character(editor, character)
        if editor.delete_nodes(node_ids):
            console.print(f"[green]✓[/green] Deleted {escape(', '.join(node_ids))}")
        else:
            console.print("[dim]Nothing to delete.[/dim]")


# =============================================================================
# Queries
# =============================================================================


@app.command()
def path(
    character: CharacterArg,
    node_id: Annotated[str, typer.Argument(help="Node to trace back from")],
    project: ProjectOption = None,
) -> None:
    """Print the chain of nodes leading to a node."""
    from dialoguegraph.graph import require_node

    with _open_editor(project) as editor:
        char = _open_character(editor, character)
        require_node(char.dialogue, node_id, context="path")
        nodes = char.dialogue.nodes
        # Dangling connection sources show up as bare ids
        trail = [
            f"{escape(nodes[nid].text)} [dim]({escape(nid)})[/dim]" if nid in nodes else escape(nid)
            for nid in editor.highlight_path(node_id)
        ]
        console.print(" ← ".join(trail))


@app.command()
def export(
    character: CharacterArg,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: dot or mermaid."),
    ] = "dot",
    highlight: Annotated[
        str | None,
        typer.Option("--highlight", help="Highlight the path leading to this node."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to a file instead of stdout."),
    ] = None,
    no_labels: Annotated[
        bool, typer.Option("--no-labels", help="Omit option labels.")
    ] = False,
    project: ProjectOption = None,
) -> None:
    """Export a character's dialogue graph as DOT or Mermaid."""
    from dialoguegraph.visualization import build_dialogue_view, render_dot, render_mermaid

    if output_format not in EXPORT_FORMATS:
        console.print(
            f"[red]Error:[/red] Unknown format '{escape(output_format)}' "
            f"(choose from: {', '.join(EXPORT_FORMATS)})"
        )
        raise typer.Exit(1)

    with _open_editor(project) as editor:
        char = _find_character(editor, character)
        view = build_dialogue_view(char, highlight=highlight)
        render = render_dot if output_format == "dot" else render_mermaid
        text = render(view, no_labels=no_labels)

    if output is None:
        console.print(text, markup=False, highlight=False, soft_wrap=True)
        return
    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {output_format} to {escape(str(output))}")


if __name__ == "__main__":
    app()
