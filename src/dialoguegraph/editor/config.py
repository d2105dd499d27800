"""Project configuration loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from dialoguegraph.models import DEFAULT_CHARACTER_COLOR, DEFAULT_ICON, DEFAULT_NODE_COLOR

CONFIG_FILENAME = "dialogue.yaml"
DEFAULT_DB_FILENAME = "dialogue.db"


@dataclass
class DefaultsConfig:
    """Default values applied to new characters and nodes.

    Attributes:
        icon: Icon for new characters and for blank icon edits.
        character_color: Color for characters created without one.
        node_color: Fill color for new nodes.
        character_x: Home-canvas x of new characters.
        character_y: Home-canvas y of new characters.
        root_x: Canvas x of nodes created as a starting point.
        root_y: Canvas y of nodes created as a starting point.
        start_x: Canvas x of the node seeded into an empty dialogue.
        start_y: Canvas y of the node seeded into an empty dialogue.
        option_offset_x: Horizontal distance of an option's node from its origin.
        interrupt_offset: Offset of an interruption node from the branch point.
        option_label: Label of connections drawn between existing nodes.
        start_text: Short text of the node seeded into an empty dialogue.
        start_full_text: Full text of the node seeded into an empty dialogue.
    """

    icon: str = DEFAULT_ICON
    character_color: str = DEFAULT_CHARACTER_COLOR
    node_color: str = DEFAULT_NODE_COLOR
    character_x: float = 100
    character_y: float = 100
    root_x: float = 100
    root_y: float = 100
    start_x: float = 50
    start_y: float = 50
    option_offset_x: float = 250
    interrupt_offset: float = 50
    option_label: str = "Option"
    start_text: str = "Talk"
    start_full_text: str = "Start of the conversation"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DefaultsConfig:
        """Create config from dictionary, keeping defaults for missing keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class HistoryConfig:
    """Undo history configuration.

    Attributes:
        max_entries: Maximum retained snapshots. None keeps every snapshot.
    """

    max_entries: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryConfig:
        return cls(max_entries=data.get("max_entries"))


@dataclass
class StorageConfig:
    """Snapshot storage configuration.

    Attributes:
        path: Database file, relative to the project directory.
        background_autosave: Write snapshots from a background writer thread.
    """

    path: str = DEFAULT_DB_FILENAME
    background_autosave: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorageConfig:
        return cls(
            path=data.get("path", DEFAULT_DB_FILENAME),
            background_autosave=data.get("background_autosave", False),
        )


@dataclass
class EditorConfig:
    """Configuration for a dialogue project.

    Attributes:
        name: Project name.
        version: Config format version.
        auto_start_node: Seed a start node when an empty dialogue is opened.
        defaults: Defaults for new characters and nodes.
        history: Undo history settings.
        storage: Snapshot storage settings.
    """

    name: str = "unnamed"
    version: int = 1
    auto_start_node: bool = True
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary containing config fields.

        Returns:
            EditorConfig instance.
        """
        return cls(
            name=data.get("name", "unnamed"),
            version=data.get("version", 1),
            auto_start_node=data.get("auto_start_node", True),
            defaults=DefaultsConfig.from_dict(dict(data.get("defaults") or {})),
            history=HistoryConfig.from_dict(dict(data.get("history") or {})),
            storage=StorageConfig.from_dict(dict(data.get("storage") or {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the dictionary layout of ``dialogue.yaml``."""
        return {
            "name": self.name,
            "version": self.version,
            "auto_start_node": self.auto_start_node,
            "defaults": dict(vars(self.defaults)),
            "history": {"max_entries": self.history.max_entries},
            "storage": {
                "path": self.storage.path,
                "background_autosave": self.storage.background_autosave,
            },
        }

    def db_path(self, project_path: Path) -> Path:
        """Absolute-or-relative database path for a project directory."""
        return project_path / self.storage.path


class ProjectConfigError(Exception):
    """Raised when project configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


def load_project_config(project_path: Path) -> EditorConfig:
    """Load project configuration from dialogue.yaml.

    Args:
        project_path: Path to the project root directory.

    Returns:
        EditorConfig instance.

    Raises:
        ProjectConfigError: If config cannot be loaded.
    """
    config_path = project_path / CONFIG_FILENAME

    if not config_path.exists():
        raise ProjectConfigError(config_path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ProjectConfigError(config_path, "Empty file")
        if not isinstance(data, dict):
            raise ProjectConfigError(config_path, "Top level must be a mapping")

        return EditorConfig.from_dict(dict(data))
    except Exception as e:
        if isinstance(e, ProjectConfigError):
            raise
        raise ProjectConfigError(config_path, str(e)) from e


def write_project_config(project_path: Path, config: EditorConfig) -> Path:
    """Write *config* to ``{project_path}/dialogue.yaml``.

    Returns:
        Path to the written file.
    """
    project_path.mkdir(parents=True, exist_ok=True)
    config_path = project_path / CONFIG_FILENAME
    yaml_writer = YAML()
    yaml_writer.default_flow_style = False
    with config_path.open("w", encoding="utf-8") as f:
        yaml_writer.dump(config.to_dict(), f)
    return config_path


def create_default_config(name: str) -> EditorConfig:
    """Create a default project configuration named *name*."""
    return EditorConfig(name=name)
