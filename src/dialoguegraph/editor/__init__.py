"""Editor package - editing sessions, configuration, and autosave."""

from dialoguegraph.editor.autosave import QueuedSnapshotWriter
from dialoguegraph.editor.config import (
    CONFIG_FILENAME,
    DefaultsConfig,
    EditorConfig,
    HistoryConfig,
    ProjectConfigError,
    StorageConfig,
    create_default_config,
    load_project_config,
    write_project_config,
)
from dialoguegraph.editor.session import DialogueEditor, load_initial_state

__all__ = [
    "CONFIG_FILENAME",
    "DefaultsConfig",
    "DialogueEditor",
    "EditorConfig",
    "HistoryConfig",
    "ProjectConfigError",
    "QueuedSnapshotWriter",
    "StorageConfig",
    "create_default_config",
    "load_initial_state",
    "load_project_config",
    "write_project_config",
]
