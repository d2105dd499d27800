"""dialoguegraph: branching dialogue trees for characters, with undo history."""

__version__ = "0.1.0"
