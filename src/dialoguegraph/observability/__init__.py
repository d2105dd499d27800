"""Observability module for dialoguegraph: structured logging."""

from dialoguegraph.observability.logging import (
    bind_context,
    clear_context,
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
    unbind_context,
)

__all__ = [
    "bind_context",
    "clear_context",
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
    "unbind_context",
]
