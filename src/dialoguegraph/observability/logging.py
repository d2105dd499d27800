"""Structured logging for dialoguegraph.

Events are structlog key/value records routed through stdlib logging:

- Console: rich output on stderr, threshold set by the -v count.
- File: with --log, every event (DEBUG and up) is appended as one JSON object
  per line to ``{project}/logs/debug.jsonl``.

Context bound with :func:`bind_context` (project, open character) is merged
into every event until :func:`clear_context` is called.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

LOGS_DIRNAME = "logs"
LOG_FILENAME = "debug.jsonl"

_CONSOLE_LEVELS = {0: logging.WARNING, 1: logging.INFO}

# Module-level state
_configured = False
_file_handler: logging.FileHandler | None = None
_logs_dir: Path | None = None


class JSONLFileHandler(logging.FileHandler):
    """File handler writing one JSON object per event."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(_record_to_entry(record), default=str, ensure_ascii=False)
            if self.stream:
                self.stream.write(line + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


def _record_to_entry(record: logging.LogRecord) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
    }
    # wrap_for_formatter hands the structlog event dict over as record.msg
    if isinstance(record.msg, dict):
        fields = dict(record.msg)
        fields.pop("level", None)
        fields.pop("timestamp", None)
        entry["event"] = fields.pop("event", "")
        entry.update(fields)
    else:
        entry["event"] = record.getMessage()
    return entry


def _console_handler(verbosity: int) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
        level=_CONSOLE_LEVELS.get(verbosity, logging.DEBUG),
    )


def _open_file_handler(project_path: Path) -> JSONLFileHandler:
    global _logs_dir
    _logs_dir = project_path / LOGS_DIRNAME
    _logs_dir.mkdir(parents=True, exist_ok=True)
    handler = JSONLFileHandler(str(_logs_dir / LOG_FILENAME), mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    return handler


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    project_path: Path | None = None,
) -> None:
    """Configure console (and optionally file) logging.

    Safe to call again, e.g. once the project directory is known; the
    previous file handler is closed first.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_to_file: Also write every event to ``{project_path}/logs/debug.jsonl``.
        project_path: Project directory. Required if log_to_file=True.

    Raises:
        ValueError: If log_to_file=True but project_path is not provided.
    """
    global _configured, _file_handler

    if log_to_file and project_path is None:
        raise ValueError("project_path is required when log_to_file=True")

    close_file_logging()

    handlers: list[logging.Handler] = [_console_handler(verbosity)]
    if log_to_file and project_path is not None:
        _file_handler = _open_file_handler(project_path)
        handlers.append(_file_handler)

    # The root logger stays open when any handler wants debug events
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a structured logger, configuring defaults on first use.

    Args:
        name: Logger name (typically __name__).
    """
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**values: Any) -> None:
    """Attach *values* to every event logged from now on."""
    structlog.contextvars.bind_contextvars(**values)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Drop all bound context."""
    structlog.contextvars.clear_contextvars()


def get_logs_dir() -> Path | None:
    """Directory of the JSONL log, or None if file logging was never enabled."""
    return _logs_dir


def close_file_logging() -> None:
    """Close the JSONL file handler, if open."""
    global _file_handler
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
