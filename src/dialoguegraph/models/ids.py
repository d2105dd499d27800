"""Identifier generation for characters, nodes, and connections.

Ids are ``{prefix}_{millis}`` where *millis* is wall-clock milliseconds.
Two ids requested within the same millisecond are bumped so every id handed
out by this process is unique, and ids from one process never go backwards.
"""

from __future__ import annotations

import threading
import time

CHARACTER_PREFIX = "char"
NODE_PREFIX = "node"
CONNECTION_PREFIX = "conn"

_lock = threading.Lock()
_last_stamp = 0


def _next_stamp() -> int:
    global _last_stamp
    with _lock:
        stamp = time.time_ns() // 1_000_000
        if stamp <= _last_stamp:
            stamp = _last_stamp + 1
        _last_stamp = stamp
        return stamp


def new_id(prefix: str) -> str:
    """Return a fresh id such as ``node_1718000000123``."""
    return f"{prefix}_{_next_stamp()}"


def new_character_id() -> str:
    return new_id(CHARACTER_PREFIX)


def new_node_id() -> str:
    return new_id(NODE_PREFIX)


def new_connection_id() -> str:
    return new_id(CONNECTION_PREFIX)
