"""
Per-request operation log for browser tool calls.

Every tool call gets a fresh trace of timestamped messages describing
what the server did (session checks, navigation, extraction results...).
The trace is attached to failure responses so the calling agent can see
why an operation failed without access to the server's stderr.

Usage:
    log = OperationLog(mirror=config.debug)
    log.clear()                       # once per inbound tool call
    log.append("Navigating to URL: https://example.com")
    text = log.render()               # "Operation logs:\n[...] Navigating..."
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("stagehand_mcp.operations")


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class OperationLogEntry:
    timestamp: str
    message: str

    def __str__(self) -> str:
        return f"[{self.timestamp}] {self.message}"


class OperationLog:
    """
    Bounded in-memory ring of operation log entries.

    Owned by a single dispatcher. Only safe under the dispatcher's
    one-call-at-a-time gate.

    Args:
        max_entries: Oldest entries are evicted beyond this size.
        mirror: Also emit each entry on the ``stagehand_mcp.operations``
            logger (the DEBUG flag). Observational only.
    """

    HEADER = "Operation logs:"

    def __init__(self, max_entries: int = 1000, mirror: bool = False):
        self._max = max_entries
        self._entries: list[OperationLogEntry] = []
        self.mirror = mirror

    def append(self, message: str) -> OperationLogEntry:
        """Timestamp and store a message."""
        entry = OperationLogEntry(timestamp=utc_timestamp(), message=message)
        self._entries.append(entry)
        if len(self._entries) > self._max:
            self._entries = self._entries[-self._max:]
        if self.mirror:
            logger.info(str(entry))
        return entry

    def snapshot(self) -> tuple[OperationLogEntry, ...]:
        """Entries in insertion order. Does not clear the log."""
        return tuple(self._entries)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def render(self) -> str:
        lines = "\n".join(str(entry) for entry in self._entries)
        return f"{self.HEADER}\n{lines}"

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
