"""
Tests for the per-request operation log.

Validates:
- Entry timestamps and rendering
- Snapshot / clear semantics
- Ring eviction beyond max_entries
- Render format ("Operation logs:" header)
- DEBUG mirroring to the process logger
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from stagehand_mcp.observability.operation_log import (
    OperationLog,
    OperationLogEntry,
    utc_timestamp,
)

ISO_MS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestTimestamps:

    def test_utc_timestamp_format(self):
        assert ISO_MS.match(utc_timestamp())

    def test_utc_timestamp_for_given_time(self):
        moment = datetime(2025, 3, 1, 10, 15, 30, 123456, tzinfo=timezone.utc)
        assert utc_timestamp(moment) == "2025-03-01T10:15:30.123Z"

    def test_entry_renders_with_brackets(self):
        entry = OperationLogEntry(timestamp="2025-03-01T10:15:30.123Z", message="hello")
        assert str(entry) == "[2025-03-01T10:15:30.123Z] hello"


class TestOperationLog:

    def test_append_returns_entry(self):
        log = OperationLog()
        entry = log.append("Navigating to URL: https://example.com")
        assert entry.message == "Navigating to URL: https://example.com"
        assert ISO_MS.match(entry.timestamp)
        assert log.size == 1
        assert len(log) == 1

    def test_snapshot_preserves_order_and_does_not_clear(self):
        log = OperationLog()
        log.append("one")
        log.append("two")
        snapshot = log.snapshot()
        assert [e.message for e in snapshot] == ["one", "two"]
        assert isinstance(snapshot, tuple)
        assert log.size == 2

    def test_clear_empties_and_reports_count(self):
        log = OperationLog()
        log.append("one")
        log.append("two")
        assert log.clear() == 2
        assert log.size == 0
        assert log.snapshot() == ()

    def test_ring_evicts_oldest(self):
        log = OperationLog(max_entries=3)
        for i in range(5):
            log.append(f"message {i}")
        assert [e.message for e in log.snapshot()] == ["message 2", "message 3", "message 4"]

    def test_render_format(self):
        log = OperationLog()
        log.append("first")
        log.append("second")
        rendered = log.render()
        lines = rendered.split("\n")
        assert lines[0] == "Operation logs:"
        assert re.match(r"^\[.+Z\] first$", lines[1])
        assert re.match(r"^\[.+Z\] second$", lines[2])
        assert len(lines) == 3

    def test_render_empty_log(self):
        assert OperationLog().render() == "Operation logs:\n"


class TestMirror:

    def test_mirror_emits_to_logger(self, caplog):
        log = OperationLog(mirror=True)
        with caplog.at_level(logging.INFO, logger="stagehand_mcp.operations"):
            log.append("mirrored message")
        assert any("mirrored message" in r.getMessage() for r in caplog.records)

    def test_no_mirror_by_default(self, caplog):
        log = OperationLog()
        with caplog.at_level(logging.DEBUG, logger="stagehand_mcp.operations"):
            log.append("quiet message")
        assert not any("quiet message" in r.getMessage() for r in caplog.records)
