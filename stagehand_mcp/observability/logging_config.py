"""
Structured logging configuration for the Stagehand MCP server.

Uses Python's built-in logging with a JSONFormatter for production and a
colored DevFormatter for local development. All output goes to stderr:
stdout is reserved for the MCP stdio transport.

Environments:
- production: JSON lines to stderr (machine-readable)
- development/test: Colored text to stderr (human-readable)

Usage:
    from stagehand_mcp.observability.logging_config import configure_logging

    configure_logging()  # auto-detects from STAGEHAND_MCP_ENV

    logger = logging.getLogger(__name__)
    logger.info("tool_call_completed", extra={
        "tool_name": "navigate",
        "status": "ok",
        "duration_ms": 412,
    })
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

# ─── Tool Call Context ────────────────────────────────────────────────

_current_tool: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "current_tool", default=None
)


def set_current_tool(tool_name: Optional[str]) -> contextvars.Token:
    """
    Mark the tool call being processed on the current task.

    Every log record emitted while the call runs carries ``tool_name``.
    Returns a token for reset_current_tool().
    """
    return _current_tool.set(tool_name)


def get_current_tool() -> Optional[str]:
    """Get the tool name of the call in progress, or None."""
    return _current_tool.get()


def reset_current_tool(token: contextvars.Token) -> None:
    _current_tool.reset(token)


# ─── Context Filter ───────────────────────────────────────────────────


class ContextFilter(logging.Filter):
    """
    Injects tool_name into every log record from the current context.

    Explicit ``extra={"tool_name": ...}`` values win over the context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        tool_name = get_current_tool()
        if tool_name and not hasattr(record, "tool_name"):
            record.tool_name = tool_name  # type: ignore[attr-defined]
        return True


# ─── JSON Formatter (Production) ──────────────────────────────────────


# Fields we want to extract from the record's extra dict
_STANDARD_FIELDS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "message",
    "taskName",
})


class JSONFormatter(logging.Formatter):
    """
    Outputs log records as single-line JSON objects.

    Includes standard fields (timestamp, level, logger, message) plus
    any extra fields passed via `logger.info("msg", extra={...})`.

    Output format:
        {"timestamp": "...", "level": "INFO",
         "logger": "stagehand_mcp.browser.session",
         "message": "browser_session_started", "headless": false, ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Extract extra fields (anything not in the standard set)
        for key, value in record.__dict__.items():
            if key not in _STANDARD_FIELDS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    entry[key] = value
                except (TypeError, ValueError):
                    entry[key] = str(value)

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


# ─── Dev Formatter (Local Development) ────────────────────────────────


class DevFormatter(logging.Formatter):
    """
    Colorful, human-readable logs for local development.

    Format: [HH:MM:SS] LEVEL logger: message [key=value key=value]
    """

    COLORS = {
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[41m",  # Red background
    }
    RESET = "\033[0m"

    # Known extra fields to display inline
    _EXTRA_KEYS = (
        "tool_name", "status", "duration_ms", "error", "path",
    )

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, self.RESET)
        timestamp = self.formatTime(record, "%H:%M:%S")

        extras = []
        for key in self._EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                extras.append(f"{key}={value}")

        extra_str = f" [{' '.join(extras)}]" if extras else ""

        formatted = (
            f"{self.RESET}[{timestamp}] "
            f"{color}{record.levelname:<8}{self.RESET} "
            f"{record.name}: {record.getMessage()}{extra_str}"
        )

        if record.exc_info and record.exc_info[1]:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


# ─── Configuration ────────────────────────────────────────────────────


def configure_logging(
    env: Optional[str] = None,
    level: Optional[int] = None,
) -> None:
    """
    Configure the root logger based on environment.

    Args:
        env: Override environment. If None, reads from STAGEHAND_MCP_ENV
             (defaults to "development").
        level: Log level. If None, DEBUG when the DEBUG env var is set,
             otherwise INFO.

    Behavior:
        - production → JSONFormatter to stderr
        - everything else → DevFormatter to stderr
    """
    env = env or os.environ.get("STAGEHAND_MCP_ENV", "development").lower().strip()
    if level is None:
        level = logging.DEBUG if os.environ.get("DEBUG") else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if env == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(DevFormatter())

    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("playwright").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
