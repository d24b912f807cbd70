"""
Custom exception hierarchy for the Stagehand MCP server.

Structured error handling with clear categories:
- Session errors (browser session could not be created or probed)
- Page errors (selector did not resolve to an element)
- Extraction errors (bad schema, unusable extraction result)
- Dispatch errors (unknown tool, underlying capability failure)

Everything except SessionProbeFailure is converted into an ``isError``
ToolResult by the dispatcher and never escapes to the transport.

Usage:
    from stagehand_mcp.exceptions import SessionInitError

    try:
        await session.init()
    except Exception as e:
        raise SessionInitError(str(e)) from e
"""

from __future__ import annotations

from typing import Optional


class StagehandMCPError(Exception):
    """
    Base exception for all Stagehand MCP server errors.

    All custom exceptions inherit from this, so you can catch
    `StagehandMCPError` to handle any server-specific error.
    """

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


# ── Session Errors ────────────────────────────────────────────────


class SessionInitError(StagehandMCPError):
    """
    Raised when the browser session cannot be constructed or initialized.

    Fatal for the current tool call, not for the process: the next call
    starts again from an empty session slot.
    """


class SessionProbeFailure(StagehandMCPError):
    """
    Raised internally when the liveness probe of an existing session fails.

    Never surfaced to callers. Triggers silent recreation of the session.
    """


# ── Page Errors ───────────────────────────────────────────────────


class ElementNotFound(StagehandMCPError):
    """
    Raised when a selector-based screenshot finds no matching element.
    """

    def __init__(
        self,
        message: str,
        *,
        selector: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.selector = selector


# ── Extraction Errors ─────────────────────────────────────────────


class InvalidSchema(StagehandMCPError):
    """
    Raised when an extraction schema is malformed at the top level
    (missing or not a mapping), or carries a pattern that does not compile.
    """


class ExtractionShapeError(StagehandMCPError):
    """
    Raised when an extraction returns nothing or a non-object value.
    """


# ── Dispatch Errors ───────────────────────────────────────────────


class UnknownTool(StagehandMCPError):
    """
    Raised when the dispatcher receives a tool name it does not serve.
    """

    def __init__(
        self,
        message: str,
        *,
        tool_name: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.tool_name = tool_name


class OperationFailure(StagehandMCPError):
    """
    Any other failure of the underlying automation capability.

    The original message is passed through verbatim.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.operation = operation
