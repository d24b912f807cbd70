"""
Browser automation MCP tools for the Stagehand MCP server.

BrowserToolDispatcher turns a tool name plus arguments into one Stagehand
call on the live page and always answers with a ToolResult. Nothing is
raised past the dispatcher: failures become ``isError`` results carrying
the per-request operation log so the calling agent can see what happened.

Tools:
    - navigate: Open a URL (always on a freshly created session)
    - act: Perform a natural-language action on the page
    - extract: Pull structured data matching a JSON Schema
    - observe: List actions that can be performed on the page
    - screenshot: Save a PNG of the page or of one element

Usage:
    dispatcher = BrowserToolDispatcher(BrowserConfig.from_env())
    result = await dispatcher.call_tool("navigate", {"url": "https://example.com"})
    result.is_error   # False
    result.text       # "Navigated to: https://example.com"
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from stagehand_mcp.browser.config import BrowserConfig
from stagehand_mcp.browser.session import BrowserSessionManager, SessionFactory
from stagehand_mcp.exceptions import (
    ElementNotFound,
    ExtractionShapeError,
    OperationFailure,
    SessionInitError,
    UnknownTool,
)
from stagehand_mcp.extraction.schema import SchemaValidator, json_schema_to_validator
from stagehand_mcp.mcp.tools.definitions import (
    ActArgs,
    ExtractArgs,
    NavigateArgs,
    ObserveArgs,
    ScreenshotArgs,
)
from stagehand_mcp.mcp.tools.results import ToolResult
from stagehand_mcp.observability.logging_config import (
    reset_current_tool,
    set_current_tool,
)
from stagehand_mcp.observability.operation_log import OperationLog, utc_timestamp

logger = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT", bound=BaseModel)
Handler = Callable[[Any, Mapping[str, Any]], Awaitable[ToolResult]]


# ─── Helpers ─────────────────────────────────────────────────────────


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return str(value)


def to_json(value: Any) -> str:
    """Serialise tool arguments and results for log lines and responses."""
    return json.dumps(value, default=_json_default, ensure_ascii=False)


def screenshot_filename(name: str, now: Optional[datetime] = None) -> str:
    """
    Build a filesystem-safe screenshot filename.

    Every character outside ``[a-zA-Z0-9]`` becomes ``_``, the result is
    lower-cased and suffixed with a UTC timestamp whose colons are
    replaced by dashes.

        screenshot_filename("My Screenshot!")
        # "my_screenshot__2025-03-01T10-15-30.123Z.png"
    """
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", name).lower()
    timestamp = utc_timestamp(now).replace(":", "-")
    return f"{sanitized}_{timestamp}.png"


def coerce_extraction(data: Any) -> Any:
    """
    Normalise what Stagehand's extract returned into plain JSON data.

    Raises:
        ExtractionShapeError: If nothing came back, or a scalar did.
    """
    if data is None:
        raise ExtractionShapeError("Extraction returned null")
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    if not isinstance(data, (Mapping, list)):
        raise ExtractionShapeError(
            f"Extraction returned non-object type: {type(data).__name__}"
        )
    return data


def _summarize(error: ValidationError, root: str) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or root}: {err['msg']}"
        for err in error.errors()
    )


def validate_extraction(validator: SchemaValidator, data: Any) -> Any:
    """
    Check extracted data against the requested schema.

    Stagehand hands back its raw data when its own validation fails, and
    non-object roots are never validated by it at all.

    Raises:
        ExtractionShapeError: If the data does not conform.
    """
    try:
        return validator.validate(data)
    except ValidationError as e:
        raise ExtractionShapeError(
            f"Extraction did not match schema: {_summarize(e, 'result')}"
        ) from e


def _parse_args(model: type[ArgsT], operation: str, arguments: Mapping[str, Any]) -> ArgsT:
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise OperationFailure(
            f"Invalid arguments for {operation}: {_summarize(e, 'arguments')}",
            operation=operation,
        ) from e


def _page(session: Any, operation: str) -> Any:
    page = getattr(session, "page", None)
    if page is None:
        raise OperationFailure("No active page found", operation=operation)
    return page


# ─── Dispatcher ──────────────────────────────────────────────────────


class BrowserToolDispatcher:
    """
    Routes tool calls to the browser session and formats the responses.

    Owns the session manager and the operation log. Calls are serialised
    under one asyncio.Lock, so a request never observes another request's
    log entries or a session that is being replaced.

    Args:
        config: Browser configuration. Supplies the screenshots directory
            and the DEBUG mirror flag. When None, the environment is read.
        sessions: Session manager to use. Built from config if omitted.
        log: Operation log to use. Built from config if omitted.
        session_factory: Passed to a newly built session manager.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        sessions: Optional[BrowserSessionManager] = None,
        log: Optional[OperationLog] = None,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.config = config or BrowserConfig.from_env()
        self.log = log or OperationLog(mirror=self.config.debug)
        # An explicit config pins every session to it; otherwise each new
        # session re-reads the environment.
        self.sessions = sessions or BrowserSessionManager(
            config,
            log=self.log,
            session_factory=session_factory,
        )
        self._gate = asyncio.Lock()
        self._handlers: dict[str, Handler] = {
            "navigate": self._navigate,
            "act": self._act,
            "extract": self._extract,
            "observe": self._observe,
            "screenshot": self._screenshot,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> ToolResult:
        """
        Transport entry point: one inbound tool call, one ToolResult.

        Clears the operation log, then dispatches under the gate.
        """
        async with self._gate:
            self.log.clear()
            self.log.append(f"Received tool call request for: {name}")
            token = set_current_tool(name)
            start_time = time.monotonic()
            try:
                result = await self.handle(name, arguments or {})
            finally:
                reset_current_tool(token)

            self.log.append("Tool call completed")
            logger.info(
                "tool_call_completed",
                extra={
                    "tool_name": name,
                    "status": "error" if result.is_error else "success",
                    "duration_ms": int((time.monotonic() - start_time) * 1000),
                },
            )
            return result

    async def handle(self, name: str, arguments: Mapping[str, Any]) -> ToolResult:
        """
        Ensure a live session, then run the named operation.

        ``navigate`` always gets a brand-new session; every other tool
        reuses the current one when it still answers the probe.
        """
        self.log.append(f"Handling tool call: {name} with args: {to_json(arguments)}")
        logger.info("mcp_tool_called", extra={"tool_name": name})

        try:
            session = await self.sessions.ensure_session(force_reinit=(name == "navigate"))
        except SessionInitError as e:
            return self._failure("Failed to initialize browser session", e, name)

        handler = self._handlers.get(name)
        if handler is None:
            return self._failure(None, UnknownTool(f"Unknown tool: {name}", tool_name=name), name)
        return await handler(session, arguments)

    async def close(self) -> None:
        """Close the browser session, if one is open."""
        async with self._gate:
            await self.sessions.close()

    # ─── Operations ──────────────────────────────────────────────────

    async def _navigate(self, session: Any, arguments: Mapping[str, Any]) -> ToolResult:
        try:
            args = _parse_args(NavigateArgs, "navigate", arguments)
            page = _page(session, "navigate")
            self.log.append(f"Navigating to URL: {args.url}")
            await page.goto(args.url)
        except Exception as e:
            return self._failure("Failed to navigate", e, "navigate")

        self.log.append("Navigation successful")
        return ToolResult.ok(f"Navigated to: {args.url}")

    async def _act(self, session: Any, arguments: Mapping[str, Any]) -> ToolResult:
        try:
            args = _parse_args(ActArgs, "act", arguments)
            page = _page(session, "act")
            self.log.append(f"Performing action: {args.action}")
            if args.variables:
                await page.act(args.action, variables=args.variables)
            else:
                await page.act(args.action)
        except Exception as e:
            return self._failure("Failed to perform action", e, "act")

        self.log.append(f"Action performed successfully: {args.action}")
        return ToolResult.ok(f"Action performed: {args.action}")

    async def _extract(self, session: Any, arguments: Mapping[str, Any]) -> ToolResult:
        try:
            args = _parse_args(ExtractArgs, "extract", arguments)
            page = _page(session, "extract")
            self.log.append(f"Extracting data with instruction: {args.instruction}")
            self.log.append(f"Schema: {to_json(args.extraction_schema)}")

            validator = json_schema_to_validator(args.extraction_schema)
            data = await page.extract(
                instruction=args.instruction,
                schema=validator.model or args.extraction_schema,
            )
            self.log.append(f"Raw extraction response: {to_json(data)}")
            extracted = validate_extraction(validator, coerce_extraction(data))
        except Exception as e:
            return self._failure("Failed to extract", e, "extract")

        self.log.append(f"Data extracted successfully: {to_json(extracted)}")
        return ToolResult.ok(
            f"Extraction result: {to_json(extracted)}",
            self.log.render(),
        )

    async def _observe(self, session: Any, arguments: Mapping[str, Any]) -> ToolResult:
        try:
            args = _parse_args(ObserveArgs, "observe", arguments)
            page = _page(session, "observe")
            self.log.append(f"Starting observation with instruction: {args.instruction}")
            observations = await page.observe(args.instruction)
        except Exception as e:
            return self._failure("Failed to observe", e, "observe")

        self.log.append(f"Observation completed successfully: {to_json(observations)}")
        # Successful observations carry no log block.
        return ToolResult.ok(f"Observations: {to_json(observations)}")

    async def _screenshot(self, session: Any, arguments: Mapping[str, Any]) -> ToolResult:
        try:
            args = _parse_args(ScreenshotArgs, "screenshot", arguments)
            page = _page(session, "screenshot")
            path = Path(self.config.screenshots_dir).expanduser().absolute()
            path = path / screenshot_filename(args.name)
            self.log.append(f"Taking screenshot: {path}")

            if args.selector:
                self.log.append(f"Capturing element: {args.selector}")
                element = await page.query_selector(args.selector)
                if element is None:
                    raise ElementNotFound(
                        f"Element not found with selector: {args.selector}",
                        selector=args.selector,
                    )
                await element.screenshot(path=str(path))
            else:
                await page.screenshot(path=str(path), full_page=args.full_page)
        except Exception as e:
            return self._failure("Failed to take screenshot", e, "screenshot")

        self.log.append(f"Screenshot saved: {path}")
        logger.info(
            "screenshot_saved",
            extra={"tool_name": "screenshot", "path": str(path)},
        )
        return ToolResult.ok(
            f"Screenshot saved to: {path}",
            f"File URL: {path.as_uri()}",
        )

    # ─── Failure Reporting ───────────────────────────────────────────

    def _failure(
        self,
        prefix: Optional[str],
        error: Exception,
        tool_name: str,
    ) -> ToolResult:
        message = f"{prefix}: {error}" if prefix else str(error)
        self.log.append(message)
        logger.error(
            "tool_call_failed",
            extra={
                "tool_name": tool_name,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
        return ToolResult.error(message, self.log.render())

    def __repr__(self) -> str:
        return f"BrowserToolDispatcher(sessions={self.sessions!r}, log_size={self.log.size})"
