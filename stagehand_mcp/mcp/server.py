"""
FastMCP server for Stagehand browser automation.

Exposes the five browser tools to agents via the Model Context Protocol
(MCP). Each tool is a thin wrapper that forwards its arguments to one
shared BrowserToolDispatcher.

Entry points:
    python -m stagehand_mcp.mcp   # stdio transport (for agent integration)
    create_mcp_server()           # programmatic use (for testing)

Architecture:
    FastMCP server (5 tools)
    +-- navigate(url)                              -> page.goto()  [fresh session]
    +-- screenshot(name, selector?, fullPage?)     -> page.screenshot() / element.screenshot()
    +-- act(action, variables?)                    -> page.act()
    +-- extract(instruction, schema)               -> page.extract() with a pydantic model
    +-- observe(instruction)                       -> page.observe()

Failed calls are raised as ToolError, which FastMCP reports to the client
as an ``isError`` result whose text ends with the operation log.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from stagehand_mcp.browser.config import BrowserConfig
from stagehand_mcp.mcp.tools.browser_tools import BrowserToolDispatcher
from stagehand_mcp.mcp.tools.definitions import TOOLS_BY_NAME

logger = logging.getLogger(__name__)

SERVER_NAME = "stagehand-mcp"

# Lazy import to avoid import errors when fastmcp isn't installed
_server_instance = None


async def _respond(
    dispatcher: BrowserToolDispatcher,
    name: str,
    arguments: dict[str, Any],
):
    from fastmcp.exceptions import ToolError
    from mcp.types import TextContent

    result = await dispatcher.call_tool(name, arguments)
    if result.is_error:
        raise ToolError(result.text)
    return [TextContent(type="text", text=text) for text in result.texts]


def build_tools(dispatcher: BrowserToolDispatcher) -> list:
    """
    Wrap the dispatcher's five operations as FastMCP Tool objects.

    Parameter names are the wire argument names, so FastMCP derives the
    same input schemas the tool definitions advertise. The wrappers carry
    no return annotation: content blocks are returned as-is, without a
    structured output schema.
    """
    from fastmcp.tools import Tool

    async def navigate(url: str):
        return await _respond(dispatcher, "navigate", {"url": url})

    async def screenshot(
        name: str,
        selector: Optional[str] = None,
        fullPage: bool = True,
    ):
        arguments: dict[str, Any] = {"name": name, "fullPage": fullPage}
        if selector is not None:
            arguments["selector"] = selector
        return await _respond(dispatcher, "screenshot", arguments)

    async def act(action: str, variables: Optional[dict[str, Any]] = None):
        arguments: dict[str, Any] = {"action": action}
        if variables is not None:
            arguments["variables"] = variables
        return await _respond(dispatcher, "act", arguments)

    async def extract(instruction: str, schema: dict[str, Any]):
        return await _respond(dispatcher, "extract", {"instruction": instruction, "schema": schema})

    async def observe(instruction: str):
        return await _respond(dispatcher, "observe", {"instruction": instruction})

    tools = []
    for fn in (navigate, screenshot, act, extract, observe):
        definition = TOOLS_BY_NAME[fn.__name__]
        tools.append(
            Tool.from_function(
                fn,
                name=definition.name,
                description=definition.description,
            )
        )
    return tools


def create_mcp_server(
    name: str = SERVER_NAME,
    config: Optional[BrowserConfig] = None,
    dispatcher: Optional[BrowserToolDispatcher] = None,
) -> "FastMCP":
    """
    Create and configure the FastMCP server with all tools registered.

    Args:
        name: Server name for MCP protocol handshake.
        config: Browser configuration. Read from the environment if None;
            sessions then re-read the environment each time one is built.
        dispatcher: Pre-built dispatcher (tests inject one backed by
            MockSessionFactory). Built from config if omitted.

    Returns:
        Configured FastMCP server instance.
    """
    from fastmcp import FastMCP

    if dispatcher is None:
        dispatcher = BrowserToolDispatcher(config)
    dispatcher.config.ensure_screenshots_dir()

    @asynccontextmanager
    async def close_browser_on_shutdown(server: Any) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {}
        finally:
            await dispatcher.close()
            logger.info("mcp_server_stopped", extra={"server_name": name})

    mcp = FastMCP(name, lifespan=close_browser_on_shutdown)

    tools = build_tools(dispatcher)
    for tool in tools:
        mcp.add_tool(tool)

    logger.info(
        "mcp_server_created",
        extra={
            "server_name": name,
            "tool_count": len(tools),
            "screenshots_dir": str(dispatcher.config.screenshots_dir),
        },
    )

    return mcp


def get_server() -> "FastMCP":
    """Get or create the singleton MCP server instance."""
    global _server_instance
    if _server_instance is None:
        _server_instance = create_mcp_server()
    return _server_instance
