"""
Stagehand MCP - Main Entry Point

CLI for running the Stagehand MCP server and inspecting its setup.
Supports serving over stdio, listing tools, showing the effective
browser configuration and running a single tool call locally.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stagehand_mcp import __version__
from stagehand_mcp.browser.config import BrowserConfig
from stagehand_mcp.mcp.tools.definitions import TOOL_DEFINITIONS
from stagehand_mcp.observability.logging_config import configure_logging

# Load environment (override=True to ensure .env values take precedence)
root_env = Path(__file__).parent / ".env"

if root_env.exists():
    load_dotenv(root_env, override=True)
else:
    load_dotenv(override=True)

app = typer.Typer(
    name="stagehand-mcp",
    help="Stagehand MCP - browser automation tools for agents",
)
# stdout belongs to the stdio transport when serving
console = Console(stderr=True)

logger = logging.getLogger("stagehand_mcp.cli")


def _load_config() -> BrowserConfig:
    """Read BrowserConfig from the environment, with a friendly error on failure."""
    try:
        return BrowserConfig.from_env()
    except ValueError as e:
        console.print(Panel(
            f"[red]Invalid browser configuration[/]\n\n{e}\n\n"
            f"Check STAGEHAND_ENV, HEADLESS and VIEWPORT_* in your .env file.",
            title="⚠ Configuration Error",
            border_style="red",
        ))
        raise typer.Exit(code=1)


# =========================================================================
# Commands
# =========================================================================


@app.command()
def serve(
    name: str = typer.Option("stagehand-mcp", "--name", help="Server name for the MCP handshake"),
    env: Optional[str] = typer.Option(None, "--env", help="Logging mode: production or development"),
):
    """Start the MCP server on stdio."""
    from stagehand_mcp.mcp.server import create_mcp_server

    configure_logging(env=env)
    config = _load_config()

    logger.info("Starting Stagehand MCP server...", extra={"server_name": name})
    server = create_mcp_server(name=name, config=config)
    server.run()


@app.command()
def tools():
    """List the tools the server exposes."""
    table = Table(title=f"Stagehand MCP {__version__} - Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Required", style="green")
    table.add_column("Optional", style="yellow")

    for tool in TOOL_DEFINITIONS:
        properties = tool.input_schema.get("properties", {})
        optional = [key for key in properties if key not in tool.required]
        table.add_row(
            tool.name,
            tool.description.split("\n", 1)[0],
            ", ".join(tool.required),
            ", ".join(optional),
        )

    console.print(table)


@app.command()
def config(
    show_secrets: bool = typer.Option(False, "--show-secrets", help="Print API keys unmasked"),
):
    """Show the browser configuration read from the environment."""
    cfg = _load_config()

    table = Table(title="Browser Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    for field_name, value in cfg.model_dump().items():
        if value and field_name.endswith(("api_key", "project_id")) and not show_secrets:
            value = f"{str(value)[:4]}…"
        table.add_row(field_name, "[dim]not set[/]" if value is None else str(value))

    console.print(table)


@app.command()
def call(
    tool: str = typer.Argument(..., help="Tool name (navigate, act, extract, observe, screenshot)"),
    arguments: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object"),
):
    """Run one tool call against a local browser session and print the result."""
    from stagehand_mcp.mcp.tools.browser_tools import BrowserToolDispatcher

    configure_logging()
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        console.print(f"[red]--args is not valid JSON:[/] {e}")
        raise typer.Exit(code=2)
    if not isinstance(parsed, dict):
        console.print("[red]--args must be a JSON object[/]")
        raise typer.Exit(code=2)

    cfg = _load_config()
    cfg.ensure_screenshots_dir()

    async def _run():
        dispatcher = BrowserToolDispatcher(cfg)
        try:
            return await dispatcher.call_tool(tool, parsed)
        finally:
            await dispatcher.close()

    result = asyncio.run(_run())

    style = "red" if result.is_error else "green"
    console.print(Panel(
        result.text,
        title=f"{tool} - {'ERROR' if result.is_error else 'OK'}",
        border_style=style,
    ))
    if result.is_error:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
