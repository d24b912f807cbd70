"""
CLI entry point for running the MCP server.

Usage:
    python -m stagehand_mcp.mcp

This starts the FastMCP server with stdio transport, which is the
standard way to connect MCP servers to agents. The agent connects
to the server's stdin/stdout pipes, so all logging goes to stderr.
"""

import logging

from dotenv import load_dotenv

from stagehand_mcp.observability.logging_config import configure_logging
from stagehand_mcp.mcp.server import get_server

load_dotenv()

# Configure structured logging before anything else
configure_logging()

logger = logging.getLogger(__name__)


def main() -> None:
    """Start the MCP server."""
    logger.info("Starting Stagehand MCP server...")
    server = get_server()
    server.run()


if __name__ == "__main__":
    main()
