"""
MCP (Model Context Protocol) server exposing Stagehand browser automation.

Tools: navigate, act, extract, observe, screenshot.

Usage:
    python -m stagehand_mcp.mcp  # Start the MCP server (stdio transport)
"""
