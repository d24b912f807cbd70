"""
Observability module for the Stagehand MCP server.

Provides structured process logging (stderr only, stdout belongs to the
stdio transport) and the per-request operation log attached to tool
responses.
"""
