"""
Stagehand MCP server.

Exposes Stagehand browser automation (navigate, act, extract, observe,
screenshot) as Model Context Protocol tools over stdio.
"""

__version__ = "1.0.0"
