"""
Browser automation module for the Stagehand MCP server.

Owns the lifecycle of the single Stagehand browser session: lazy creation,
liveness probing, forced recreation on navigation, and best-effort cleanup.

Components:
- BrowserSessionManager: Session lifecycle state machine
- BrowserConfig: Pydantic configuration model

Usage:
    from stagehand_mcp.browser import BrowserSessionManager, BrowserConfig

    manager = BrowserSessionManager(BrowserConfig.from_env(), log)
    session = await manager.ensure_session()
"""

from stagehand_mcp.browser.config import BrowserConfig
from stagehand_mcp.browser.session import BrowserSessionManager, SessionState

__all__ = ["BrowserSessionManager", "BrowserConfig", "SessionState"]
