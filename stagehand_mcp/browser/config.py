"""
Browser configuration for the Stagehand MCP server.

Defines BrowserConfig (Pydantic model) that maps to Stagehand's
StagehandConfig parameters. Values are read from the environment once,
each time a new browser session is constructed.

Usage:
    from stagehand_mcp.browser.config import BrowserConfig

    config = BrowserConfig()                    # visible local Chromium
    config = BrowserConfig(headless=True)       # headless
    config = BrowserConfig.from_env()           # HEADLESS, VIEWPORT_*, DEBUG...
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Defaults ────────────────────────────────────────────────────────

DEFAULT_SCREENSHOTS_DIR = Path.home() / "Pictures" / "StagehandScreenshots"
DEFAULT_MODEL_NAME = "claude-3-7-sonnet-20250219"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() == "true"


class BrowserConfig(BaseModel):
    """
    Configuration for the Stagehand browser session.

    Attributes:
        env: Browser family. LOCAL launches Chromium on this machine,
            BROWSERBASE runs it in the Browserbase cloud.
        headless: Run the browser without a visible window.
        viewport_width: Browser content area width in pixels.
        viewport_height: Browser content area height in pixels.
        model_name: Model used by Stagehand to ground act/extract/observe.
        model_api_key: API key for that model (optional, Stagehand also
            reads provider keys from the environment).
        verbose: Stagehand log verbosity (0-2).
        debug: Mirror operation log entries to the process logger.
        screenshots_dir: Directory where screenshots are written.
        browserbase_api_key: Browserbase API key (BROWSERBASE env only).
        browserbase_project_id: Browserbase project (BROWSERBASE env only).
    """

    model_config = ConfigDict(protected_namespaces=())

    # ─── Browser Family ─────────────────────────────────────────
    env: Literal["LOCAL", "BROWSERBASE"] = Field(
        "LOCAL",
        description="Where the browser runs",
    )

    # ─── Display & Viewport ─────────────────────────────────────
    headless: bool = Field(
        False,
        description="Run browser without visible window",
    )
    viewport_width: int = Field(1280, ge=320, description="Content area width")
    viewport_height: int = Field(800, ge=240, description="Content area height")

    # ─── Model ──────────────────────────────────────────────────
    model_name: str = Field(
        DEFAULT_MODEL_NAME,
        description="Automation model identifier",
    )
    model_api_key: Optional[str] = Field(
        None,
        description="API key for the automation model",
    )
    verbose: int = Field(
        2,
        ge=0,
        le=2,
        description="Stagehand log verbosity",
    )

    # ─── Diagnostics ────────────────────────────────────────────
    debug: bool = Field(
        False,
        description="Mirror operation log entries to the process logger",
    )

    # ─── Output ─────────────────────────────────────────────────
    screenshots_dir: Path = Field(
        default_factory=lambda: DEFAULT_SCREENSHOTS_DIR,
        description="Directory for screenshot files",
    )

    # ─── Browserbase ────────────────────────────────────────────
    browserbase_api_key: Optional[str] = Field(None, description="Browserbase API key")
    browserbase_project_id: Optional[str] = Field(None, description="Browserbase project ID")

    def get_viewport(self) -> dict[str, int]:
        """Get viewport dimensions as dict for Playwright."""
        return {
            "width": self.viewport_width,
            "height": self.viewport_height,
        }

    def ensure_screenshots_dir(self) -> Path:
        """Create the screenshots directory if it does not exist yet."""
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        return self.screenshots_dir

    def to_stagehand_kwargs(self) -> dict[str, Any]:
        """
        Convert config to keyword arguments for StagehandConfig().

        Returns:
            Dict of kwargs to pass to StagehandConfig().
        """
        kwargs: dict[str, Any] = {
            "env": self.env,
            "model_name": self.model_name,
            "verbose": self.verbose,
        }

        if self.model_api_key:
            kwargs["model_api_key"] = self.model_api_key

        if self.env == "LOCAL":
            kwargs["local_browser_launch_options"] = {
                "headless": self.headless,
                "viewport": self.get_viewport(),
            }
        else:
            if self.browserbase_api_key:
                kwargs["api_key"] = self.browserbase_api_key
            if self.browserbase_project_id:
                kwargs["project_id"] = self.browserbase_project_id

        return kwargs

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        """
        Create config from environment variables.

        Reads:
            STAGEHAND_ENV: "LOCAL"/"BROWSERBASE" (default: "LOCAL")
            HEADLESS: "true"/"false" (default: "false")
            VIEWPORT_WIDTH: pixels (default: 1280)
            VIEWPORT_HEIGHT: pixels (default: 800)
            DEBUG: any non-empty value enables mirroring (default: off)
            STAGEHAND_MODEL_NAME: model identifier
            MODEL_API_KEY / ANTHROPIC_API_KEY: model API key
            SCREENSHOTS_DIR: path (default: ~/Pictures/StagehandScreenshots)
            BROWSERBASE_API_KEY, BROWSERBASE_PROJECT_ID
        """
        kwargs: dict[str, Any] = {
            "env": os.environ.get("STAGEHAND_ENV", "LOCAL").strip().upper(),
            "headless": _env_flag("HEADLESS"),
            "viewport_width": int(os.environ.get("VIEWPORT_WIDTH", "1280")),
            "viewport_height": int(os.environ.get("VIEWPORT_HEIGHT", "800")),
            "debug": bool(os.environ.get("DEBUG")),
        }

        model_name = os.environ.get("STAGEHAND_MODEL_NAME")
        if model_name:
            kwargs["model_name"] = model_name

        api_key = os.environ.get("MODEL_API_KEY") or os.environ.get("ANTHROPIC_API_KEY")
        if api_key:
            kwargs["model_api_key"] = api_key

        screenshots_dir = os.environ.get("SCREENSHOTS_DIR")
        if screenshots_dir:
            kwargs["screenshots_dir"] = Path(screenshots_dir).expanduser()

        for env_name, field_name in (
            ("BROWSERBASE_API_KEY", "browserbase_api_key"),
            ("BROWSERBASE_PROJECT_ID", "browserbase_project_id"),
        ):
            value = os.environ.get(env_name)
            if value:
                kwargs[field_name] = value

        return cls(**kwargs)
