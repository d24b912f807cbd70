"""
Tests for BrowserConfig.

Validates:
- Defaults (visible browser, 1280x800 viewport, default model)
- Field bounds
- to_stagehand_kwargs() for LOCAL and BROWSERBASE
- from_env() environment loading
- Screenshots directory creation
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from stagehand_mcp.browser.config import (
    BrowserConfig,
    DEFAULT_MODEL_NAME,
    DEFAULT_SCREENSHOTS_DIR,
)

_ENV_KEYS = (
    "STAGEHAND_ENV", "HEADLESS", "VIEWPORT_WIDTH", "VIEWPORT_HEIGHT", "DEBUG",
    "STAGEHAND_MODEL_NAME", "MODEL_API_KEY", "ANTHROPIC_API_KEY", "SCREENSHOTS_DIR",
    "BROWSERBASE_API_KEY", "BROWSERBASE_PROJECT_ID",
)


def _clean_env(**values: str) -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}
    env.update(values)
    return env


class TestBrowserConfig:

    def test_default_values(self):
        config = BrowserConfig()
        assert config.env == "LOCAL"
        assert config.headless is False
        assert config.viewport_width == 1280
        assert config.viewport_height == 800
        assert config.model_name == DEFAULT_MODEL_NAME == "claude-3-7-sonnet-20250219"
        assert config.model_api_key is None
        assert config.verbose == 2
        assert config.debug is False
        assert config.screenshots_dir == DEFAULT_SCREENSHOTS_DIR

    def test_default_screenshots_dir(self):
        assert DEFAULT_SCREENSHOTS_DIR == Path.home() / "Pictures" / "StagehandScreenshots"

    def test_viewport_lower_bounds(self):
        with pytest.raises(ValidationError):
            BrowserConfig(viewport_width=100)
        with pytest.raises(ValidationError):
            BrowserConfig(viewport_height=100)

    def test_unknown_env_rejected(self):
        with pytest.raises(ValidationError):
            BrowserConfig(env="CLOUD")

    def test_get_viewport(self):
        assert BrowserConfig(viewport_width=1920, viewport_height=1080).get_viewport() == {
            "width": 1920,
            "height": 1080,
        }

    def test_ensure_screenshots_dir(self, tmp_path):
        target = tmp_path / "shots" / "nested"
        config = BrowserConfig(screenshots_dir=target)
        assert config.ensure_screenshots_dir() == target
        assert target.is_dir()


class TestToStagehandKwargs:

    def test_local_kwargs(self):
        kwargs = BrowserConfig(headless=True).to_stagehand_kwargs()
        assert kwargs == {
            "env": "LOCAL",
            "model_name": DEFAULT_MODEL_NAME,
            "verbose": 2,
            "local_browser_launch_options": {
                "headless": True,
                "viewport": {"width": 1280, "height": 800},
            },
        }

    def test_api_key_included_when_set(self):
        kwargs = BrowserConfig(model_api_key="sk-test").to_stagehand_kwargs()
        assert kwargs["model_api_key"] == "sk-test"

    def test_browserbase_kwargs(self):
        kwargs = BrowserConfig(
            env="BROWSERBASE",
            browserbase_api_key="bb-key",
            browserbase_project_id="proj-1",
        ).to_stagehand_kwargs()
        assert kwargs["env"] == "BROWSERBASE"
        assert kwargs["api_key"] == "bb-key"
        assert kwargs["project_id"] == "proj-1"
        assert "local_browser_launch_options" not in kwargs


class TestFromEnv:

    def test_defaults_from_empty_env(self):
        with patch.dict(os.environ, _clean_env(), clear=True):
            config = BrowserConfig.from_env()
        assert config.headless is False
        assert config.viewport_width == 1280
        assert config.debug is False

    def test_headless_only_for_literal_true(self):
        with patch.dict(os.environ, _clean_env(HEADLESS="true"), clear=True):
            assert BrowserConfig.from_env().headless is True
        with patch.dict(os.environ, _clean_env(HEADLESS="1"), clear=True):
            assert BrowserConfig.from_env().headless is False

    def test_reads_all_variables(self, tmp_path):
        env = _clean_env(
            STAGEHAND_ENV="browserbase",
            VIEWPORT_WIDTH="1920",
            VIEWPORT_HEIGHT="1080",
            DEBUG="1",
            STAGEHAND_MODEL_NAME="gpt-4o",
            ANTHROPIC_API_KEY="sk-ant",
            SCREENSHOTS_DIR=str(tmp_path),
            BROWSERBASE_API_KEY="bb-key",
            BROWSERBASE_PROJECT_ID="proj-1",
        )
        with patch.dict(os.environ, env, clear=True):
            config = BrowserConfig.from_env()

        assert config.env == "BROWSERBASE"
        assert config.get_viewport() == {"width": 1920, "height": 1080}
        assert config.debug is True
        assert config.model_name == "gpt-4o"
        assert config.model_api_key == "sk-ant"
        assert config.screenshots_dir == tmp_path
        assert config.browserbase_api_key == "bb-key"
        assert config.browserbase_project_id == "proj-1"

    def test_model_api_key_preferred_over_anthropic_key(self):
        env = _clean_env(MODEL_API_KEY="sk-model", ANTHROPIC_API_KEY="sk-ant")
        with patch.dict(os.environ, env, clear=True):
            assert BrowserConfig.from_env().model_api_key == "sk-model"

    def test_invalid_viewport_raises(self):
        with patch.dict(os.environ, _clean_env(VIEWPORT_WIDTH="wide"), clear=True):
            with pytest.raises(ValueError):
                BrowserConfig.from_env()
