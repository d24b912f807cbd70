"""
BrowserSessionManager: lifecycle of the single Stagehand browser session.

The MCP server keeps at most one live Stagehand session. Before every tool
call the dispatcher asks the manager for a session; the manager decides
whether the current one can be reused or must be rebuilt.

State machine:
    ABSENT ──create──▶ LIVE
    LIVE ──probe──▶ SUSPECT ──ok──▶ LIVE
                       └──fail──▶ CLOSING ──▶ ABSENT ──create──▶ LIVE
    LIVE ──force_reinit──▶ CLOSING ──▶ ABSENT ──create──▶ LIVE

The probe evaluates a trivial script on the current page. A session
without a page, or whose page no longer answers, is rebuilt. Closing the
old session is best-effort: a failure is logged and never blocks the
replacement. Initialization failures propagate as SessionInitError.

Usage:
    manager = BrowserSessionManager(config, operation_log)
    session = await manager.ensure_session()                   # reuse if alive
    session = await manager.ensure_session(force_reinit=True)  # always fresh
    await manager.close()
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

from stagehand_mcp.browser.config import BrowserConfig
from stagehand_mcp.exceptions import SessionInitError, SessionProbeFailure
from stagehand_mcp.observability.operation_log import OperationLog

logger = logging.getLogger(__name__)

SessionFactory = Callable[[BrowserConfig], Any]

# Release line providing StagehandConfig and the page-level act/extract API.
STAGEHAND_REQUIREMENT = "stagehand>=0.5,<0.6"


class SessionState(str, Enum):
    ABSENT = "absent"
    LIVE = "live"
    SUSPECT = "suspect"
    CLOSING = "closing"


def create_stagehand_session(config: BrowserConfig) -> Any:
    """
    Construct (but do not initialize) a Stagehand session from config.

    Raises:
        SessionInitError: If the stagehand package is not installed, or the
            installed release does not provide the StagehandConfig API.
    """
    try:
        import stagehand
    except ImportError as e:
        raise SessionInitError(
            "stagehand is not installed. "
            f"Run: pip install '{STAGEHAND_REQUIREMENT}' && playwright install chromium"
        ) from e

    try:
        from stagehand import Stagehand, StagehandConfig
    except ImportError as e:
        version = getattr(stagehand, "__version__", "unknown")
        raise SessionInitError(
            f"Incompatible stagehand version {version}: StagehandConfig not found. "
            f"Run: pip install '{STAGEHAND_REQUIREMENT}'"
        ) from e

    return Stagehand(StagehandConfig(**config.to_stagehand_kwargs()))


class BrowserSessionManager:
    """
    Owns the one browser session slot.

    Args:
        config: BrowserConfig for new sessions. If None, the environment
            is read with BrowserConfig.from_env() each time a session is
            constructed.
        log: OperationLog receiving the per-request trace.
        session_factory: Builds an uninitialized session from a config.
            Defaults to create_stagehand_session. Tests inject fakes here.
    """

    PROBE_SCRIPT = "() => window.location.href"

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        log: Optional[OperationLog] = None,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.config = config
        self.log = log or OperationLog()
        self._session_factory = session_factory or create_stagehand_session
        self._session: Any = None
        self._state = SessionState.ABSENT
        self._init_count = 0

    # ─── Public API ──────────────────────────────────────────────────

    async def ensure_session(self, force_reinit: bool = False) -> Any:
        """
        Return a session that answered a liveness check just now.

        Args:
            force_reinit: Close any existing session and build a new one,
                even if the current one is healthy.

        Returns:
            The live session.

        Raises:
            SessionInitError: If a new session could not be constructed
                or initialized.
        """
        self.log.append("Ensuring browser session is initialized...")

        if self._session is None:
            needs_init = True
        elif force_reinit:
            self.log.append("Forced reinitialization requested")
            needs_init = True
        else:
            needs_init = not await self._probe()

        if not needs_init:
            self.log.append("Using existing active browser session")
            return self._session

        await self._discard_session()
        return await self._create_session()

    async def close(self) -> None:
        """
        Close the current session, if any. Best-effort; safe to call twice.
        """
        await self._discard_session()

    # ─── Properties ──────────────────────────────────────────────────

    @property
    def session(self) -> Any:
        """The current session object (or None)."""
        return self._session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_live(self) -> bool:
        return self._state is SessionState.LIVE

    @property
    def init_count(self) -> int:
        """Number of sessions successfully initialized so far."""
        return self._init_count

    # ─── Private Helpers ─────────────────────────────────────────────

    async def _probe(self) -> bool:
        """Check the current session; True when it can be reused."""
        self._state = SessionState.SUSPECT
        try:
            await self._run_probe()
        except SessionProbeFailure as e:
            self.log.append(f"{e}, will reinitialize")
            logger.info(
                "browser_session_probe_failed",
                extra={"error": str(e)},
            )
            return False

        self._state = SessionState.LIVE
        return True

    async def _run_probe(self) -> None:
        page = getattr(self._session, "page", None)
        if page is None:
            raise SessionProbeFailure("No active page found")

        self.log.append("Testing if browser session is still active...")
        try:
            await page.evaluate(self.PROBE_SCRIPT)
        except Exception as e:
            raise SessionProbeFailure(f"Browser session is closed ({e})") from e

    async def _discard_session(self) -> None:
        """Close and forget the current session. Close errors are swallowed."""
        if self._session is None:
            self._state = SessionState.ABSENT
            return

        session = self._session
        self._state = SessionState.CLOSING
        self.log.append("Closing previous browser session...")
        try:
            await session.close()
        except Exception as e:
            self.log.append(f"Error closing previous session: {e}")
            logger.warning(
                "browser_session_close_failed",
                extra={"error": str(e)},
            )
        finally:
            self._session = None
            self._state = SessionState.ABSENT

    async def _create_session(self) -> Any:
        self.log.append("Initializing new browser session...")
        start_time = time.monotonic()
        session = None

        try:
            config = self.config or BrowserConfig.from_env()
            session = self._session_factory(config)
            self.log.append("Running init()")
            await session.init()
        except Exception as e:
            error = e if isinstance(e, SessionInitError) else SessionInitError(str(e))
            self.log.append(f"Failed to initialize browser session: {error}")
            logger.error(
                "browser_session_start_failed",
                extra={"error": str(error)},
            )
            if session is not None:
                await self._close_quietly(session)
            if error is e:
                raise
            raise error from e

        self._session = session
        self._state = SessionState.LIVE
        self._init_count += 1
        self.log.append("Browser session initialized successfully")
        logger.info(
            "browser_session_started",
            extra={
                "env": config.env,
                "headless": config.headless,
                "viewport": config.get_viewport(),
                "duration_ms": int((time.monotonic() - start_time) * 1000),
            },
        )
        return session

    async def _close_quietly(self, session: Any) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.warning(
                "browser_session_close_failed",
                extra={"error": str(e)},
            )

    def __repr__(self) -> str:
        return (
            f"BrowserSessionManager(state={self._state.value!r}, "
            f"init_count={self._init_count})"
        )
