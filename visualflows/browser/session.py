"""Browser session lifecycle on top of Playwright."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from visualflows.errors import CloseError, SessionSetupError
from visualflows.models.config import BrowserConfig

logger = logging.getLogger(__name__)


@dataclass
class BrowserSession:
    """One automated browser owned by a single scenario."""

    playwright: Optional[Playwright] = None
    browser: Optional[Browser] = None
    context: Optional[BrowserContext] = None
    page: Optional[Page] = None
    closed: bool = False

    async def close(self) -> None:
        """Release context, browser and driver; raises CloseError if any step failed.

        Every resource is released even when an earlier one fails to close.
        """
        if self.closed:
            return
        self.closed = True
        problems: list[str] = []
        for label, closer in (
            ("context", self.context.close if self.context else None),
            ("browser", self.browser.close if self.browser else None),
            ("playwright", self.playwright.stop if self.playwright else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.warning("Closing %s failed: %s", label, e)
                problems.append(f"{label}: {e}")
        if problems:
            raise CloseError("Browser session did not close cleanly: " + "; ".join(problems))


async def open_browser_session(config: BrowserConfig) -> BrowserSession:
    """Start Playwright, open a browser (local or remote) and a fresh page.

    On failure, whatever was already started is released before
    SessionSetupError is raised.
    """
    session = BrowserSession()
    try:
        session.playwright = await async_playwright().start()
        browser_type = getattr(session.playwright, config.browser_name)

        if config.ws_endpoint:
            logger.debug("Connecting to remote %s at %s", config.browser_name, config.ws_endpoint)
            session.browser = await browser_type.connect(config.ws_endpoint)
        else:
            launch_kwargs: dict = {"headless": config.headless}
            if config.channel:
                launch_kwargs["channel"] = config.channel
            logger.debug("Launching %s (headless=%s)", config.browser_name, config.headless)
            session.browser = await browser_type.launch(**launch_kwargs)

        session.context = await session.browser.new_context(
            viewport={"width": config.viewport.width, "height": config.viewport.height},
        )
        session.context.set_default_timeout(config.action_timeout_ms)
        session.context.set_default_navigation_timeout(config.navigation_timeout_ms)
        session.page = await session.context.new_page()
    except Exception as e:
        try:
            await session.close()
        except CloseError as close_error:
            logger.warning("Cleanup after failed browser setup: %s", close_error)
        raise SessionSetupError(f"Could not open browser session: {e}") from e

    return session
