"""Locator resolution: turn a Locator into exactly one Playwright element."""

from __future__ import annotations

import logging

from playwright.async_api import Locator as PlaywrightLocator
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from visualflows.errors import ElementNotFoundError
from visualflows.models.scenario import Locator

logger = logging.getLogger(__name__)


async def resolve_locator(
    page: Page, locator: Locator, implicit_wait_ms: int = 0,
) -> PlaywrightLocator:
    """Resolve ``locator`` on ``page`` and return its first match.

    With ``implicit_wait_ms`` > 0 the element is given that long to attach;
    otherwise the page is queried once. Raises ElementNotFoundError when
    nothing matches.
    """
    selector = locator.to_selector()
    matches = page.locator(selector)

    if implicit_wait_ms > 0:
        try:
            await matches.first.wait_for(state="attached", timeout=implicit_wait_ms)
        except PlaywrightTimeoutError:
            raise ElementNotFoundError(
                selector, f"No element matches locator '{selector}' after {implicit_wait_ms}ms",
            ) from None

    count = await matches.count()
    if count == 0:
        raise ElementNotFoundError(selector)
    if count > 1:
        logger.debug("Locator '%s' matched %d elements, using the first", selector, count)
    return matches.first
