"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from visualflows.browser.session import BrowserSession
from visualflows.models.config import BrowserConfig, SuiteConfig, ViewportConfig
from visualflows.models.scenario import (
    Checkpoint,
    Click,
    Locator,
    MatchOptions,
    Navigate,
    Scenario,
    Wait,
)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def browser_config() -> BrowserConfig:
    """Create a test browser configuration."""
    return BrowserConfig(
        headless=True,
        viewport=ViewportConfig(width=1280, height=720),
        navigation_timeout_ms=20000,
        action_timeout_ms=5000,
    )


@pytest.fixture
def suite_config(browser_config: BrowserConfig) -> SuiteConfig:
    """Create a test suite configuration."""
    return SuiteConfig(
        api_key="test-api-key",
        batch_name="Test Batch",
        concurrency=2,
        app_name="Test App",
        browser=browser_config,
    )


# ============================================================================
# Scenario Fixtures
# ============================================================================


@pytest.fixture
def cart_scenario() -> Scenario:
    """A short checkout-style scenario."""
    return Scenario(
        name="Shop Should Add Item To Cart",
        app_name="Shop",
        steps=(
            Navigate(url="https://shop.example.com/products/1"),
            Click(locator=Locator.id("buyButton")),
            Wait(duration_ms=100),
            Click(locator=Locator.class_name("cart-button")),
            Checkpoint(name="Cart", match_options=MatchOptions(layout=True)),
            Click(locator=Locator.class_name("checkout-button")),
            Checkpoint(name="Checkout", match_options=MatchOptions(layout=True)),
        ),
    )


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_mock_page(missing: tuple[str, ...] = (), events: list | None = None) -> MagicMock:
    """Create a mock Playwright page.

    Selectors listed in ``missing`` resolve to zero elements. When ``events``
    is given, page calls append ``(action, detail)`` tuples to it.
    """
    events = events if events is not None else []
    page = MagicMock()
    page.url = "https://example.com"
    page.events = events

    async def _goto(url, **kwargs):
        events.append(("goto", url))

    async def _screenshot(**kwargs):
        events.append(("screenshot", kwargs.get("full_page")))
        return b"\x89PNG-fake"

    async def _wait(ms):
        events.append(("wait", ms))

    page.goto = AsyncMock(side_effect=_goto)
    page.screenshot = AsyncMock(side_effect=_screenshot)
    page.wait_for_timeout = AsyncMock(side_effect=_wait)
    page.wait_for_load_state = AsyncMock()

    def _locator(selector):
        matches = MagicMock()
        matches.count = AsyncMock(return_value=0 if selector in missing else 1)
        first = MagicMock()

        async def _click(**kwargs):
            events.append(("click", selector))

        first.click = AsyncMock(side_effect=_click)
        first.wait_for = AsyncMock()
        matches.first = first
        return matches

    page.locator = MagicMock(side_effect=_locator)
    return page


@pytest.fixture
def mock_page() -> MagicMock:
    return make_mock_page()


def make_browser_session(page=None) -> BrowserSession:
    """A BrowserSession whose Playwright objects are mocks."""
    return BrowserSession(
        playwright=AsyncMock(),
        browser=AsyncMock(),
        context=AsyncMock(),
        page=page or make_mock_page(),
    )


def make_eyes_results(status: str = "Passed", name: str | None = None, mismatches: int = 0):
    """Stand-in for an applitools TestResults object."""
    return SimpleNamespace(
        status=SimpleNamespace(value=status),
        name=name,
        steps=2,
        matches=2 - mismatches,
        mismatches=mismatches,
        missing=0,
        is_new=False,
        url="https://eyes.applitools.com/app/batches/1",
    )


@pytest.fixture
def eyes_sdk():
    """Patch the Eyes Images SDK used by check sessions.

    Every ``Eyes()`` call creates a new mock, collected in ``created``; its
    ``close`` returns passing results unless ``close_result`` is changed.
    """
    state = SimpleNamespace(created=[], close_result=make_eyes_results("Passed"), checks=[])

    def _new_eyes():
        eyes = MagicMock()
        eyes.close.side_effect = lambda raise_ex=True: state.close_result
        eyes.check.side_effect = lambda settings: state.checks.append(settings)
        state.created.append(eyes)
        return eyes

    with patch("visualflows.visual.check_session.Eyes", side_effect=_new_eyes) as eyes_cls, \
         patch("visualflows.visual.check_session.Target") as target, \
         patch("visualflows.visual.check_session.BatchInfo") as batch_info, \
         patch("visualflows.visual.check_session.RectangleSize"):
        state.eyes_cls = eyes_cls
        state.target = target
        state.batch_info = batch_info
        yield state


@pytest.fixture
def page_factory():
    """Fixture that provides the make_mock_page function."""
    return make_mock_page


@pytest.fixture
def browser_session_factory():
    """Fixture that provides the make_browser_session function."""
    return make_browser_session


@pytest.fixture
def eyes_results_factory():
    """Fixture that provides the make_eyes_results function."""
    return make_eyes_results
