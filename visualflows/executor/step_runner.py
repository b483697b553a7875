"""Step runner: translates Step models to Playwright and Eyes calls."""

from __future__ import annotations

import logging
import time

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from visualflows.errors import RunnerError, StepExecutionError
from visualflows.models.config import BrowserConfig
from visualflows.models.results import StepResult
from visualflows.models.scenario import Checkpoint, Click, Navigate, Step, Wait, describe_step
from visualflows.visual.check_session import CheckSession

from .locator import resolve_locator

logger = logging.getLogger(__name__)


async def _execute(
    page: Page, check_session: CheckSession, step: Step, index: int, config: BrowserConfig,
) -> None:
    match step:
        case Navigate():
            await page.goto(step.url, wait_until="load", timeout=config.navigation_timeout_ms)
            try:
                await page.wait_for_load_state(
                    "networkidle", timeout=min(config.navigation_timeout_ms, 10000),
                )
            except PlaywrightTimeoutError:
                logger.debug("Network idle timeout, continuing")

        case Wait():
            await page.wait_for_timeout(step.duration_ms)

        case Click():
            target = await resolve_locator(page, step.locator, config.implicit_wait_ms)
            await target.click(timeout=config.action_timeout_ms)

        case Checkpoint():
            # Capture now so the snapshot reflects exactly the steps before it.
            image = await page.screenshot(full_page=step.match_options.fully, type="png")
            check_session.submit(step, image, step_index=index)

        case _:
            raise StepExecutionError(f"Unknown step type: {step.step_type}")


async def run_step(
    page: Page, check_session: CheckSession, step: Step, index: int, config: BrowserConfig,
) -> StepResult:
    """Execute one step and report the outcome instead of raising.

    Runner and Playwright errors come back on the result (``error`` keeps the
    exception); anything else is a programming error and propagates.
    """
    description = describe_step(step)
    start = time.monotonic()
    error: RunnerError | None = None

    try:
        await _execute(page, check_session, step, index, config)
    except RunnerError as e:
        error = e
    except PlaywrightError as e:
        error = StepExecutionError(f"{description} failed: {e}")
        error.__cause__ = e

    duration_ms = int((time.monotonic() - start) * 1000)
    if error is not None:
        return StepResult(
            step_index=index, step_type=step.step_type, description=description,
            status="fail", error_type=type(error).__name__, error_message=str(error),
            duration_ms=duration_ms, error=error,
        )
    return StepResult(
        step_index=index, step_type=step.step_type, description=description,
        status="pass", duration_ms=duration_ms,
    )


def skipped_step(step: Step, index: int) -> StepResult:
    return StepResult(
        step_index=index, step_type=step.step_type, description=describe_step(step),
        status="skip", error_message="Skipped due to earlier failure",
    )
