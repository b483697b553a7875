"""Scenario runner: setup, steps, teardown and batch aggregation."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterable, Optional, Sequence

from playwright.async_api import Page

from visualflows.browser.session import BrowserSession, open_browser_session
from visualflows.errors import (
    CloseError,
    ElementNotFoundError,
    RunnerError,
    SessionSetupError,
    StepExecutionError,
    VisualMismatchError,
)
from visualflows.models.config import SuiteConfig
from visualflows.models.results import BatchResult, ScenarioResult, StepResult, VisualTestOutcome
from visualflows.models.scenario import Scenario, Step, describe_step
from visualflows.reporter.console import summarize_batch
from visualflows.visual.check_session import CheckSession, VisualBatch, open_check_session

from .step_runner import run_step, skipped_step

logger = logging.getLogger(__name__)

# Failures of the scenario body; anything else is an infrastructure error.
_FAIL_ERRORS = (ElementNotFoundError, StepExecutionError, VisualMismatchError)


def _utc_now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class ScenarioSession:
    """The browser/Eyes pair owned by one running scenario."""

    scenario: Scenario
    browser: Optional[BrowserSession] = None
    check: Optional[CheckSession] = None
    step_results: list[StepResult] = field(default_factory=list)
    teardown_errors: list[str] = field(default_factory=list)
    torn_down: bool = False

    @property
    def page(self) -> Page:
        if self.browser is None or self.browser.page is None:
            raise SessionSetupError(f"Scenario '{self.scenario.name}' has no open page")
        return self.browser.page


class ScenarioRunner:
    """Runs scenarios against a shared suite configuration and Eyes batch."""

    def __init__(self, config: SuiteConfig, batch: VisualBatch | None = None):
        self.config = config
        self.batch = batch or VisualBatch(config.batch_name)
        self.started_at = _utc_now()
        self._start_time = time.time()
        self._results: list[ScenarioResult] = []
        self._batch_result: BatchResult | None = None

    @property
    def results(self) -> list[ScenarioResult]:
        return list(self._results)

    async def setup(self, scenario: Scenario) -> ScenarioSession:
        """Open the browser, then the Eyes test named after the scenario."""
        session = ScenarioSession(scenario=scenario)
        logger.info("[%s] Setting up sessions", scenario.name)
        try:
            session.browser = await open_browser_session(self.config.browser)
            session.check = await open_check_session(
                self.config, self.batch, scenario.name, scenario.app_name,
            )
        except SessionSetupError:
            for problem in await self._release(session):
                logger.warning("[%s] Cleanup after failed setup: %s", scenario.name, problem)
            raise
        return session

    async def run_steps(
        self, session: ScenarioSession, steps: Sequence[Step] | None = None,
    ) -> list[StepResult]:
        """Run steps in order; the first failure skips the rest and is raised."""
        name = session.scenario.name
        steps = session.scenario.steps if steps is None else steps
        failure: StepResult | None = None

        for index, step in enumerate(steps):
            if failure is not None:
                session.step_results.append(skipped_step(step, index))
                continue
            logger.info("[%s] %s", name, describe_step(step))
            result = await run_step(session.page, session.check, step, index, self.config.browser)
            session.step_results.append(result)
            if result.failed:
                logger.error("[%s] Step %d failed: %s", name, index + 1, result.error_message)
                failure = result

        if failure is not None and failure.error is not None:
            raise failure.error
        return list(session.step_results)

    async def teardown(self, session: ScenarioSession) -> list[RunnerError]:
        """Close the Eyes test, then the browser. Runs once; never raises."""
        if session.torn_down:
            return []
        errors = await self._release(session)
        for problem in errors:
            logger.error("[%s] Teardown: %s", session.scenario.name, problem)
        return errors

    async def _release(self, session: ScenarioSession) -> list[RunnerError]:
        session.torn_down = True
        errors: list[RunnerError] = []
        if session.check is not None:
            try:
                await session.check.close(blocking=self.config.close_mode == "blocking")
            except (CloseError, VisualMismatchError) as e:
                errors.append(e)
        if session.browser is not None:
            try:
                await session.browser.close()
            except CloseError as e:
                errors.append(e)
        session.teardown_errors.extend(str(e) for e in errors)
        return errors

    @asynccontextmanager
    async def session(self, scenario: Scenario) -> AsyncIterator[ScenarioSession]:
        """Scoped session: teardown always runs, and an error raised by the body
        wins over teardown errors."""
        session = await self.setup(scenario)
        try:
            yield session
        except BaseException:
            await self.teardown(session)
            raise
        errors = await self.teardown(session)
        if errors:
            raise errors[0]

    async def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        """Run one scenario end to end and record its result."""
        start = time.time()
        session: ScenarioSession | None = None
        first_error: RunnerError | None = None

        try:
            async with self.session(scenario) as opened:
                session = opened
                await self.run_steps(opened)
        except RunnerError as e:
            first_error = e

        if first_error is None:
            status = "pass"
        elif isinstance(first_error, _FAIL_ERRORS):
            status = "fail"
        else:
            status = "error"

        result = ScenarioResult(
            scenario_name=scenario.name,
            result=status,
            duration_seconds=round(time.time() - start, 2),
            failure_reason=str(first_error) if first_error else None,
            error_type=type(first_error).__name__ if first_error else None,
            step_results=session.step_results if session else [],
            checkpoints=session.check.submissions if session and session.check else [],
            teardown_errors=session.teardown_errors if session else [],
        )
        self._results.append(result)
        logger.info("[%s] %s: %s (%.1fs)", result.result.upper(), scenario.name,
                    result.failure_reason or f"{len(result.checkpoints)} checkpoint(s)",
                    result.duration_seconds)
        return result

    async def run_suite(self, scenarios: Iterable[Scenario]) -> BatchResult:
        """Run scenarios concurrently (bounded by ``concurrency``) and finalize the batch."""
        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def _run_one(scenario: Scenario) -> ScenarioResult:
            async with semaphore:
                return await self.run_scenario(scenario)

        await asyncio.gather(*(_run_one(s) for s in scenarios))
        return await self.finalize_batch()

    async def finalize_batch(self) -> BatchResult:
        """Wait for every outstanding visual test and aggregate the batch."""
        if self._batch_result is not None:
            logger.warning("Batch '%s' already finalized", self.batch.name)
            return self._batch_result

        visual_results = await self.batch.collect()
        by_name: dict[str, list[VisualTestOutcome]] = {}
        for outcome in visual_results:
            by_name.setdefault(outcome.test_name, []).append(outcome)
        for result in self._results:
            matches = by_name.get(result.scenario_name)
            if matches:
                result.visual = matches.pop(0)

        results = self._results
        batch_result = BatchResult(
            batch_name=self.batch.name,
            started_at=self.started_at,
            completed_at=_utc_now(),
            total_scenarios=len(results),
            passed=sum(1 for r in results if r.result == "pass"),
            failed=sum(1 for r in results if r.result == "fail"),
            errors=sum(1 for r in results if r.result == "error"),
            checkpoints_submitted=sum(len(r.checkpoints) for r in results),
            visual_passed=sum(1 for v in visual_results if v.status == "Passed"),
            visual_unresolved=sum(1 for v in visual_results if v.status == "Unresolved"),
            visual_failed=sum(1 for v in visual_results if v.status in ("Failed", "Error")),
            duration_seconds=round(time.time() - self._start_time, 2),
            scenario_results=list(results),
            visual_results=visual_results,
        )
        self._batch_result = batch_result
        logger.info(summarize_batch(batch_result))
        return batch_result
