"""Visual-check sessions backed by the Applitools Eyes Images SDK.

The Eyes SDK is blocking, so each session owns a single-worker thread pool:
open, checks and close are queued on it and reach the service in submission
order while the scenario's event loop keeps running.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from applitools.images import BatchInfo, Eyes, RectangleSize, Target

from visualflows.errors import (
    CloseError,
    SessionSetupError,
    StepExecutionError,
    VisualMismatchError,
)
from visualflows.models.config import SuiteConfig
from visualflows.models.results import CheckpointSubmission, VisualTestOutcome
from visualflows.models.scenario import Checkpoint

logger = logging.getLogger(__name__)


class VisualBatch:
    """Batch identity shared by all scenarios, plus every close still in flight."""

    def __init__(self, name: str):
        self.name = name
        self.info = BatchInfo(name)
        self._pending: list[tuple[str, asyncio.Future]] = []

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def track(self, test_name: str, future: asyncio.Future) -> None:
        self._pending.append((test_name, future))

    async def collect(self) -> list[VisualTestOutcome]:
        """Wait for every tracked close and return one outcome per Eyes test."""
        outcomes: list[VisualTestOutcome] = []
        pending, self._pending = self._pending, []
        logger.debug("Waiting for %d visual test(s) to resolve", len(pending))
        for test_name, future in pending:
            try:
                results = await future
            except Exception as e:
                logger.error("Visual test '%s' did not complete: %s", test_name, e)
                outcomes.append(VisualTestOutcome(test_name=test_name, status="Error", error=str(e)))
                continue
            outcomes.append(VisualTestOutcome.from_eyes(test_name, results))
        return outcomes


class CheckSession:
    """One Eyes test; checkpoints are queued, close is tracked by the batch."""

    def __init__(self, config: SuiteConfig, batch: VisualBatch, test_name: str, app_name: str):
        self.config = config
        self.batch = batch
        self.test_name = test_name
        self.app_name = app_name
        self.eyes: Any = None
        self.closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="eyes")
        self._submissions: list[CheckpointSubmission] = []
        self._checks: list[asyncio.Future] = []

    @property
    def submissions(self) -> list[CheckpointSubmission]:
        return list(self._submissions)

    async def open(self) -> None:
        if not self.config.api_key:
            raise SessionSetupError("APPLITOOLS_API_KEY is not set")
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self._open_eyes)
        except Exception as e:
            self._executor.shutdown(wait=False)
            self.closed = True
            raise SessionSetupError(f"Could not open Eyes test '{self.test_name}': {e}") from e
        logger.debug("Eyes test opened: %s / %s", self.app_name, self.test_name)

    def _open_eyes(self) -> None:
        eyes = Eyes()
        eyes.configure.set_api_key(self.config.api_key)
        eyes.configure.set_batch(self.batch.info)
        if self.config.server_url:
            eyes.configure.set_server_url(self.config.server_url)
        viewport = self.config.browser.viewport
        eyes.open(self.app_name, self.test_name, RectangleSize(viewport.width, viewport.height))
        self.eyes = eyes

    def submit(self, checkpoint: Checkpoint, image: bytes, step_index: int = 0) -> CheckpointSubmission:
        """Queue a snapshot for comparison; does not wait for the service.

        Must be called from the scenario's event loop.
        """
        if self.closed or self.eyes is None:
            raise StepExecutionError(f"Eyes test '{self.test_name}' is not open")
        if any(s.name == checkpoint.name for s in self._submissions):
            raise StepExecutionError(
                f"Checkpoint '{checkpoint.name}' was already submitted in '{self.test_name}'"
            )

        settings = Target.image(image).with_name(checkpoint.name)
        if checkpoint.match_options.layout:
            settings = settings.layout()

        loop = asyncio.get_running_loop()
        self._checks.append(loop.run_in_executor(self._executor, self.eyes.check, settings))
        submission = CheckpointSubmission(
            name=checkpoint.name,
            layout=checkpoint.match_options.layout,
            fully=checkpoint.match_options.fully,
            step_index=step_index,
        )
        self._submissions.append(submission)
        return submission

    async def close(self, blocking: bool = False) -> Optional[Any]:
        """Close the Eyes test.

        Fire-and-forget (``blocking=False``) returns at once; the batch waits for
        the remote comparison later. Blocking waits for it and raises
        VisualMismatchError when the test did not pass.
        """
        if self.closed:
            return None
        self.closed = True
        loop = asyncio.get_running_loop()
        checks = list(self._checks)
        close_future = loop.run_in_executor(self._executor, self._close_eyes)
        self._executor.shutdown(wait=False)

        settled = asyncio.ensure_future(self._settle(checks, close_future))
        self.batch.track(self.test_name, settled)
        if not blocking:
            logger.debug("Eyes test '%s' closing in background", self.test_name)
            return None

        results = await settled
        outcome = VisualTestOutcome.from_eyes(self.test_name, results)
        if not outcome.passed:
            raise VisualMismatchError(self.test_name, outcome.status, outcome.url)
        return results

    def _close_eyes(self) -> Any:
        return self.eyes.close(False)

    async def _settle(self, checks: list[asyncio.Future], close_future: asyncio.Future) -> Any:
        check_errors: list[str] = []
        for future in checks:
            try:
                await future
            except Exception as e:
                check_errors.append(str(e))
        try:
            results = await close_future
        except Exception as e:
            raise CloseError(f"Closing Eyes test '{self.test_name}' failed: {e}") from e
        if check_errors:
            raise CloseError(
                f"{len(check_errors)} checkpoint(s) of '{self.test_name}' were rejected: "
                + "; ".join(check_errors)
            )
        return results


async def open_check_session(
    config: SuiteConfig, batch: VisualBatch, test_name: str, app_name: str | None = None,
) -> CheckSession:
    """Open an Eyes test for one scenario."""
    session = CheckSession(config, batch, test_name, app_name or config.app_name)
    await session.open()
    return session
