"""Fixtures for live runs against a real browser and the Eyes service.

The suite shares one runner (and so one Eyes batch); each test gets its own
browser/Eyes session, torn down after the test whatever its outcome. The
batch is finalized and printed once the session ends.
"""

import asyncio
import os

import pytest
from rich.console import Console

from visualflows.executor.runner import ScenarioRunner
from visualflows.models.config import SuiteConfig
from visualflows.reporter.console import print_batch_summary
from visualflows.scenarios.catalog import get_scenario


@pytest.fixture(scope="session")
def live_loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture(scope="session")
def live_config() -> SuiteConfig:
    if not os.environ.get("APPLITOOLS_API_KEY"):
        pytest.skip("APPLITOOLS_API_KEY is not set")
    return SuiteConfig.from_env()


@pytest.fixture(scope="session")
def live_runner(live_config, live_loop):
    runner = ScenarioRunner(live_config)
    yield runner
    result = live_loop.run_until_complete(runner.finalize_batch())
    print_batch_summary(result, Console())


@pytest.fixture
def live_session(request, live_runner, live_loop):
    """Open the sessions for the scenario named by the test's parameter."""
    scenario = get_scenario(request.param)
    session = live_loop.run_until_complete(live_runner.setup(scenario))
    yield session
    errors = live_loop.run_until_complete(live_runner.teardown(session))
    if errors:
        pytest.fail(f"Teardown of '{scenario.name}' failed: {errors[0]}")
