"""Error taxonomy for scenario runs."""

from __future__ import annotations


class RunnerError(Exception):
    """Base class for failures raised while running a scenario."""


class SessionSetupError(RunnerError):
    """The browser or the Eyes test could not be opened."""


class ElementNotFoundError(RunnerError):
    """A locator resolved to zero elements."""

    def __init__(self, selector: str, message: str | None = None):
        self.selector = selector
        super().__init__(message or f"No element matches locator '{selector}'")


class StepExecutionError(RunnerError):
    """A navigate/click/wait/checkpoint step failed."""


class CloseError(RunnerError):
    """Releasing the browser or the Eyes test failed."""


class VisualMismatchError(RunnerError):
    """Blocking close reported unresolved or failed checkpoints."""

    def __init__(self, test_name: str, status: str, url: str | None = None):
        self.test_name = test_name
        self.status = status
        self.url = url
        detail = f" ({url})" if url else ""
        super().__init__(f"Visual test '{test_name}' finished as {status}{detail}")
