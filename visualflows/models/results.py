"""Result data structures produced by the scenario runner."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from visualflows.errors import RunnerError


class StepResult(BaseModel):
    """Result of executing a single step."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    step_index: int
    step_type: str
    description: str = ""
    status: str = "pass"  # pass, fail, skip
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: int = 0
    # The original exception, kept for re-raising; not serialized.
    error: Optional[RunnerError] = Field(default=None, exclude=True, repr=False)

    @property
    def failed(self) -> bool:
        return self.status == "fail"


class CheckpointSubmission(BaseModel):
    """A snapshot handed to the Eyes session."""

    name: str
    layout: bool = False
    fully: bool = True
    step_index: int = 0


class VisualTestOutcome(BaseModel):
    """Remote comparison outcome of one Eyes test."""

    test_name: str
    status: str = "Unknown"  # Passed, Unresolved, Failed, Unknown
    steps: int = 0
    matches: int = 0
    mismatches: int = 0
    missing: int = 0
    is_new: Optional[bool] = None
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == "Passed"

    @classmethod
    def from_eyes(cls, test_name: str, results: Any) -> "VisualTestOutcome":
        """Build from an ``applitools`` ``TestResults`` object."""
        if results is None:
            return cls(test_name=test_name)
        status = getattr(results, "status", None)
        return cls(
            test_name=getattr(results, "name", None) or test_name,
            status=getattr(status, "value", None) or str(status or "Unknown"),
            steps=getattr(results, "steps", 0) or 0,
            matches=getattr(results, "matches", 0) or 0,
            mismatches=getattr(results, "mismatches", 0) or 0,
            missing=getattr(results, "missing", 0) or 0,
            is_new=getattr(results, "is_new", None),
            url=getattr(results, "url", None),
        )


class ScenarioResult(BaseModel):
    scenario_name: str
    result: str  # pass, fail, error
    duration_seconds: float = 0.0
    failure_reason: Optional[str] = None
    error_type: Optional[str] = None
    step_results: list[StepResult] = Field(default_factory=list)
    checkpoints: list[CheckpointSubmission] = Field(default_factory=list)
    teardown_errors: list[str] = Field(default_factory=list)
    visual: Optional[VisualTestOutcome] = None


class BatchResult(BaseModel):
    batch_name: str
    started_at: str
    completed_at: str
    total_scenarios: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    checkpoints_submitted: int = 0
    visual_passed: int = 0
    visual_unresolved: int = 0
    visual_failed: int = 0
    duration_seconds: float = 0.0
    scenario_results: list[ScenarioResult] = Field(default_factory=list)
    visual_results: list[VisualTestOutcome] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.errors == 0
