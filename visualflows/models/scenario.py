"""Scenario and step definitions."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

_SIMPLE_IDENT_RE = re.compile(r"^[A-Za-z_][\w-]*$")


def _quote(value: str) -> str:
    """Escape a value for a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class Locator(BaseModel):
    """How to find an element on the page."""

    model_config = ConfigDict(frozen=True)

    by: Literal["id", "class_name", "css", "text", "xpath"] = "css"
    value: str = Field(min_length=1)

    @classmethod
    def id(cls, value: str) -> "Locator":
        return cls(by="id", value=value)

    @classmethod
    def class_name(cls, value: str) -> "Locator":
        return cls(by="class_name", value=value)

    @classmethod
    def css(cls, value: str) -> "Locator":
        return cls(by="css", value=value)

    def to_selector(self) -> str:
        """Translate to a Playwright selector string."""
        match self.by:
            case "id":
                if _SIMPLE_IDENT_RE.match(self.value):
                    return f"#{self.value}"
                return f'[id="{_quote(self.value)}"]'
            case "class_name":
                if _SIMPLE_IDENT_RE.match(self.value):
                    return f".{self.value}"
                return f'[class~="{_quote(self.value)}"]'
            case "text":
                return f"text={self.value}"
            case "xpath":
                return f"xpath={self.value}"
            case _:
                return self.value

    def __str__(self) -> str:
        return f"{self.by}={self.value}"


class MatchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    layout: bool = False  # compare structure instead of exact pixels
    fully: bool = True  # capture the full scrollable page


class Navigate(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_type: Literal["navigate"] = "navigate"
    url: str
    description: str = ""


class Wait(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_type: Literal["wait"] = "wait"
    duration_ms: int = Field(ge=0)
    description: str = ""


class Click(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_type: Literal["click"] = "click"
    locator: Locator
    description: str = ""


class Checkpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_type: Literal["checkpoint"] = "checkpoint"
    name: str = Field(min_length=1)
    match_options: MatchOptions = Field(default_factory=MatchOptions)
    description: str = ""


Step = Annotated[Union[Navigate, Wait, Click, Checkpoint], Field(discriminator="step_type")]


def describe_step(step: Step) -> str:
    """Human-readable progress line for a step."""
    if step.description:
        return step.description
    match step:
        case Navigate():
            return f"Navigate to {step.url}"
        case Wait():
            return f"Wait {step.duration_ms}ms"
        case Click():
            return f"Click {step.locator}"
        case Checkpoint():
            mode = "layout" if step.match_options.layout else "strict"
            return f"Checkpoint '{step.name}' ({mode})"
    return step.step_type


class Scenario(BaseModel):
    """A named, ordered list of steps run against one browser session."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)  # also the Eyes test name
    app_name: Optional[str] = None
    steps: tuple[Step, ...] = ()

    @model_validator(mode="after")
    def _unique_checkpoint_names(self) -> "Scenario":
        seen: set[str] = set()
        for step in self.steps:
            if isinstance(step, Checkpoint):
                if step.name in seen:
                    raise ValueError(
                        f"Duplicate checkpoint name '{step.name}' in scenario '{self.name}'"
                    )
                seen.add(step.name)
        return self

    @property
    def checkpoints(self) -> list[Checkpoint]:
        return [s for s in self.steps if isinstance(s, Checkpoint)]


def load_scenarios(path: str | Path) -> list[Scenario]:
    """Load scenarios from a JSON file (a list, or an object with a ``scenarios`` key)."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Scenario file not found: {p}")
    with open(p, encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("scenarios")
    if not isinstance(raw, list):
        raise ValueError(f"{p} must contain a list of scenarios")
    return [Scenario(**row) for row in raw]
