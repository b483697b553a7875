"""Suite configuration shared by every scenario of a run."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BATCH_NAME = "Visual Flows"

_TRUTHY = ("1", "true", "yes", "y", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean-like environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


class ViewportConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = 1280
    height: int = 720


class BrowserConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    browser_name: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = False
    channel: Optional[str] = None  # e.g. "chrome"
    ws_endpoint: Optional[str] = None  # remote Playwright server
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    # 0 disables the implicit wait: locators are resolved once, at call time.
    implicit_wait_ms: int = Field(default=0, ge=0)
    navigation_timeout_ms: int = Field(default=45000, gt=0)
    action_timeout_ms: int = Field(default=30000, gt=0)


class SuiteConfig(BaseModel):
    """Immutable configuration built once per suite."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    server_url: Optional[str] = None
    batch_name: str = DEFAULT_BATCH_NAME
    concurrency: int = Field(default=5, ge=1)
    # "async" hands the close to the batch and returns; "blocking" waits for
    # the remote comparison and fails the scenario on a visual mismatch.
    close_mode: Literal["async", "blocking"] = "async"
    app_name: str = "Visual Flows"
    browser: BrowserConfig = Field(default_factory=BrowserConfig)

    @field_validator("api_key", mode="before")
    @classmethod
    def resolve_env_api_key(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v or None

    @classmethod
    def from_env(cls, **overrides) -> "SuiteConfig":
        """Build the suite configuration from environment variables.

        Keyword arguments override whatever the environment provides.
        """
        browser = BrowserConfig(
            browser_name=os.environ.get("BROWSER", "chromium"),
            headless=env_flag("HEADLESS"),
            channel=os.environ.get("PW_CHANNEL") or None,
            ws_endpoint=os.environ.get("BROWSER_WS_ENDPOINT") or None,
            implicit_wait_ms=int(os.environ.get("IMPLICIT_WAIT_MS", "0")),
        )
        values: dict = {
            "api_key": os.environ.get("APPLITOOLS_API_KEY"),
            "server_url": os.environ.get("APPLITOOLS_SERVER_URL") or None,
            "batch_name": os.environ.get("VISUAL_BATCH_NAME", DEFAULT_BATCH_NAME),
            "concurrency": int(os.environ.get("VISUAL_CONCURRENCY", "5")),
            "close_mode": os.environ.get("VISUAL_CLOSE_MODE", "async"),
            "browser": browser,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def load(cls, path: str | Path) -> "SuiteConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)
