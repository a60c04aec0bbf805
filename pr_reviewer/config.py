"""Action configuration helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final, Literal, Mapping

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, BaseModel, ValidationError

DEFAULT_MODEL: Final[str] = "gpt-4"
DEFAULT_GITHUB_API_BASE_URL: Final[str] = "https://api.github.com"

ReviewMode = Literal["comments", "review"]


class SettingsError(RuntimeError):
    """Raised when action configuration is invalid or incomplete."""


class Settings(BaseModel):
    """Runtime settings read once at process start."""

    github_token: str
    openai_api_key: str
    openai_api_model: str = DEFAULT_MODEL
    framework: str = ""
    exclude: str = ""
    review_mode: ReviewMode = "comments"
    github_api_base_url: AnyHttpUrl = DEFAULT_GITHUB_API_BASE_URL
    event_path: str
    event_name: str = "unknown"

    @property
    def normalized_github_api_base_url(self) -> str:
        """Return the GitHub API base URL without a trailing slash."""
        return str(self.github_api_base_url).rstrip("/")

    @property
    def exclude_patterns(self) -> list[str]:
        return [pattern.strip() for pattern in self.exclude.split(",") if pattern.strip()]


def _input(env: Mapping[str, str], name: str, *fallbacks: str) -> str:
    """Read an Action input (``INPUT_<NAME>``), then any plain env fallbacks."""

    for key in (f"INPUT_{name.replace(' ', '_').upper()}", *fallbacks):
        value = env.get(key)
        if value and value.strip():
            return value.strip()
    return ""


def load_settings(env: Mapping[str, str] | None = None, *, dotenv_path: str | Path | None = None) -> Settings:
    """Build settings from the environment.

    Action inputs take precedence over the plain environment variables so the
    same entry point works inside a workflow and from a local ``.env`` file.
    """

    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    github_token = _input(env, "GITHUB_TOKEN", "GITHUB_TOKEN")
    openai_api_key = _input(env, "OPENAI_API_KEY", "OPENAI_API_KEY")
    event_path = env.get("GITHUB_EVENT_PATH", "").strip()

    missing = []
    if not github_token:
        missing.append("GITHUB_TOKEN")
    if not openai_api_key:
        missing.append("OPENAI_API_KEY")
    if not event_path:
        missing.append("GITHUB_EVENT_PATH")
    if missing:
        raise SettingsError(
            "Reviewer is not configured. Missing environment variables: "
            f"{', '.join(missing)}."
        )

    review_mode = (_input(env, "REVIEW_MODE") or "comments").lower()

    try:
        return Settings(
            github_token=github_token,
            openai_api_key=openai_api_key,
            openai_api_model=_input(env, "OPENAI_API_MODEL", "OPENAI_API_MODEL") or DEFAULT_MODEL,
            framework=_input(env, "FRAMEWORK"),
            exclude=_input(env, "EXCLUDE"),
            review_mode=review_mode,
            github_api_base_url=env.get("GITHUB_API_URL") or DEFAULT_GITHUB_API_BASE_URL,
            event_path=event_path,
            event_name=env.get("GITHUB_EVENT_NAME") or "unknown",
        )
    except ValidationError as exc:
        raise SettingsError(f"Invalid action configuration: {exc}") from exc
