"""
Pytest Configuration and Shared Fixtures
=========================================

Sample diffs, event payloads and fake GitHub / OpenAI backends shared by the
reviewer test suite.
"""

import json
from types import SimpleNamespace
from typing import Callable, List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pr_reviewer.config import Settings
from pr_reviewer.github_client import GitHubClient
from pr_reviewer.logger import get_logger
from pr_reviewer.models.review import PRDetails
from pr_reviewer.openai_client import ReviewClient
from tests.review_fixtures import (
    HEAD_SHA,
    OWNER,
    PULL_NUMBER,
    REPO,
    FakeGitHub,
    completion,
)

logger = get_logger()

# ============================================================================
# Logging
# ============================================================================


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


# ============================================================================
# Settings and events
# ============================================================================


@pytest.fixture
def write_event(tmp_path) -> Callable[..., str]:
    """Write a pull_request event payload and return its path."""

    def _write(action: str = "opened", **extra) -> str:
        payload = {
            "action": action,
            "number": PULL_NUMBER,
            "repository": {"name": REPO, "owner": {"login": OWNER}, "full_name": f"{OWNER}/{REPO}"},
            **extra,
        }
        path = tmp_path / "event.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(event_path: str = "/tmp/event.json", **overrides) -> Settings:
        values = {
            "github_token": "gh-token",
            "openai_api_key": "sk-test",
            "openai_api_model": "gpt-4",
            "event_path": event_path,
            "event_name": "pull_request",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def pr_details() -> PRDetails:
    return PRDetails(
        owner=OWNER,
        repo=REPO,
        pull_number=PULL_NUMBER,
        title="Add timeout",
        description="Adds a request timeout.",
        head_sha=HEAD_SHA,
    )


# ============================================================================
# Fake GitHub
# ============================================================================


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def make_github_client() -> Callable[[FakeGitHub], GitHubClient]:
    def _make(fake: FakeGitHub) -> GitHubClient:
        http_client = httpx.AsyncClient(
            base_url="https://api.github.com",
            transport=httpx.MockTransport(fake.handler),
        )
        return GitHubClient(token="gh-token", client=http_client)

    return _make


# ============================================================================
# Fake OpenAI
# ============================================================================


@pytest.fixture
def openai_mock() -> MagicMock:
    mock = MagicMock()
    mock.chat.completions.create = AsyncMock(return_value=completion('{"reviews": []}'))
    return mock


@pytest.fixture
def review_client(openai_mock) -> ReviewClient:
    return ReviewClient("sk-test", model="gpt-4", client=openai_mock)


@pytest.fixture
def make_completion() -> Callable[[str | None], SimpleNamespace]:
    return completion
