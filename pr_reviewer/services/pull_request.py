"""Helpers to read the triggering event and fetch pull request data."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Final

from pydantic import ValidationError

from pr_reviewer.github_client import GitHubClient
from pr_reviewer.logger import get_logger, log_timing, log_with_context
from pr_reviewer.models.event import PullRequestEvent
from pr_reviewer.models.review import DiffTarget, PRDetails

logger = get_logger()

SUPPORTED_ACTIONS: Final[frozenset[str]] = frozenset({"opened", "synchronize"})


class EventPayloadError(RuntimeError):
    """Raised when the GitHub event payload is missing or malformed."""


def load_event(event_path: str) -> PullRequestEvent:
    """Load and validate the GitHub Actions event payload."""

    path = Path(event_path)
    if not event_path or not path.is_file():
        raise EventPayloadError(f"GITHUB_EVENT_PATH not set or file not found: {event_path!r}")

    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as exc:
        raise EventPayloadError(f"Unable to read event payload at {event_path}: {exc}") from exc

    try:
        return PullRequestEvent.model_validate(raw)
    except ValidationError as exc:
        raise EventPayloadError(f"Event payload is not a pull request event: {exc}") from exc


async def fetch_pr_details(client: GitHubClient, event: PullRequestEvent) -> PRDetails:
    ctx_logger = log_with_context(logger, repository=f"{event.owner}/{event.repo}", pull_number=event.number)
    with log_timing(ctx_logger, "fetch_pr_details"):
        pr = await client.get_pull_request(owner=event.owner, repo=event.repo, pull_number=event.number)

    head = pr.get("head") or {}
    return PRDetails(
        owner=event.owner,
        repo=event.repo,
        pull_number=event.number,
        title=pr.get("title") or "",
        description=pr.get("body") or "",
        head_sha=head.get("sha"),
    )


async def fetch_diff(client: GitHubClient, event: PullRequestEvent, pr_details: PRDetails) -> DiffTarget:
    """Fetch the diff to review for a supported event action.

    ``opened`` reviews the whole pull request. ``synchronize`` reviews only the
    commits pushed since the previous head, and comments attach to the new head.
    """

    ctx_logger = log_with_context(logger, repository=pr_details.full_name, pull_number=pr_details.pull_number)

    if event.action == "opened":
        with log_timing(ctx_logger, "fetch_pr_diff"):
            diff = await client.get_pull_request_diff(
                owner=pr_details.owner,
                repo=pr_details.repo,
                pull_number=pr_details.pull_number,
            )
        return DiffTarget(diff=diff, commit_id=pr_details.head_sha)

    if event.action == "synchronize":
        if not event.before or not event.after:
            raise EventPayloadError("Synchronize event missing 'before' or 'after' commit sha")
        ctx_logger.info(f"Fetching incremental diff: base={event.before[:8]}, head={event.after[:8]}")
        with log_timing(ctx_logger, "compare_commits"):
            diff = await client.compare_commits_diff(
                owner=pr_details.owner,
                repo=pr_details.repo,
                base=event.before,
                head=event.after,
            )
        return DiffTarget(diff=diff, commit_id=event.after)

    raise ValueError(f"Unsupported event action: {event.action!r}")
