"""GitHub Actions entry point for the pull request reviewer."""

from __future__ import annotations

import asyncio
import sys

from pr_reviewer.config import Settings, load_settings
from pr_reviewer.github_client import GitHubClient
from pr_reviewer.logger import get_logger, log_failure
from pr_reviewer.models.review import ReviewStats
from pr_reviewer.openai_client import ReviewClient
from pr_reviewer.services.pull_request import load_event
from pr_reviewer.services.review_processor import ReviewProcessor

logger = get_logger()


async def run(settings: Settings) -> ReviewStats | None:
    event = load_event(settings.event_path)

    github_client = GitHubClient(
        token=settings.github_token,
        base_url=settings.normalized_github_api_base_url,
    )
    review_client = ReviewClient(settings.openai_api_key, model=settings.openai_api_model)
    try:
        processor = ReviewProcessor(settings, github_client, review_client)
        return await processor.process(event)
    finally:
        await review_client.aclose()
        await github_client.aclose()


def main() -> None:
    try:
        settings = load_settings()
        asyncio.run(run(settings))
    except Exception as exc:
        log_failure(logger, "Pull request review failed", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
