"""Pull request review pipeline."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pr_reviewer.config import Settings
from pr_reviewer.github_client import GitHubAPIError, GitHubClient
from pr_reviewer.logger import get_logger, log_run_summary, log_timing, log_with_context
from pr_reviewer.models.event import PullRequestEvent
from pr_reviewer.models.review import Comment, PRDetails, ParsedFile, ReviewStats
from pr_reviewer.openai_client import ReviewClient
from pr_reviewer.prompts import build_prompt
from pr_reviewer.services.comment_mapper import map_review_items
from pr_reviewer.services.diff_parser import parse_diff
from pr_reviewer.services.pull_request import SUPPORTED_ACTIONS, fetch_diff, fetch_pr_details
from pr_reviewer.utils.globs import filter_excluded

logger = get_logger()


class ReviewProcessor:
    def __init__(self, settings: Settings, github_client: GitHubClient, review_client: ReviewClient) -> None:
        self._settings = settings
        self._github = github_client
        self._reviewer = review_client

    async def process(self, event: PullRequestEvent) -> ReviewStats | None:
        """Review the pull request named by ``event``.

        Returns ``None`` when the event is not one the reviewer handles.
        """

        if event.action not in SUPPORTED_ACTIONS:
            logger.info(f"Unsupported event: {self._settings.event_name} (action={event.action})")
            return None

        pr_details = await fetch_pr_details(self._github, event)
        ctx_logger = log_with_context(logger, repository=pr_details.full_name, pull_number=pr_details.pull_number)
        ctx_logger.info(f"Reviewing PR #{pr_details.pull_number}: {pr_details.title}")

        target = await fetch_diff(self._github, event, pr_details)
        stats = ReviewStats()
        if not target.diff.strip():
            ctx_logger.info("No diff found")
            return stats

        files = filter_excluded(parse_diff(target.diff), self._settings.exclude_patterns)
        stats.files = len(files)
        ctx_logger.info(f"Analyzing {len(files)} file(s)")

        comments = await self.analyze(files, pr_details, stats)
        stats.generated = len(comments)

        if comments:
            comments = await self.deduplicate(pr_details, comments)
            stats.duplicates = stats.generated - len(comments)

        if comments:
            stats.posted = await self.publish(pr_details, comments, commit_id=target.commit_id)
        else:
            ctx_logger.info("No new review comments to publish")

        log_run_summary(logger, stats, repository=pr_details.full_name, pull_number=pr_details.pull_number)
        return stats

    async def analyze(self, files: Iterable[ParsedFile], pr_details: PRDetails, stats: ReviewStats | None = None) -> List[Comment]:
        comments: List[Comment] = []
        for file in files:
            for chunk in file.chunks:
                if stats is not None:
                    stats.chunks += 1
                prompt = build_prompt(file, chunk, pr_details, self._settings.framework)
                items = await self._reviewer.review(prompt)
                if not items:
                    continue
                comments.extend(map_review_items(file, chunk, items))
        return comments

    async def deduplicate(self, pr_details: PRDetails, comments: List[Comment]) -> List[Comment]:
        """Drop comments already present on the pull request."""

        with log_timing(logger, "list_review_comments", repository=pr_details.full_name):
            existing = await self._github.list_review_comments(
                owner=pr_details.owner,
                repo=pr_details.repo,
                pull_number=pr_details.pull_number,
            )
        return filter_duplicates(comments, existing)

    async def publish(self, pr_details: PRDetails, comments: List[Comment], *, commit_id: str | None) -> int:
        publishable = []
        for comment in comments:
            if comment.body.strip() and comment.line > 0 and comment.path:
                publishable.append(comment)
            else:
                logger.info(f"Skipping comment without path/line/body: {comment.path}:{comment.line}")
        if not publishable:
            return 0

        if self._settings.review_mode == "review":
            return await self._publish_review(pr_details, publishable, commit_id=commit_id)
        return await self._publish_comments(pr_details, publishable, commit_id=commit_id)

    async def _publish_review(self, pr_details: PRDetails, comments: List[Comment], *, commit_id: str | None) -> int:
        payload = [_build_comment_payload(comment) for comment in comments]
        logger.info(f"Submitting review for PR #{pr_details.pull_number} with {len(payload)} inline comments")
        await self._github.create_pull_request_review(
            owner=pr_details.owner,
            repo=pr_details.repo,
            pull_number=pr_details.pull_number,
            comments=payload,
            commit_id=commit_id,
        )
        return len(payload)

    async def _publish_comments(self, pr_details: PRDetails, comments: List[Comment], *, commit_id: str | None) -> int:
        ctx_logger = log_with_context(logger, repository=pr_details.full_name, pull_number=pr_details.pull_number)
        if not commit_id:
            ctx_logger.warning("Missing head commit SHA; skipping comment publish")
            return 0

        posted = 0
        for comment in comments:
            try:
                await self._github.create_review_comment(
                    owner=pr_details.owner,
                    repo=pr_details.repo,
                    pull_number=pr_details.pull_number,
                    body=comment.body,
                    path=comment.path,
                    line=comment.line,
                    commit_id=commit_id,
                )
            except GitHubAPIError as exc:
                ctx_logger.error(
                    f"Failed to post comment on {comment.path}:{comment.line} "
                    f"(status={exc.status_code}): {exc.response_body}"
                )
                ctx_logger.error(f"Comment payload: {_build_comment_payload(comment)}")
                continue
            ctx_logger.info(f"Posted comment on {comment.path}:{comment.line}")
            posted += 1

        ctx_logger.info(f"Posted {posted}/{len(comments)} comments")
        return posted


def filter_duplicates(comments: Iterable[Comment], existing: Iterable[Dict[str, Any]]) -> List[Comment]:
    seen = {
        (item.get("path"), item.get("line"), (item.get("body") or "").strip())
        for item in existing
    }
    fresh: List[Comment] = []
    for comment in comments:
        if comment.dedup_key in seen:
            logger.info(f"Skipping duplicate comment on {comment.path}:{comment.line}")
            continue
        fresh.append(comment)
    return fresh


def _build_comment_payload(comment: Comment) -> Dict[str, Any]:
    return {
        "path": comment.path,
        "line": comment.line,
        "body": comment.body,
        "side": "RIGHT",
    }
