"""
Tests for the review pipeline: analysis, deduplication and publishing.
"""

import pytest

from pr_reviewer.models.event import PullRequestEvent
from pr_reviewer.models.review import Comment
from pr_reviewer.services.pull_request import load_event
from pr_reviewer.services.review_processor import ReviewProcessor, filter_duplicates
from tests.review_fixtures import (
    AFTER_SHA,
    BEFORE_SHA,
    DELETED_FILE_DIFF,
    HEAD_SHA,
    MULTI_FILE_DIFF,
    FakeGitHub,
)

MAGIC_NUMBER_REVIEW = '{"reviews":[{"lineNumber":"42","reviewComment":"avoid magic number"}]}'


@pytest.fixture
def make_processor(make_settings, make_github_client, review_client):
    def _make(fake: FakeGitHub, event_path: str = "/tmp/event.json", **settings_overrides) -> ReviewProcessor:
        settings = make_settings(event_path, **settings_overrides)
        return ReviewProcessor(settings, make_github_client(fake), review_client)

    return _make


def _paths(fake: FakeGitHub):
    return [(r.method, r.url.path) for r in fake.requests]


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_opened_event_posts_single_review_comment(
        self, write_event, make_processor, fake_github, openai_mock, make_completion
    ):
        openai_mock.chat.completions.create.return_value = make_completion(MAGIC_NUMBER_REVIEW)
        event = load_event(write_event("opened"))

        stats = await make_processor(fake_github).process(event)

        assert fake_github.posted_comments() == [
            {
                "body": "avoid magic number",
                "path": "src/app.ts",
                "line": 42,
                "commit_id": HEAD_SHA,
                "side": "RIGHT",
            }
        ]
        assert stats.generated == 1
        assert stats.posted == 1
        diff_request = fake_github.requests[1]
        assert diff_request.headers["Accept"] == "application/vnd.github.v3.diff"
        assert diff_request.url.path == "/repos/acme/web/pulls/7"

    @pytest.mark.asyncio
    async def test_synchronize_event_reviews_incremental_diff(
        self, write_event, make_processor, fake_github, openai_mock, make_completion
    ):
        openai_mock.chat.completions.create.return_value = make_completion(MAGIC_NUMBER_REVIEW)
        event = load_event(write_event("synchronize", before=BEFORE_SHA, after=AFTER_SHA))

        await make_processor(fake_github).process(event)

        assert ("GET", f"/repos/acme/web/compare/{BEFORE_SHA}...{AFTER_SHA}") in _paths(fake_github)
        assert [c["commit_id"] for c in fake_github.posted_comments()] == [AFTER_SHA]

    @pytest.mark.asyncio
    async def test_unsupported_action_is_ignored_without_requests(
        self, write_event, make_processor, fake_github, openai_mock, log_messages
    ):
        event = load_event(write_event("closed"))

        assert await make_processor(fake_github).process(event) is None
        assert fake_github.requests == []
        openai_mock.chat.completions.create.assert_not_awaited()
        assert any("Unsupported event" in message for message in log_messages)

    @pytest.mark.asyncio
    async def test_review_mode_submits_one_review(
        self, write_event, make_processor, fake_github, openai_mock, make_completion
    ):
        openai_mock.chat.completions.create.return_value = make_completion(MAGIC_NUMBER_REVIEW)
        event = load_event(write_event("opened"))

        await make_processor(fake_github, review_mode="review").process(event)

        assert fake_github.posted_reviews() == [
            {
                "event": "COMMENT",
                "comments": [{"path": "src/app.ts", "line": 42, "body": "avoid magic number", "side": "RIGHT"}],
                "commit_id": HEAD_SHA,
            }
        ]


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_only_deleted_files_produce_no_comments_and_no_publish(
        self, write_event, make_processor, openai_mock
    ):
        fake = FakeGitHub(diff=DELETED_FILE_DIFF)

        stats = await make_processor(fake).process(load_event(write_event("opened")))

        assert stats.generated == 0
        openai_mock.chat.completions.create.assert_not_awaited()
        assert [method for method, _ in _paths(fake)] == ["GET", "GET"]

    @pytest.mark.asyncio
    async def test_empty_diff_stops_early(self, write_event, make_processor, openai_mock, log_messages):
        fake = FakeGitHub(diff="")

        stats = await make_processor(fake).process(load_event(write_event("opened")))

        assert stats.files == 0
        assert "No diff found" in log_messages
        openai_mock.chat.completions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_model_output_skips_only_that_chunk(
        self, write_event, make_processor, openai_mock, make_completion
    ):
        fake = FakeGitHub(diff=MULTI_FILE_DIFF)
        openai_mock.chat.completions.create.side_effect = [
            make_completion("I could not find any problems."),
            make_completion('```json\n{"reviews": [{"lineNumber": "31", "reviewComment": "unused b"}]}\n```'),
        ]

        stats = await make_processor(fake, exclude="**/*.lock,**/package-lock.json").process(
            load_event(write_event("opened"))
        )

        assert stats.chunks == 2
        assert [(c["path"], c["line"], c["body"]) for c in fake.posted_comments()] == [
            ("src/util.py", 31, "unused b")
        ]

    @pytest.mark.asyncio
    async def test_excluded_files_are_never_prompted(
        self, write_event, make_processor, openai_mock
    ):
        fake = FakeGitHub(diff=MULTI_FILE_DIFF)

        await make_processor(fake, exclude="**/*.lock, **/package-lock.json").process(
            load_event(write_event("opened"))
        )

        prompts = [call.kwargs["messages"][0]["content"] for call in openai_mock.chat.completions.create.await_args_list]
        assert len(prompts) == 2
        assert all('"src/util.py"' in prompt for prompt in prompts)

    @pytest.mark.asyncio
    async def test_unresolvable_line_is_dropped_with_diagnostic(
        self, write_event, make_processor, fake_github, openai_mock, make_completion, log_messages
    ):
        openai_mock.chat.completions.create.return_value = make_completion(
            '{"reviews":[{"lineNumber":"7","reviewComment":"hallucinated"}]}'
        )

        stats = await make_processor(fake_github).process(load_event(write_event("opened")))

        assert stats.generated == 0
        assert fake_github.posted_comments() == []
        assert "Line number 7 not found in the diff for file src/app.ts" in log_messages


class TestDeduplication:
    def test_identical_comment_is_filtered(self):
        existing = [{"path": "a.ts", "line": 10, "body": "X"}]

        fresh = filter_duplicates(
            [Comment(path="a.ts", line=10, body="X\n"), Comment(path="a.ts", line=10, body="Y")],
            existing,
        )

        assert fresh == [Comment(path="a.ts", line=10, body="Y")]

    def test_same_body_on_other_line_is_kept(self):
        existing = [{"path": "a.ts", "line": 10, "body": "X"}]
        assert filter_duplicates([Comment(path="a.ts", line=11, body="X")], existing) == [
            Comment(path="a.ts", line=11, body="X")
        ]

    @pytest.mark.asyncio
    async def test_existing_pr_comments_suppress_reposting(
        self, write_event, make_processor, openai_mock, make_completion
    ):
        fake = FakeGitHub(existing_comments=[{"path": "src/app.ts", "line": 42, "body": " avoid magic number "}])
        openai_mock.chat.completions.create.return_value = make_completion(MAGIC_NUMBER_REVIEW)

        stats = await make_processor(fake).process(load_event(write_event("opened")))

        assert stats.duplicates == 1
        assert fake.posted_comments() == []


class TestPublishing:
    @pytest.mark.asyncio
    async def test_failed_comment_does_not_stop_the_rest(
        self, make_processor, pr_details, log_messages
    ):
        fake = FakeGitHub(failing_paths={"src/stale.ts"})
        processor = make_processor(fake)
        comments = [
            Comment(path="src/stale.ts", line=3, body="moved"),
            Comment(path="src/app.ts", line=42, body="ok"),
        ]

        posted = await processor.publish(pr_details, comments, commit_id=HEAD_SHA)

        assert posted == 1
        assert [c["path"] for c in fake.posted_comments()] == ["src/stale.ts", "src/app.ts"]
        assert any("Failed to post comment on src/stale.ts:3" in message for message in log_messages)

    @pytest.mark.asyncio
    async def test_unusable_comments_are_not_sent(self, make_processor, pr_details):
        fake = FakeGitHub()
        comments = [
            Comment(path="a.py", line=0, body="removed line"),
            Comment(path="", line=3, body="no path"),
            Comment(path="a.py", line=3, body="   "),
        ]

        assert await make_processor(fake).publish(pr_details, comments, commit_id=HEAD_SHA) == 0
        assert fake.requests == []


class TestLoadEvent:
    def test_valid_event(self, write_event):
        event = load_event(write_event("synchronize", before=BEFORE_SHA, after=AFTER_SHA))

        assert isinstance(event, PullRequestEvent)
        assert (event.owner, event.repo, event.number) == ("acme", "web", 7)
        assert event.after == AFTER_SHA
