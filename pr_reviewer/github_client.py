"""GitHub API client helpers."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import httpx


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status_code: int, response_body: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


DEFAULT_ACCEPT_HEADER = "application/vnd.github+json"
DIFF_ACCEPT_HEADER = "application/vnd.github.v3.diff"
DEFAULT_API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class GitHubClient:
    """Token-authenticated helper for the pull request endpoints used by the reviewer."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        user_agent: str = "PR-Reviewer/1.0",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={
                "User-Agent": user_agent,
                "Accept": DEFAULT_ACCEPT_HEADER,
                "X-GitHub-Api-Version": DEFAULT_API_VERSION,
            },
        )
        self._owns_client = client is None
        self._auth_headers = {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        url: str,
        *,
        accept: str = DEFAULT_ACCEPT_HEADER,
        params: Dict[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        headers = {**self._auth_headers, "Accept": accept}
        response = await self._client.request(method, url, headers=headers, params=params, json=json)
        if response.status_code >= 400:
            detail: Any | None
            if response.content:
                try:
                    detail = response.json()
                except ValueError:
                    detail = response.text
            else:
                detail = None
            raise GitHubAPIError(
                f"GitHub API request to {url} failed with status {response.status_code}.",
                response.status_code,
                detail,
            )
        return response

    async def get_pull_request(self, *, owner: str, repo: str, pull_number: int) -> Dict[str, Any]:
        response = await self._request("GET", f"/repos/{owner}/{repo}/pulls/{pull_number}")
        return response.json()

    async def get_pull_request_diff(self, *, owner: str, repo: str, pull_number: int) -> str:
        """Return the full base-to-head unified diff of a pull request."""

        response = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls/{pull_number}",
            accept=DIFF_ACCEPT_HEADER,
        )
        return response.text

    async def compare_commits_diff(self, *, owner: str, repo: str, base: str, head: str) -> str:
        """Return the unified diff between two commits."""

        response = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/compare/{base}...{head}",
            accept=DIFF_ACCEPT_HEADER,
        )
        return response.text

    async def list_review_comments(self, *, owner: str, repo: str, pull_number: int) -> List[Dict[str, Any]]:
        comments: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = await self._request(
                "GET",
                f"/repos/{owner}/{repo}/pulls/{pull_number}/comments",
                params={"per_page": PAGE_SIZE, "page": page},
            )
            batch = response.json()
            if not isinstance(batch, list):
                raise GitHubAPIError(
                    "Unexpected response while listing review comments.",
                    response.status_code,
                    batch,
                )
            comments.extend(batch)
            if len(batch) < PAGE_SIZE:
                break
            page += 1
        return comments

    async def create_pull_request_review(
        self,
        *,
        owner: str,
        repo: str,
        pull_number: int,
        comments: Iterable[Dict[str, Any]],
        body: str | None = None,
        commit_id: str | None = None,
        event: str = "COMMENT",
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"event": event, "comments": list(comments)}
        if body:
            payload["body"] = body
        if commit_id:
            payload["commit_id"] = commit_id
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pull_number}/reviews",
            json=payload,
        )
        return response.json()

    async def create_review_comment(
        self,
        *,
        owner: str,
        repo: str,
        pull_number: int,
        body: str,
        path: str,
        line: int,
        commit_id: str,
        side: str = "RIGHT",
    ) -> Dict[str, Any]:
        payload = {
            "body": body,
            "path": path,
            "line": line,
            "commit_id": commit_id,
            "side": side,
        }
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pull_number}/comments",
            json=payload,
        )
        return response.json()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
