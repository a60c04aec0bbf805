"""Models for the GitHub Actions event payload."""

from __future__ import annotations

from pydantic import BaseModel


class OwnerInfo(BaseModel):
    login: str


class RepositoryInfo(BaseModel):
    name: str
    owner: OwnerInfo
    full_name: str | None = None


class PullRequestEvent(BaseModel):
    action: str | None = None
    number: int
    repository: RepositoryInfo
    before: str | None = None
    after: str | None = None

    @property
    def owner(self) -> str:
        return self.repository.owner.login

    @property
    def repo(self) -> str:
        return self.repository.name
