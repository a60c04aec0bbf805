"""Shared data structures for review processing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True, slots=True)
class PRDetails:
    owner: str
    repo: str
    pull_number: int
    title: str
    description: str
    head_sha: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class Added:
    new_line: int
    content: str


@dataclass(frozen=True, slots=True)
class Removed:
    old_line: int
    content: str


@dataclass(frozen=True, slots=True)
class Context:
    old_line: int
    new_line: int
    content: str


Change = Union[Added, Removed, Context]


def display_line(change: Change) -> int:
    """Line number shown to the model: old side for removals, new side otherwise."""

    if isinstance(change, Removed):
        return change.old_line
    return change.new_line


@dataclass(slots=True)
class Chunk:
    header: str
    changes: List[Change] = field(default_factory=list)


@dataclass(slots=True)
class ParsedFile:
    path: str
    chunks: List[Chunk] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DiffTarget:
    """A retrieved diff and the commit its review comments attach to."""

    diff: str
    commit_id: str | None


@dataclass(frozen=True, slots=True)
class Comment:
    path: str
    line: int
    body: str

    @property
    def dedup_key(self) -> tuple[str, int, str]:
        return (self.path, self.line, self.body.strip())


@dataclass(slots=True)
class ReviewStats:
    files: int = 0
    chunks: int = 0
    generated: int = 0
    duplicates: int = 0
    posted: int = 0


class ReviewItem(BaseModel):
    """One line-anchored finding returned by the model."""

    model_config = ConfigDict(populate_by_name=True)

    line_number: str = Field(alias="lineNumber")
    review_comment: str = Field(alias="reviewComment")
    optimized_code: str | None = Field(default=None, alias="optimizedCode")

    @field_validator("line_number", mode="before")
    @classmethod
    def _coerce_line_number(cls, value):
        if isinstance(value, bool):
            raise ValueError("lineNumber must be a number or numeric string")
        if isinstance(value, int):
            return str(value)
        return value


class ReviewPayload(BaseModel):
    reviews: List[ReviewItem]
