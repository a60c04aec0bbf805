"""Map model review items back onto diff lines."""

from __future__ import annotations

from typing import Iterable, List

from pr_reviewer.logger import get_logger
from pr_reviewer.models.review import (
    Added,
    Change,
    Chunk,
    Comment,
    Context,
    ParsedFile,
    Removed,
    ReviewItem,
)

logger = get_logger()


def _new_line(change: Change) -> int | None:
    if isinstance(change, (Added, Context)):
        return change.new_line
    return None


def _old_line(change: Change) -> int | None:
    if isinstance(change, (Removed, Context)):
        return change.old_line
    return None


def find_change(chunk: Chunk, line_number: int) -> Change | None:
    """Return the change a claimed line refers to, preferring new-side matches."""

    for change in chunk.changes:
        if _new_line(change) == line_number:
            return change
    for change in chunk.changes:
        if _old_line(change) == line_number:
            return change
    return None


def _parse_line_number(raw: str) -> int | None:
    try:
        return int(raw.strip())
    except ValueError:
        return None


def map_review_items(file: ParsedFile, chunk: Chunk, items: Iterable[ReviewItem]) -> List[Comment]:
    comments: List[Comment] = []
    for item in items:
        line_number = _parse_line_number(item.line_number)
        change = find_change(chunk, line_number) if line_number is not None else None
        if change is None:
            logger.warning(f"Line number {item.line_number} not found in the diff for file {file.path}")
            continue

        comments.append(
            Comment(
                path=file.path,
                line=_new_line(change) or 0,
                body=item.review_comment,
            )
        )
    return comments
