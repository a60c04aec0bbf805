"""Adapter from ``unidiff`` patch sets to review chunks."""

from __future__ import annotations

from typing import List

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from pr_reviewer.models.review import Added, Change, Chunk, Context, ParsedFile, Removed

DEV_NULL = "/dev/null"
CRLF = "\r\n"


class DiffParseError(RuntimeError):
    """Raised when the diff text cannot be parsed."""


def _chunk_header(hunk) -> str:
    section = f" {hunk.section_header}" if hunk.section_header else ""
    return (
        f"@@ -{hunk.source_start},{hunk.source_length} "
        f"+{hunk.target_start},{hunk.target_length} @@{section}"
    )


def _to_change(line) -> Change | None:
    content = f"{line.line_type}{line.value.rstrip(CRLF)}"
    if line.is_added:
        return Added(new_line=line.target_line_no, content=content)
    if line.is_removed:
        return Removed(old_line=line.source_line_no, content=content)
    if line.is_context:
        return Context(old_line=line.source_line_no, new_line=line.target_line_no, content=content)
    # "\ No newline at end of file" markers
    return None


def parse_diff(diff_text: str) -> List[ParsedFile]:
    """Parse a unified diff, skipping files deleted by the change."""

    try:
        patch = PatchSet.from_string(diff_text)
    except UnidiffParseError as exc:
        raise DiffParseError(f"Unable to parse diff: {exc}") from exc

    files: List[ParsedFile] = []
    for patched_file in patch:
        if patched_file.is_removed_file or patched_file.target_file == DEV_NULL:
            continue
        chunks = []
        for hunk in patched_file:
            changes = [change for change in map(_to_change, hunk) if change is not None]
            chunks.append(Chunk(header=_chunk_header(hunk), changes=changes))
        files.append(ParsedFile(path=patched_file.path, chunks=chunks))
    return files
