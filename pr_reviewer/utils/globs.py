"""Glob based path exclusion."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from wcmatch import glob

from pr_reviewer.models.review import ParsedFile

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE


def is_excluded(path: str, patterns: Sequence[str]) -> bool:
    return any(glob.globmatch(path, pattern, flags=GLOB_FLAGS) for pattern in patterns)


def filter_excluded(files: Iterable[ParsedFile], patterns: Sequence[str]) -> List[ParsedFile]:
    """Drop every file whose path matches one of the exclusion globs."""

    if not patterns:
        return list(files)
    return [file for file in files if not is_excluded(file.path, patterns)]
