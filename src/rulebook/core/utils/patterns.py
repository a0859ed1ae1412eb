"""Glob pattern matching for rule source discovery.

Ignore lists are matched against root-relative POSIX paths with these
semantics:

- ``**`` matches any number of directories, including none
- a bare filename glob (``*.test.publicodes``) matches anywhere in the tree
- any other glob is anchored at the root and ``*`` never crosses ``/``
- a directory glob (``drafts/**``) matches everything below that directory
- brace groups (``*.{yaml,yml}``) are expanded before matching
"""
from __future__ import annotations

import fnmatch
from pathlib import PurePosixPath
from typing import Iterable, Sequence


def matches_any_pattern(file_path: str, patterns: Iterable[str]) -> bool:
    """Return True when ``file_path`` matches at least one pattern."""
    for pattern in patterns:
        if _matches_pattern(file_path, pattern):
            return True
    return False


def _matches_pattern(file_path: str, pattern: str) -> bool:
    file_parts = PurePosixPath(file_path).parts

    for pat in expand_braces(str(PurePosixPath(pattern))):
        if pat.startswith("./"):
            pat = pat[2:]

        if "/" not in pat:
            if file_parts and fnmatch.fnmatch(file_parts[-1], pat):
                return True
            continue

        if _match_segments(file_parts, PurePosixPath(pat).parts):
            return True

    return False


def _match_segments(parts: Sequence[str], pattern_parts: Sequence[str]) -> bool:
    """Anchored match: ``*`` stays within one segment, ``**`` spans any number."""
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    if not parts or not fnmatch.fnmatch(parts[0], head):
        return False
    return _match_segments(parts[1:], rest)


def expand_braces(pattern: str) -> list[str]:
    """Expand brace groups like ``rules/*.{yaml,yml}`` into separate patterns.

    Several groups are expanded recursively. A pattern without a
    comma-separated group is returned unchanged.
    """
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    end = pattern.find("}", start + 1)
    if end == -1:
        return [pattern]

    before = pattern[:start]
    inside = pattern[start + 1 : end]
    after = pattern[end + 1 :]

    parts = [p.strip() for p in inside.split(",") if p.strip()]
    if len(parts) <= 1:
        return [pattern]

    out: list[str] = []
    for part in parts:
        out.extend(expand_braces(f"{before}{part}{after}"))
    return out


__all__ = ["matches_any_pattern", "expand_braces"]
