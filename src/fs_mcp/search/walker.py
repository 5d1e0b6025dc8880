"""Depth-first name search that re-validates every visited entry."""

from __future__ import annotations

import functools
import os
import re
from collections.abc import Sequence
from pathlib import Path

from fs_mcp.security import AllowList, SandboxError, resolve_path

_WILDCARD_CHARS = "*?["


def exclude_glob(pattern: str) -> str:
    """Bare names exclude a path segment anywhere below the root."""
    if any(char in pattern for char in _WILDCARD_CHARS):
        return pattern
    return f"**/{pattern.strip('/')}/**"


def _translate_segment(segment: str) -> str:
    """Translate one path segment; no wildcard here crosses a ``/``."""
    parts: list[str] = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            end = index + 1
            if end < len(segment) and segment[end] in "!^":
                end += 1
            if end < len(segment) and segment[end] == "]":
                end += 1
            while end < len(segment) and segment[end] != "]":
                end += 1
            if end >= len(segment):
                parts.append(re.escape(char))
            else:
                body = segment[index + 1 : end].replace("\\", "\\\\")
                if body[:1] in {"!", "^"}:
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
                index = end
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


@functools.lru_cache(maxsize=256)
def compile_glob(glob: str) -> re.Pattern[str]:
    """Compile a glob where ``**`` spans zero or more whole segments.

    Leading dots are matched like any other character.
    """
    segments = glob.split("/")
    last = len(segments) - 1
    parts: list[str] = []
    for index, segment in enumerate(segments):
        if segment == "**":
            if index == 0 and index == last:
                parts.append(".*")
            elif index == last:
                parts.append("(?:/.*)?")
            elif index == 0:
                parts.append("(?:.*/)?")
            else:
                parts.append("/(?:.*/)?")
            continue
        if index > 0 and segments[index - 1] != "**":
            parts.append("/")
        parts.append(_translate_segment(segment))
    return re.compile("".join(parts), re.DOTALL)


def is_excluded(relative_path: str, exclude_patterns: Sequence[str]) -> bool:
    """Return True when a root-relative POSIX path matches any exclude pattern."""
    return any(
        compile_glob(exclude_glob(pattern)).fullmatch(relative_path) is not None
        for pattern in exclude_patterns
    )


def search_files(
    root: Path,
    pattern: str,
    exclude_patterns: Sequence[str],
    allow_list: AllowList,
    max_results: int | None = None,
) -> list[str]:
    """Return absolute paths under root whose names contain pattern, case-insensitively.

    Entries are visited depth-first in name order. An entry that fails
    sandbox resolution or matches an exclude pattern is skipped along with
    everything below it; the search as a whole never fails.
    """
    needle = pattern.lower()
    results: list[str] = []
    visited: set[Path] = set()

    def walk(current: Path) -> None:
        try:
            canonical = resolve_path(str(current), allow_list)
        except (SandboxError, OSError):
            return
        if canonical in visited:
            return
        visited.add(canonical)
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            return
        for entry in ordered_entries:
            if max_results is not None and len(results) >= max_results:
                return
            full_path = current / entry.name
            try:
                resolve_path(str(full_path), allow_list)
            except (SandboxError, OSError):
                continue
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue
            relative = full_path.relative_to(root).as_posix()
            if is_excluded(relative, exclude_patterns):
                continue
            if needle in entry.name.lower():
                results.append(str(full_path))
            if is_dir:
                walk(full_path)

    walk(root)
    return results
