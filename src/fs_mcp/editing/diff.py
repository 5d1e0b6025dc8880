"""Unified diff rendering and fenced formatting."""

from __future__ import annotations

import difflib
import re

DIFF_CONTEXT_LINES = 3
INDEX_SEPARATOR = "=" * 67
NO_NEWLINE_MARKER = "\\ No newline at end of file"
_BACKTICK_RUN = re.compile(r"`+")


def normalize_line_endings(text: str) -> str:
    """Convert CRLF line endings to LF."""
    return text.replace("\r\n", "\n")


def create_unified_diff(original: str, modified: str, file_label: str = "file") -> str:
    """Render a unified diff with ``original``/``modified`` file markers.

    The header is always present; identical inputs produce no hunks.
    """
    lines = [
        f"Index: {file_label}",
        INDEX_SEPARATOR,
        f"--- {file_label}\toriginal",
        f"+++ {file_label}\tmodified",
    ]
    hunks = difflib.unified_diff(
        normalize_line_endings(original).splitlines(keepends=True),
        normalize_line_endings(modified).splitlines(keepends=True),
        n=DIFF_CONTEXT_LINES,
        lineterm="\n",
    )
    output = "\n".join(lines) + "\n"
    for index, line in enumerate(hunks):
        if index < 2:
            # difflib's own ---/+++ header
            continue
        if line.endswith("\n"):
            output += line
        else:
            output += f"{line}\n{NO_NEWLINE_MARKER}\n"
    return output


def longest_backtick_run(text: str) -> int:
    return max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)


def fence_diff(diff: str) -> str:
    """Wrap a diff in a backtick fence longer than any run inside it."""
    fence = "`" * max(3, longest_backtick_run(diff) + 1)
    body = diff if diff.endswith("\n") else f"{diff}\n"
    return f"{fence}diff\n{body}{fence}\n\n"
