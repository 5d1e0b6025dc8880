"""Ordered find/replace edits with exact-then-fuzzy matching."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import reduce
from pathlib import Path

from fs_mcp.editing.diff import create_unified_diff, fence_diff, normalize_line_endings


@dataclass(slots=True, frozen=True)
class Edit:
    """One literal text replacement."""

    old_text: str
    new_text: str

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> Edit:
        old_text = payload.get("oldText")
        new_text = payload.get("newText")
        if not isinstance(old_text, str) or not isinstance(new_text, str):
            raise ValueError("Edit requires string 'oldText' and 'newText' fields.")
        return cls(old_text=old_text, new_text=new_text)


@dataclass(slots=True, frozen=True)
class EditRequest:
    """Edits applied in order, each against the output of the previous one."""

    edits: tuple[Edit, ...]
    dry_run: bool = False


class EditNotFoundError(Exception):
    """Raised when an edit matches neither exactly nor by trimmed line window."""

    def __init__(self, old_text: str) -> None:
        self.old_text = old_text
        self.reason = f"Could not find exact match for edit:\n{old_text}"
        self.hint = "Re-read the file and copy oldText from its current content."
        super().__init__(self.reason)


def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _reindent(new_lines: list[str], old_lines: list[str], window: list[str]) -> list[str]:
    """Carry the matched window's indentation onto replacement lines.

    The first line takes the window's indent. Later lines indented on both
    the old and new side keep their relative offset, clamped at zero. Lines
    flush-left on both sides intentionally take the indent of the file line
    at the same position, so an unindented edit of an indented block stays
    aligned with it. Anything else is inserted as written.
    """
    base_indent = _leading_whitespace(window[0])
    output: list[str] = []
    for index, line in enumerate(new_lines):
        if index == 0:
            output.append(base_indent + line.lstrip())
            continue
        old_indent = _leading_whitespace(old_lines[index]) if index < len(old_lines) else ""
        new_indent = _leading_whitespace(line)
        if old_indent and new_indent:
            relative = len(new_indent) - len(old_indent)
            output.append(base_indent + " " * max(0, relative) + line.lstrip())
        elif not old_indent and not new_indent and index < len(window) and line:
            # Both sides flush-left: reuse the indentation found in the file.
            output.append(_leading_whitespace(window[index]) + line)
        else:
            output.append(line)
    return output


def _fuzzy_replace(content: str, old_text: str, new_text: str) -> str | None:
    old_lines = old_text.split("\n")
    content_lines = content.split("\n")
    span = len(old_lines)
    for start in range(len(content_lines) - span + 1):
        window = content_lines[start : start + span]
        if all(old.strip() == line.strip() for old, line in zip(old_lines, window)):
            content_lines[start : start + span] = _reindent(
                new_text.split("\n"), old_lines, window
            )
            return "\n".join(content_lines)
    return None


def apply_edit(content: str, edit: Edit) -> str:
    """Apply one edit to content, exact match first, then trimmed line window."""
    old_text = normalize_line_endings(edit.old_text)
    new_text = normalize_line_endings(edit.new_text)
    if old_text in content:
        return content.replace(old_text, new_text, 1)
    replaced = _fuzzy_replace(content, old_text, new_text)
    if replaced is None:
        raise EditNotFoundError(edit.old_text)
    return replaced


def apply_edits(content: str, edits: Iterable[Edit]) -> str:
    """Fold edits over content in list order."""
    return reduce(apply_edit, edits, content)


def apply_file_edits(file_path: Path, edits: Iterable[Edit], dry_run: bool = False) -> str:
    """Apply edits to a file and return the fenced unified diff.

    A failing edit raises before anything is written, so the file is left
    untouched. With dry_run the diff is returned and nothing is written.
    """
    with file_path.open("r", encoding="utf-8", newline="") as handle:
        original = normalize_line_endings(handle.read())
    modified = apply_edits(original, edits)
    diff = create_unified_diff(original, modified, str(file_path))
    if not dry_run:
        file_path.write_text(modified, encoding="utf-8", newline="\n")
    return fence_diff(diff)
