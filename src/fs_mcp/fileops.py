"""Direct filesystem operations on sandbox-resolved paths."""

from __future__ import annotations

import os
import stat
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from fs_mcp.security import (
    PathSandbox,
    PolicyBlockedError,
    SandboxError,
    SecurityLimits,
    enforce_file_size_limit,
)

_READ_WORKERS = 8


@dataclass(slots=True, frozen=True)
class FileReadResult:
    """Outcome of one read in a multi-file request."""

    path: str
    ok: bool
    content: str | None = None
    error: str | None = None

    def to_text(self) -> str:
        if self.ok:
            return f"{self.path}:\n{self.content}\n"
        return f"{self.path}: Error - {self.error}"


def read_text_file(resolved_path: Path, limits: SecurityLimits) -> str:
    """Read a UTF-8 file after enforcing the size limit."""
    enforce_file_size_limit(resolved_path, limits)
    return resolved_path.read_text(encoding="utf-8")


def read_multiple_files(
    sandbox: PathSandbox,
    requested_paths: Sequence[str],
    limits: SecurityLimits,
) -> list[FileReadResult]:
    """Read several files independently; results keep request order."""

    def read_one(requested: str) -> FileReadResult:
        try:
            resolved = sandbox.resolve(requested)
            content = read_text_file(resolved, limits)
        except (SandboxError, PolicyBlockedError) as error:
            return FileReadResult(path=requested, ok=False, error=error.reason)
        except (OSError, UnicodeDecodeError) as error:
            return FileReadResult(path=requested, ok=False, error=str(error))
        return FileReadResult(path=requested, ok=True, content=content)

    if not requested_paths:
        return []
    workers = min(_READ_WORKERS, len(requested_paths))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(read_one, requested_paths))


def write_text_file(resolved_path: Path, content: str) -> None:
    """Create or overwrite a UTF-8 text file."""
    resolved_path.write_text(content, encoding="utf-8")


def create_directory(resolved_path: Path) -> None:
    resolved_path.mkdir(parents=True, exist_ok=True)


def move_path(resolved_source: Path, resolved_destination: Path) -> None:
    """Rename source to destination, refusing to replace an existing entry."""
    if os.path.lexists(resolved_destination):
        raise FileExistsError(f"Destination already exists: {resolved_destination}")
    os.rename(resolved_source, resolved_destination)


def list_directory(resolved_path: Path) -> list[dict[str, str]]:
    """Return name-ordered entries tagged as file or directory."""
    with os.scandir(resolved_path) as entries:
        ordered_entries = sorted(entries, key=lambda item: item.name)
    return [
        {"name": entry.name, "type": "directory" if entry.is_dir() else "file"}
        for entry in ordered_entries
    ]


def format_listing(entries: list[dict[str, str]]) -> str:
    return "\n".join(
        f"{'[DIR]' if entry['type'] == 'directory' else '[FILE]'} {entry['name']}"
        for entry in entries
    )


def directory_tree(sandbox: PathSandbox, requested_path: str) -> list[dict[str, object]]:
    """Build a nested tree, re-validating every directory before listing it.

    Symlinked directories are reported as files and not followed.
    """
    resolved = sandbox.resolve(requested_path)
    tree: list[dict[str, object]] = []
    with os.scandir(resolved) as entries:
        ordered_entries = sorted(entries, key=lambda item: item.name)
    for entry in ordered_entries:
        is_dir = entry.is_dir(follow_symlinks=False)
        node: dict[str, object] = {
            "name": entry.name,
            "type": "directory" if is_dir else "file",
        }
        if is_dir:
            node["children"] = directory_tree(sandbox, str(resolved / entry.name))
        tree.append(node)
    return tree


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def file_info(resolved_path: Path) -> dict[str, object]:
    """Return size, timestamps, type flags and permission bits."""
    stats = resolved_path.stat()
    created = getattr(stats, "st_birthtime", stats.st_ctime)
    return {
        "size": stats.st_size,
        "created": _isoformat(created),
        "modified": _isoformat(stats.st_mtime),
        "accessed": _isoformat(stats.st_atime),
        "isDirectory": stat.S_ISDIR(stats.st_mode),
        "isFile": stat.S_ISREG(stats.st_mode),
        "permissions": f"{stat.S_IMODE(stats.st_mode) & 0o777:03o}",
    }


def format_file_info(info: dict[str, object]) -> str:
    return "\n".join(f"{key}: {value}" for key, value in info.items())
