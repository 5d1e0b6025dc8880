"""Allow-list path resolution for every filesystem-touching operation.

A requested path passes through a fixed sequence of stages before any tool
may use it:

    expand_home -> to_absolute -> normalize -> containment check
        -> canonicalize -> containment recheck

Paths that do not exist yet (creation targets) are checked through their
parent directory instead. Nothing is cached: the filesystem is consulted on
every call.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

HOME_MARKER = "~"


class SandboxError(Exception):
    """Base class for sandbox resolution failures."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


class AccessDeniedError(SandboxError):
    """Raised when a path, its parent, or its symlink target leaves the allow-list."""


class ParentMissingError(SandboxError):
    """Raised when a nonexistent path has no existing parent directory."""


def expand_home(candidate: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the invoking user's home directory."""
    if candidate == HOME_MARKER:
        return str(Path.home())
    if candidate.startswith(HOME_MARKER + "/") or candidate.startswith(HOME_MARKER + os.sep):
        return str(Path.home() / candidate[2:])
    return candidate


def to_absolute(candidate: str, cwd: Path | None = None) -> str:
    """Anchor relative paths at the process working directory."""
    if os.path.isabs(candidate):
        return candidate
    base = cwd if cwd is not None else Path.cwd()
    return os.path.join(str(base), candidate)


def normalize(candidate: str) -> Path:
    """Collapse ``.``, ``..`` and redundant separators without touching the filesystem."""
    return Path(os.path.normpath(candidate))


def is_within(candidate: Path, root: Path) -> bool:
    """Component-wise containment: ``/allowed2`` is not inside ``/allowed``."""
    root_parts = root.parts
    candidate_parts = candidate.parts
    if len(candidate_parts) < len(root_parts):
        return False
    return all(
        os.path.normcase(left) == os.path.normcase(right)
        for left, right in zip(candidate_parts, root_parts)
    )


@dataclass(slots=True, frozen=True)
class AllowList:
    """Ordered, immutable set of allowed root directories."""

    roots: tuple[Path, ...]
    canonical_roots: tuple[Path, ...]

    @classmethod
    def from_directories(cls, directories: Iterable[str | Path]) -> AllowList:
        """Normalize roots once; canonical forms are kept for symlinked roots."""
        roots: list[Path] = []
        for directory in directories:
            root = normalize(to_absolute(expand_home(str(directory))))
            if root not in roots:
                roots.append(root)
        canonical: list[Path] = []
        for root in roots:
            real = Path(os.path.realpath(root))
            if real not in roots and real not in canonical:
                canonical.append(real)
        return cls(roots=tuple(roots), canonical_roots=tuple(canonical))

    def contains(self, candidate: Path) -> bool:
        """Return True when candidate lies under any allowed root."""
        return any(is_within(candidate, root) for root in self.roots) or any(
            is_within(candidate, root) for root in self.canonical_roots
        )

    def as_strings(self) -> list[str]:
        return [str(root) for root in self.roots]


def check_containment(candidate: Path, allow_list: AllowList, reason: str) -> Path:
    """Raise AccessDeniedError with the given reason when candidate is outside."""
    if not allow_list.contains(candidate):
        raise AccessDeniedError(
            reason=reason,
            hint="Use a path under one of: " + ", ".join(allow_list.as_strings()),
        )
    return candidate


def canonicalize(candidate: Path) -> Path | None:
    """Return the symlink-free real path, or None when nothing exists there."""
    try:
        return Path(os.path.realpath(candidate, strict=True))
    except (FileNotFoundError, NotADirectoryError):
        return None


def resolve_path(requested_path: str, allow_list: AllowList) -> Path:
    """Resolve a user-supplied path to one guaranteed inside the allow-list.

    Existing paths are returned in canonical form. Nonexistent paths are
    returned as the normalized absolute path once their parent has been
    canonicalized and checked.
    """
    if not requested_path:
        raise AccessDeniedError(
            reason="Access denied - path is empty.",
            hint="Provide an absolute path or a path relative to the working directory.",
        )
    absolute = normalize(to_absolute(expand_home(requested_path)))
    check_containment(
        absolute,
        allow_list,
        reason=f"Access denied - path outside allowed directories: {absolute}",
    )

    real = canonicalize(absolute)
    if real is not None:
        return check_containment(
            real,
            allow_list,
            reason="Access denied - symlink target outside allowed directories",
        )

    if os.path.islink(absolute):
        # Dangling link: writing through it would create the target.
        check_containment(
            Path(os.path.realpath(absolute)),
            allow_list,
            reason="Access denied - symlink target outside allowed directories",
        )

    parent = absolute.parent
    real_parent = canonicalize(parent)
    if real_parent is None:
        raise ParentMissingError(
            reason=f"Parent directory does not exist: {parent}",
            hint="Create the parent directory first with create_directory.",
        )
    check_containment(
        real_parent,
        allow_list,
        reason="Access denied - parent directory outside allowed directories",
    )
    return absolute


class PathSandbox:
    """Allow-list bound resolver shared by all tools."""

    def __init__(self, allow_list: AllowList) -> None:
        self._allow_list = allow_list

    @property
    def allow_list(self) -> AllowList:
        return self._allow_list

    def resolve(self, requested_path: str) -> Path:
        """Resolve and validate one requested path."""
        return resolve_path(requested_path, self._allow_list)
