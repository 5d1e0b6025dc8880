"""Size limits applied to tool requests and responses."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class SecurityLimits:
    """Runtime security limits for tool requests and responses."""

    max_file_bytes: int = 10 * 1024 * 1024
    max_total_bytes_per_response: int = 16 * 1024 * 1024
    max_search_results: int = 1_000
    max_batch_paths: int = 100


@dataclass(slots=True, frozen=True)
class PolicyBlockedError(Exception):
    """Raised when a limit blocks an operation."""

    reason: str
    hint: str


def enforce_file_size_limit(resolved_path: Path, limits: SecurityLimits) -> None:
    """Raise PolicyBlockedError when a regular file exceeds max_file_bytes."""
    if resolved_path.is_file():
        file_size = resolved_path.stat().st_size
        if file_size > limits.max_file_bytes:
            raise PolicyBlockedError(
                reason="File exceeds max_file_bytes limit.",
                hint="Request a smaller file or increase limit via approved configuration.",
            )


def enforce_batch_limit(count: int, limits: SecurityLimits) -> None:
    """Raise PolicyBlockedError when a multi-path request is too large."""
    if count > limits.max_batch_paths:
        raise PolicyBlockedError(
            reason="Requested path count exceeds max_batch_paths limit.",
            hint="Split the request into smaller batches.",
        )
