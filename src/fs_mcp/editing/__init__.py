"""Sequential text edits with fuzzy matching and diff output."""

from .diff import create_unified_diff, fence_diff, normalize_line_endings
from .patch import (
    Edit,
    EditNotFoundError,
    EditRequest,
    apply_edit,
    apply_edits,
    apply_file_edits,
)

__all__ = [
    "Edit",
    "EditNotFoundError",
    "EditRequest",
    "apply_edit",
    "apply_edits",
    "apply_file_edits",
    "create_unified_diff",
    "fence_diff",
    "normalize_line_endings",
]
