"""Sandboxing and path safety primitives."""

from .policy import (
    PolicyBlockedError,
    SecurityLimits,
    enforce_batch_limit,
    enforce_file_size_limit,
)
from .sandbox import (
    AccessDeniedError,
    AllowList,
    ParentMissingError,
    PathSandbox,
    SandboxError,
    resolve_path,
)

__all__ = [
    "AccessDeniedError",
    "AllowList",
    "ParentMissingError",
    "PathSandbox",
    "PolicyBlockedError",
    "SandboxError",
    "SecurityLimits",
    "enforce_batch_limit",
    "enforce_file_size_limit",
    "resolve_path",
]
