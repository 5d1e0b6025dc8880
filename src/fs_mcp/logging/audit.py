"""Structured JSONL audit log utilities."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

_KEPT_STRING_KEYS = frozenset({"path", "source", "destination", "pattern", "since", "tool"})


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized record of one tool request and its outcome."""

    timestamp: str
    request_id: str
    tool: str
    ok: bool
    blocked: bool
    error_code: str | None
    duration_ms: float
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Sanitize arguments so file contents and edit text never reach the log."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments.keys()):
        value = arguments[key]
        if key in _KEPT_STRING_KEYS and isinstance(value, str):
            sanitized[key] = value
            continue
        if key in {"limit"} and isinstance(value, int):
            sanitized[key] = value
            continue
        if key in {"dryRun"} and isinstance(value, bool):
            sanitized[key] = value
            continue
        if key in {"paths", "excludePatterns"} and isinstance(value, list):
            sanitized[key] = [item for item in value if isinstance(item, str)]
            continue
        if key == "edits" and isinstance(value, list):
            sanitized["edits_count"] = len(value)
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, list):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, dict):
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = sorted(str(k) for k in value.keys())
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlAuditLogger:
    """Append-only JSONL audit log kept under the server data directory."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def append(self, event: AuditEvent) -> None:
        """Append one event as a single JSON line, recreating the directory if needed."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self,
        since: str | None = None,
        limit: int = 50,
        tool: str | None = None,
    ) -> list[dict[str, object]]:
        """Return the newest `limit` events, oldest first.

        `since` is an ISO-8601 lower bound on the event timestamp and `tool`
        keeps only events for that tool name. Unparseable lines are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        entries: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if not isinstance(record, dict):
                    continue
                if since is not None:
                    ts = record.get("timestamp")
                    if not isinstance(ts, str) or ts < since:
                        continue
                if tool is not None and record.get("tool") != tool:
                    continue
                entries.append(record)
        return list(entries)
