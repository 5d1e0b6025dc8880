from __future__ import annotations

from pathlib import Path

from fs_mcp.server import create_server


def test_audit_log_tool_returns_recent_entries(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])
    server.handle_payload({"id": "a1", "method": "list_allowed_directories", "params": {}})
    server.handle_payload({"id": "a2", "method": "read_file", "params": {"path": "/etc/hosts"}})

    response = server.handle_payload({"id": "a3", "method": "audit_log", "params": {"limit": 1}})

    entries = response["result"]["entries"]
    assert len(entries) == 1
    assert entries[0]["request_id"] == "a2"
    assert entries[0]["blocked"] is True


def test_audit_log_tool_filters_by_tool_and_since(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])
    server.handle_payload({"id": "b1", "method": "list_allowed_directories", "params": {}})
    server.handle_payload(
        {"id": "b2", "method": "list_directory", "params": {"path": str(tmp_path)}}
    )

    by_tool = server.handle_payload(
        {"id": "b3", "method": "audit_log", "params": {"tool": "list_directory"}}
    )
    future = server.handle_payload(
        {"id": "b4", "method": "audit_log", "params": {"since": "9999-01-01T00:00:00Z"}}
    )

    assert [entry["request_id"] for entry in by_tool["result"]["entries"]] == ["b2"]
    assert future["result"]["entries"] == []
