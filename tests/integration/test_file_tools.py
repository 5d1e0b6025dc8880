from __future__ import annotations

import json
from pathlib import Path

from fs_mcp.server import create_server


def _call(server, tool: str, arguments: dict[str, object]) -> dict[str, object]:
    return server.handle_payload({"id": tool, "method": tool, "params": arguments})


def test_write_then_read_file(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])
    target = tmp_path / "notes.txt"

    written = _call(server, "write_file", {"path": str(target), "content": "line\n"})
    read = _call(server, "read_file", {"path": str(target)})

    assert written["result"]["message"] == f"Successfully wrote to {target}"
    assert read["result"] == {"path": str(target), "content": "line\n"}


def test_read_multiple_files_reports_failures_inline(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_text("alpha", encoding="utf-8")
    (root / "b.txt").write_text("beta", encoding="utf-8")
    server = create_server([str(root)], data_dir=str(tmp_path / "data"))
    paths = [str(root / "b.txt"), "/etc/passwd", str(root / "a.txt")]

    response = _call(server, "read_multiple_files", {"paths": paths})

    assert response["ok"] is True
    files = response["result"]["files"]
    assert [item["path"] for item in files] == paths
    assert [item["ok"] for item in files] == [True, False, True]
    assert files[1]["error"].startswith("Access denied - path outside allowed directories")
    text = response["result"]["text"]
    assert text.split("\n---\n")[0] == f"{root / 'b.txt'}:\nbeta\n"
    assert "/etc/passwd: Error - Access denied" in text


def test_read_multiple_files_batch_limit(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])

    response = _call(
        server, "read_multiple_files", {"paths": [str(tmp_path / "x")] * 101}
    )

    assert response["blocked"] is True
    assert response["result"]["reason"] == "Requested path count exceeds max_batch_paths limit."


def test_create_list_and_tree(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    server = create_server([str(root)], data_dir=str(tmp_path / "data"))

    _call(server, "create_directory", {"path": str(root / "src")})
    created = _call(server, "create_directory", {"path": str(root / "src" / "pkg")})
    (root / "src" / "pkg" / "mod.py").write_text("", encoding="utf-8")
    (root / "README").write_text("", encoding="utf-8")
    listing = _call(server, "list_directory", {"path": str(root)})
    tree = _call(server, "directory_tree", {"path": str(root)})

    assert created["result"]["message"] == f"Successfully created directory {root / 'src' / 'pkg'}"
    assert listing["result"]["text"] == "[FILE] README\n[DIR] src"
    assert tree["result"]["tree"] == [
        {"name": "README", "type": "file"},
        {
            "name": "src",
            "type": "directory",
            "children": [
                {
                    "name": "pkg",
                    "type": "directory",
                    "children": [{"name": "mod.py", "type": "file"}],
                }
            ],
        },
    ]
    assert json.loads(tree["result"]["text"]) == tree["result"]["tree"]


def test_create_directory_is_idempotent(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])
    target = tmp_path / "existing"
    target.mkdir()

    response = _call(server, "create_directory", {"path": str(target)})

    assert response["ok"] is True


def test_move_file_renames_and_refuses_existing_destination(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])
    source = tmp_path / "a.txt"
    source.write_text("a", encoding="utf-8")
    (tmp_path / "taken.txt").write_text("t", encoding="utf-8")

    moved = _call(
        server, "move_file", {"source": str(source), "destination": str(tmp_path / "b.txt")}
    )
    refused = _call(
        server,
        "move_file",
        {"source": str(tmp_path / "b.txt"), "destination": str(tmp_path / "taken.txt")},
    )

    assert moved["ok"] is True
    assert (tmp_path / "b.txt").read_text(encoding="utf-8") == "a"
    assert not source.exists()
    assert refused["error"]["code"] == "IO_ERROR"
    assert (tmp_path / "taken.txt").read_text(encoding="utf-8") == "t"


def test_move_out_of_allow_list_is_blocked(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_text("a", encoding="utf-8")
    server = create_server([str(root)], data_dir=str(tmp_path / "data"))

    response = _call(
        server, "move_file", {"source": str(root / "a.txt"), "destination": str(tmp_path / "a.txt")}
    )

    assert response["blocked"] is True
    assert (root / "a.txt").exists()


def test_get_file_info(tmp_path: Path) -> None:
    target = tmp_path / "f.txt"
    target.write_text("12345", encoding="utf-8")
    target.chmod(0o640)
    server = create_server([str(tmp_path)])

    response = _call(server, "get_file_info", {"path": str(target)})

    result = response["result"]
    assert result["size"] == 5
    assert result["isFile"] is True
    assert result["isDirectory"] is False
    assert result["permissions"] == "640"
    assert result["modified"].endswith("Z")
    assert "size: 5" in result["text"]


def test_create_directory_needs_existing_parent(tmp_path: Path) -> None:
    server = create_server([str(tmp_path)])

    response = _call(server, "create_directory", {"path": str(tmp_path / "a" / "b")})

    assert response["error"]["code"] == "PARENT_MISSING"
    assert not (tmp_path / "a").exists()
