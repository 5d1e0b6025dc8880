from __future__ import annotations

from pathlib import Path

from fs_mcp.search import search_files
from fs_mcp.security import AllowList


def _touch(path: Path, text: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_search_matches_names_case_insensitively(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    readme = _touch(root / "docs" / "README.md")
    _touch(root / "docs" / "guide.md")

    results = search_files(root, "readme", [], AllowList.from_directories([str(root)]))

    assert results == [str(readme)]


def test_search_returns_directories_and_files_depth_first(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    _touch(root / "b" / "c.txt")
    _touch(root / "a.txt")

    results = search_files(root, "", [], AllowList.from_directories([str(root)]))

    assert results == [str(root / "a.txt"), str(root / "b"), str(root / "b" / "c.txt")]


def test_symlinked_directory_escaping_allow_list_is_skipped(tmp_path: Path) -> None:
    root = (tmp_path / "root").resolve()
    outside = (tmp_path / "outside").resolve()
    _touch(outside / "secret.txt")
    _touch(root / "visible-secret.txt")
    (root / "link").symlink_to(outside, target_is_directory=True)

    results = search_files(root, "secret", [], AllowList.from_directories([str(root)]))

    assert results == [str(root / "visible-secret.txt")]


def test_symlink_cycle_does_not_recurse_forever(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    _touch(root / "a.txt")
    (root / "loop").symlink_to(root, target_is_directory=True)

    results = search_files(root, "a.txt", [], AllowList.from_directories([str(root)]))

    assert results == [str(root / "a.txt")]


def test_max_results_stops_the_walk(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    for index in range(5):
        _touch(root / f"match-{index}.txt")

    results = search_files(
        root, "match", [], AllowList.from_directories([str(root)]), max_results=2
    )

    assert results == [str(root / "match-0.txt"), str(root / "match-1.txt")]


def test_missing_root_yields_no_results(tmp_path: Path) -> None:
    root = tmp_path.resolve()

    results = search_files(root / "gone", "x", [], AllowList.from_directories([str(root)]))

    assert results == []
