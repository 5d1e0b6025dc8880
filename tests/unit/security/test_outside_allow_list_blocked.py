from __future__ import annotations

from pathlib import Path

import pytest

from fs_mcp.security import AccessDeniedError, AllowList, resolve_path


def _allow(tmp_path: Path) -> tuple[Path, AllowList]:
    allowed = tmp_path / "allowed"
    allowed.mkdir()
    return allowed, AllowList.from_directories([str(allowed)])


def test_absolute_path_outside_allow_list_is_denied(tmp_path: Path) -> None:
    _, allow_list = _allow(tmp_path)
    outside = tmp_path / "outside.txt"
    outside.write_text("x", encoding="utf-8")

    with pytest.raises(AccessDeniedError) as error:
        resolve_path(str(outside), allow_list)

    assert error.value.reason.startswith("Access denied - path outside allowed directories")


def test_dotdot_segments_are_collapsed_before_the_check(tmp_path: Path) -> None:
    allowed, allow_list = _allow(tmp_path)
    (tmp_path / "outside.txt").write_text("x", encoding="utf-8")

    with pytest.raises(AccessDeniedError):
        resolve_path(str(allowed / ".." / "outside.txt"), allow_list)


def test_dotdot_segments_that_stay_inside_are_allowed(tmp_path: Path) -> None:
    allowed, allow_list = _allow(tmp_path)
    (allowed / "sub").mkdir()
    target = allowed / "note.txt"
    target.write_text("x", encoding="utf-8")

    resolved = resolve_path(str(allowed / "sub" / ".." / "note.txt"), allow_list)

    assert resolved == target.resolve()


def test_relative_path_resolves_against_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    allowed, allow_list = _allow(tmp_path)
    target = allowed / "note.txt"
    target.write_text("x", encoding="utf-8")
    monkeypatch.chdir(allowed)

    assert resolve_path("note.txt", allow_list) == target.resolve()


def test_relative_path_from_outside_working_directory_is_denied(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _, allow_list = _allow(tmp_path)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(AccessDeniedError):
        resolve_path("elsewhere.txt", allow_list)


def test_empty_path_is_denied(tmp_path: Path) -> None:
    _, allow_list = _allow(tmp_path)

    with pytest.raises(AccessDeniedError):
        resolve_path("", allow_list)
