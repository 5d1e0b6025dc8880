from __future__ import annotations

from fs_mcp.editing import Edit, apply_edit, apply_edits


def test_exact_edit_replaces_substring() -> None:
    assert apply_edit("foo\nbar\n", Edit(old_text="bar", new_text="baz")) == "foo\nbaz\n"


def test_exact_edit_replaces_only_first_occurrence() -> None:
    assert apply_edit("a a a", Edit(old_text="a", new_text="b")) == "b a a"


def test_edits_apply_against_accumulated_content() -> None:
    edits = [Edit(old_text="one", new_text="two"), Edit(old_text="two", new_text="three")]

    assert apply_edits("one\n", edits) == "three\n"


def test_edit_text_line_endings_are_normalized() -> None:
    edit = Edit(old_text="alpha\r\nbeta", new_text="gamma\r\ndelta")

    assert apply_edit("alpha\nbeta\n", edit) == "gamma\ndelta\n"


def test_empty_edit_list_leaves_content_unchanged() -> None:
    assert apply_edits("keep\n", []) == "keep\n"
