"""Tests for SourceEditor range splicing.

Python 3.11+.
"""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from catalogengine.extraction.editor import SourceEditor


class TestSourceEditor:
    """Edits address original positions regardless of earlier edits."""

    def test_untouched(self) -> None:
        assert SourceEditor("abc").to_string() == "abc"

    def test_overwrite(self) -> None:
        editor = SourceEditor("<p>Hello</p>")
        editor.overwrite(3, 8, "{t(0)}")
        assert str(editor) == "<p>{t(0)}</p>"

    def test_remove_then_overwrite_elsewhere(self) -> None:
        editor = SourceEditor("0123456789")
        editor.remove(2, 4)
        editor.overwrite(6, 8, "x")
        assert editor.to_string() == "0145x89"

    def test_move_expression_behind_text(self) -> None:
        editor = SourceEditor("Hi {name}!")
        editor.remove(0, 4)
        editor.remove(8, 9)
        editor.move(4, 8, 10)
        editor.append_left(10, "t(0, [")
        editor.append_right(10, "])")
        assert editor.to_string() == "!t(0, [name])"

    def test_append_left_and_right_at_same_boundary(self) -> None:
        editor = SourceEditor("ab")
        editor.append_left(1, "L")
        editor.append_right(1, "R")
        assert editor.to_string() == "aLRb"

    def test_prepend_right_goes_first(self) -> None:
        editor = SourceEditor("ab")
        editor.append_right(1, "2")
        editor.prepend_right(1, "1")
        assert editor.to_string() == "a12b"

    def test_insertions_at_edges(self) -> None:
        editor = SourceEditor("x")
        editor.append_left(0, "<")
        editor.append_right(1, ">")
        assert editor.to_string() == "<x>"

    def test_left_insertion_moves_with_range(self) -> None:
        editor = SourceEditor("abcd")
        editor.append_left(2, "!")
        editor.move(0, 2, 4)
        assert editor.to_string() == "cdab!"

    def test_remove_drops_attached_insertions(self) -> None:
        editor = SourceEditor("abc")
        editor.append_right(1, "X")
        editor.remove(1, 2)
        assert editor.to_string() == "ac"

    def test_out_of_range(self) -> None:
        with pytest.raises(IndexError):
            SourceEditor("abc").remove(0, 4)

    def test_overwrite_empty_range(self) -> None:
        with pytest.raises(ValueError, match="empty range"):
            SourceEditor("abc").overwrite(1, 1, "x")

    def test_move_inside_itself(self) -> None:
        with pytest.raises(ValueError, match="inside itself"):
            SourceEditor("abcdef").move(1, 4, 2)

    @given(
        text=st.text(min_size=1, max_size=20),
        data=st.data(),
    )
    def test_removals_match_slicing(self, text: str, data: st.DataObject) -> None:
        """Removing one range equals string slicing on the original."""
        start = data.draw(st.integers(0, len(text)))
        end = data.draw(st.integers(start, len(text)))
        editor = SourceEditor(text)
        editor.remove(start, end)
        assert editor.to_string() == text[:start] + text[end:]
