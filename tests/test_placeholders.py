"""Tests for the placeholder compiler and structural equivalence.

Python 3.11+.
"""

from __future__ import annotations

from hypothesis import event, given
from hypothesis import strategies as st

from catalogengine.compiler.placeholders import (
    compile_plural,
    compile_translation,
    structural_shape,
    structurally_equivalent,
)

marker_soup = st.text(alphabet="ab {}<>/012", max_size=30)


class TestCompileTranslation:
    """Marker parsing into nested arrays."""

    def test_empty_text_returns_fallback_unchanged(self) -> None:
        fallback = ["x", 0]
        assert compile_translation("", fallback) is fallback
        assert compile_translation(None, "src") == "src"

    def test_plain_text_is_verbatim(self) -> None:
        assert compile_translation("Hello", ["x"]) == "Hello"

    def test_single_tag(self) -> None:
        assert compile_translation("Foo <0>bar</0>", "") == ["Foo ", [0, "bar"]]

    def test_nested_tag_with_argument_and_self_closing(self) -> None:
        assert compile_translation("Foo <0>bar {0}<0/></0>", "") == ["Foo ", [0, "bar ", 0, [0]]]

    def test_arguments(self) -> None:
        assert compile_translation("{0} of {1}", "") == [0, " of ", 1]

    def test_self_closing_only(self) -> None:
        assert compile_translation("Line<0/>break", "") == ["Line", [0], "break"]

    def test_unmatched_closer_is_literal(self) -> None:
        assert compile_translation("a </0> b", "") == "a </0> b"

    def test_unclosed_opener_is_literal(self) -> None:
        assert compile_translation("a <0>b", "") == "a <0>b"

    def test_non_numeric_braces_are_literal(self) -> None:
        assert compile_translation("{name} <b>x</b>", "") == "{name} <b>x</b>"

    def test_tags_nest_arbitrarily(self) -> None:
        compiled = compile_translation("<0><1><2>deep</2></1></0>", "")
        assert compiled == [[0, [1, [2, "deep"]]]]

    @given(text=marker_soup)
    def test_never_raises(self, text: str) -> None:
        """Malformed markers degrade to literal text."""
        compiled = compile_translation(text, "fallback")
        event(f"kind={type(compiled).__name__}")
        assert isinstance(compiled, (str, list))

    @given(text=st.text(alphabet="abc ,.!?", max_size=30))
    def test_marker_free_text_is_identity(self, text: str) -> None:
        if text:
            assert compile_translation(text, "") == text


class TestCompilePlural:
    """Plural forms compile independently."""

    def test_forms_compile_independently(self) -> None:
        assert compile_plural(["One file", "{0} files"], []) == ["One file", [0, " files"]]

    def test_blank_forms_fall_back_to_source(self) -> None:
        fallback = ["One", [0, " many"]]
        assert compile_plural(["", " "], fallback) is fallback

    def test_single_blank_form_takes_positional_fallback(self) -> None:
        assert compile_plural(["Un", ""], ["One", "Many"]) == ["Un", "Many"]


class TestStructuralEquivalence:
    """Only placeholders and tags matter."""

    def test_text_differences_ignored(self) -> None:
        assert structurally_equivalent(
            compile_translation("Hi <0>{0}</0>", ""),
            compile_translation("Salut <0>{0}</0>", ""),
        )

    def test_missing_placeholder_detected(self) -> None:
        assert not structurally_equivalent(compile_translation("Hi {0}", ""), compile_translation("Salut", ""))

    def test_order_insensitive(self) -> None:
        assert structurally_equivalent(compile_translation("{0} {1}", ""), compile_translation("{1} {0}", ""))

    def test_nesting_matters(self) -> None:
        assert not structurally_equivalent(
            compile_translation("<0>{0}</0>", ""),
            compile_translation("<0></0>{0}", ""),
        )

    def test_plain_strings_have_empty_shape(self) -> None:
        assert structural_shape("Hello") == ()

    @given(words=st.lists(st.sampled_from(["Hi", "there", "friend", "!"]), min_size=1, max_size=4))
    def test_retexting_preserves_shape(self, words: list[str]) -> None:
        source = compile_translation(f"{words[0]} <0>{{0}}</0>", "")
        translated = compile_translation(f"<0>{{0}}</0> {' '.join(words)}", "")
        assert structurally_equivalent(source, translated)
