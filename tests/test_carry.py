"""Tests for carryfwd.carry.carry_lines."""

import random
from dataclasses import replace

import pytest

from carryfwd.anchors import find_anchor
from carryfwd.carry import CopyMode, carry_lines
from carryfwd.config import DEFAULT_SETTINGS, InvalidConfigError
from carryfwd.editor import Position, Selection, TextDocument
from carryfwd.links import WikiLinkFormatter


def _doc(*lines):
    return TextDocument(lines=list(lines))


def _sel(start_line, start_ch, end_line, end_ch):
    return Selection(Position(start_line, start_ch), Position(end_line, end_ch))


def _carry(doc, selection, mode=CopyMode.SEPARATE_LINES, settings=DEFAULT_SETTINGS, **kwargs):
    kwargs.setdefault("target", "todo")
    kwargs.setdefault("rng", random.Random(42))
    return carry_lines(doc, selection, settings, mode, **kwargs)


class TestSeparateLines:
    def test_caret_strips_leading_whitespace_from_copy(self):
        result = _carry(_doc("  hello"), Selection.caret(0))
        (anchor,) = result.created_anchors
        assert result.rewritten_lines == [f"  hello {anchor}"]
        assert result.clipboard_text == f"hello (see [[todo#{anchor}]])"

    def test_keeps_leading_whitespace_when_disabled(self):
        settings = replace(DEFAULT_SETTINGS, remove_leading_whitespace=False)
        result = _carry(_doc("  hello"), Selection.caret(0), settings=settings)
        (anchor,) = result.created_anchors
        assert result.clipboard_text == f"  hello (see [[todo#{anchor}]])"

    def test_every_line_gets_its_own_anchor(self):
        doc = _doc("one", "two", "three")
        result = _carry(doc, _sel(0, 0, 2, 5))
        assert len(result.created_anchors) == 3
        assert len(set(result.created_anchors)) == 3
        for rewritten, copied, anchor in zip(
            result.rewritten_lines, result.copied_lines, result.created_anchors
        ):
            assert rewritten.endswith(f" {anchor}")
            assert copied.endswith(f"(see [[todo#{anchor}]])")

    def test_existing_anchor_reused_and_not_copied(self):
        result = _carry(_doc("task ^abc12"), Selection.caret(0))
        assert result.created_anchors == []
        assert result.reused_anchors == ["^abc12"]
        assert result.rewritten_lines == ["task ^abc12"]
        assert result.clipboard_text == "task (see [[todo#^abc12]])"

    def test_second_run_reuses_anchors(self):
        doc = _doc("alpha", "beta")
        selection = _sel(0, 0, 1, 4)
        first = _carry(doc, selection)
        doc.lines = first.rewritten_lines

        second = _carry(doc, selection, rng=random.Random(99))
        assert second.created_anchors == []
        assert second.reused_anchors == first.created_anchors
        assert second.rewritten_lines == first.rewritten_lines
        assert second.copied_lines == first.copied_lines

    def test_interior_blank_line_passes_through(self):
        doc = _doc("a", "   ", "b")
        result = _carry(doc, _sel(0, 0, 2, 1))
        assert result.rewritten_lines[1] == "   "
        assert result.copied_lines[1] == "   "
        assert len(result.created_anchors) == 2
        assert find_anchor(result.rewritten_lines[1]) is None

    def test_single_blank_line_is_anchored(self):
        result = _carry(_doc(""), Selection.caret(0))
        (anchor,) = result.created_anchors
        assert result.rewritten_lines == [f" {anchor}"]


class TestSelectionBoundaries:
    def test_single_line_partial_selection(self):
        result = _carry(_doc("hello world"), _sel(0, 6, 0, 11))
        (anchor,) = result.created_anchors
        assert result.clipboard_text == f"world (see [[todo#{anchor}]])"
        assert result.rewritten_lines == [f"hello world {anchor}"]

    def test_partial_selection_keeps_last_character(self):
        result = _carry(_doc("abcdef"), _sel(0, 1, 0, 4))
        assert result.copied_lines[0].startswith("bcd (see")

    def test_first_line_copied_through_end_of_line(self):
        doc = _doc("abcdef", "ghijkl")
        result = _carry(doc, _sel(0, 2, 1, 2))
        first, second = result.created_anchors
        assert result.copied_lines == [
            f"cdef (see [[todo#{first}]])",
            f"gh (see [[todo#{second}]])",
        ]
        # Source lines are anchored in full, regardless of the columns
        assert result.rewritten_lines == [f"abcdef {first}", f"ghijkl {second}"]

    def test_middle_lines_copied_whole(self):
        doc = _doc("  a", "  b", "  c")
        result = _carry(doc, _sel(0, 2, 2, 3), mode=CopyMode.COMBINED_LINES)
        assert result.copied_lines[1] == "  b"

    def test_multi_line_selection_does_not_strip_whitespace(self):
        doc = _doc("  a", "  b")
        result = _carry(doc, _sel(0, 0, 1, 3), mode=CopyMode.COMBINED_LINES)
        assert result.copied_lines[0].startswith("  a")


class TestCombinedLines:
    def test_only_first_line_linked(self):
        doc = _doc("a", "b")
        result = _carry(doc, _sel(0, 0, 1, 1), mode=CopyMode.COMBINED_LINES)
        (anchor,) = result.created_anchors
        assert result.rewritten_lines == [f"a {anchor}", "b"]
        assert result.copied_lines == [f"a (see [[todo#{anchor}]])", "b"]

    def test_link_rebuilt_from_rewritten_anchor(self):
        doc = _doc("first", "second")
        result = _carry(doc, _sel(0, 0, 1, 6), mode=CopyMode.COMBINED_LINES)
        anchor = find_anchor(result.rewritten_lines[0])
        link = WikiLinkFormatter()("todo", f"#{anchor}", "")
        assert link in result.copied_lines[0]


class TestLinkOnly:
    def test_single_copied_line_for_multi_line_selection(self):
        doc = _doc("one", "two", "three")
        result = _carry(doc, _sel(0, 0, 2, 5), mode=CopyMode.LINK_ONLY)
        (anchor,) = result.created_anchors
        assert result.copied_lines == [f"(see [[todo#{anchor}]])"]
        assert result.rewritten_lines == [f"one {anchor}", "two", "three"]

    def test_copied_link_text_template(self):
        settings = replace(DEFAULT_SETTINGS, copied_link_text="-> {{LINK}} <-")
        result = _carry(_doc("x ^abc12"), Selection.caret(0), mode=CopyMode.LINK_ONLY, settings=settings)
        assert result.clipboard_text == "-> [[todo#^abc12]] <-"

    def test_embed(self):
        result = _carry(_doc("x ^abc12"), Selection.caret(0), mode=CopyMode.LINK_ONLY_EMBED)
        assert result.clipboard_text == "![[todo#^abc12]]"
        assert result.rewritten_lines == ["x ^abc12"]

    def test_embed_ignores_copied_link_template(self):
        settings = replace(DEFAULT_SETTINGS, copied_link_text="see {{LINK}}")
        result = _carry(_doc("x ^abc12"), Selection.caret(0), mode=CopyMode.LINK_ONLY_EMBED, settings=settings)
        assert result.clipboard_text == "![[todo#^abc12]]"


class TestLineFormat:
    def test_link_text(self):
        result = _carry(_doc("x ^abc12"), Selection.caret(0), link_text="origin")
        assert result.clipboard_text == "x (see [[todo#^abc12|origin]])"

    def test_template_without_placeholder_omits_link(self):
        settings = replace(DEFAULT_SETTINGS, line_format_to=" (moved)")
        result = _carry(_doc("x"), Selection.caret(0), settings=settings)
        assert result.clipboard_text == "x (moved)"
        assert len(result.created_anchors) == 1

    def test_first_match_only(self):
        settings = replace(DEFAULT_SETTINGS, line_format_from="o", line_format_to="0{{LINK}}")
        result = _carry(_doc("foo boo ^abc12"), Selection.caret(0), settings=settings)
        assert result.clipboard_text == "f0[[todo#^abc12]]o boo "

    def test_group_references(self):
        settings = replace(
            DEFAULT_SETTINGS,
            line_format_from=r"^- (.*)$",
            line_format_to=r"- \1 {{LINK}}",
        )
        result = _carry(_doc("- task ^abc12"), Selection.caret(0), settings=settings)
        assert result.clipboard_text == "- task  [[todo#^abc12]]"

    def test_link_inserted_literally(self):
        result = _carry(_doc("x ^abc12"), Selection.caret(0), link_text=r"C:\temp \1")
        assert result.clipboard_text == r"x (see [[todo#^abc12|C:\temp \1]])"

    def test_escaped_newline_in_template(self):
        settings = replace(DEFAULT_SETTINGS, line_format_to="\\n{{LINK}}")
        result = _carry(_doc("x ^abc12"), Selection.caret(0), settings=settings)
        assert result.clipboard_text == "x\n[[todo#^abc12]]"

    def test_escaped_backslash_in_from_pattern(self):
        settings = replace(DEFAULT_SETTINGS, line_format_from=r"\\n", line_format_to="{{LINK}}")
        result = _carry(_doc(r"a\nb ^abc12"), Selection.caret(0), settings=settings)
        assert result.clipboard_text == "a[[todo#^abc12]]b "

    def test_no_match_leaves_copy(self):
        settings = replace(DEFAULT_SETTINGS, line_format_from="zzz")
        result = _carry(_doc("x"), Selection.caret(0), settings=settings)
        assert result.clipboard_text == "x"


class TestInvalidSettings:
    def test_invalid_from_pattern(self):
        settings = replace(DEFAULT_SETTINGS, line_format_from="(unclosed")
        with pytest.raises(InvalidConfigError) as exc:
            _carry(_doc("x"), Selection.caret(0), settings=settings)
        assert exc.value.pattern == "(unclosed"
        assert exc.value.setting == "lineFormatFrom"

    def test_invalid_pattern_rejected_in_link_only_mode(self):
        settings = replace(DEFAULT_SETTINGS, line_format_from="[")
        with pytest.raises(InvalidConfigError):
            _carry(_doc("x"), Selection.caret(0), mode=CopyMode.LINK_ONLY, settings=settings)

    def test_bad_group_reference_in_template(self):
        settings = replace(DEFAULT_SETTINGS, line_format_to=r"\2 {{LINK}}")
        with pytest.raises(InvalidConfigError) as exc:
            _carry(_doc("x"), Selection.caret(0), settings=settings)
        assert exc.value.setting == "lineFormatTo"
