"""Tests for ragset.geometry.layout: Pillow-backed greedy line layout."""

import pytest
from conftest import NBSP, FakeFont

from ragset.geometry.layout import PillowTextBlock, load_font


def _block(text: str, width: float = 100, **kwargs) -> PillowTextBlock:
    return PillowTextBlock(text, FakeFont(), width, **kwargs)


class TestLineBreaking:
    def test_greedy_wrap(self):
        block = _block("aaa bbb ccc ddd")
        assert block.line_ranges() == [(0, 8), (8, 15)]
        assert block.rendered_lines() == ["aaa bbb", "ccc ddd"]

    def test_everything_fits(self):
        assert _block("aaa bbb", 200).rendered_lines() == ["aaa bbb"]

    def test_never_breaks_at_nbsp(self):
        block = _block("aaa bbb{0}ccc ddd".format(NBSP))
        assert block.rendered_lines() == ["aaa", "bbb{0}ccc".format(NBSP), "ddd"]

    @pytest.mark.parametrize("joiner", ["\u2007", "\u202f"])
    def test_never_breaks_at_other_no_break_spaces(self, joiner):
        block = _block("aaa bbb{0}ccc ddd".format(joiner))
        assert "bbb{0}ccc".format(joiner) in block.rendered_lines()

    def test_overlong_word_alone(self):
        block = _block("a extraordinarily b", 60)
        assert block.rendered_lines() == ["a", "extraordinarily", "b"]

    def test_trailing_space_hangs(self):
        block = _block("aaa bbb ccc")
        block.resize(70)
        # "aaa bbb " is 80 px with its space but only 70 px without.
        assert block.rendered_lines() == ["aaa bbb", "ccc"]

    def test_empty(self):
        block = _block("")
        assert block.line_ranges() == []
        assert block.char_box(0) is None

    def test_default_line_height_from_metrics(self):
        assert _block("aaa").line_height == pytest.approx(12.0)
        assert _block("aaa", line_height=30).line_height == 30.0


class TestGeometry:
    def test_char_boxes(self):
        block = _block("aaa bbb ccc ddd")
        b = block.char_box(9)
        assert (b.x0, b.x1) == (10.0, 20.0)
        assert (b.y0, b.y1) == (12.0, 24.0)
        assert block.char_box(99) is None
        assert block.char_box(-1) is None

    def test_range_box(self):
        block = _block("aaa bbb ccc ddd")
        assert block.range_box(0, 7) == (0.0, 0.0, 70.0, 12.0)
        assert block.range_box(5, 5) is None


class TestSpacing:
    def test_word_spacing_widens_line(self):
        block = _block("aaa bbb ccc", 200)
        block.set_word_spacing(0, 2.0)
        assert block.range_box(0, 11)[2] == pytest.approx(114.0)
        assert block.char_box(4).x0 == pytest.approx(42.0)

    def test_word_spacing_does_not_reflow(self):
        block = _block("aaa bbb ccc ddd")
        before = block.line_ranges()
        block.set_word_spacing(0, 3.0)
        assert block.line_ranges() == before

    def test_word_spacing_skips_trailing_space(self):
        block = _block("aaa bbb ccc ddd")
        block.set_word_spacing(0, 2.0)
        # Line 0 is "aaa bbb " and has one internal gap.
        assert block.range_box(0, 7)[2] == pytest.approx(72.0)
        assert block.char_box(7).x1 == pytest.approx(82.0)

    def test_word_spacing_skips_joined_gaps(self):
        block = _block("aaa bbb{0}ccc".format(NBSP), 200)
        block.set_word_spacing(0, 2.0)
        assert block.range_box(0, 11)[2] == pytest.approx(112.0)
        assert block.char_box(8).x0 == pytest.approx(82.0)

    def test_fully_joined_line_unchanged_by_word_spacing(self):
        block = _block("aaa{0}bbb{0}ccc".format(NBSP), 200)
        block.set_word_spacing(0, 2.0)
        assert block.range_box(0, 11)[2] == pytest.approx(110.0)

    def test_word_spacing_per_line(self):
        block = _block("aaa bbb ccc ddd")
        block.set_word_spacing(1, 1.5)
        assert block.range_box(0, 7)[2] == pytest.approx(70.0)
        assert block.range_box(8, 15)[2] == pytest.approx(71.5)

    def test_zero_word_spacing_removes_entry(self):
        block = _block("aaa bbb ccc ddd")
        block.set_word_spacing(0, 2.0)
        block.set_word_spacing(0, 0)
        assert block.word_spacing == {}

    def test_letter_spacing_participates_in_breaks(self):
        block = _block("aaa bbb ccc", 75)
        assert block.rendered_lines() == ["aaa bbb", "ccc"]
        block.set_letter_spacing(1.0)
        assert block.rendered_lines() == ["aaa", "bbb", "ccc"]

    def test_reset_restores_natural_layout(self):
        block = _block("aaa bbb ccc", 75)
        natural = block.line_ranges()
        block.set_letter_spacing(1.0)
        block.set_word_spacing(0, 2.0)
        block.reset_spacing()
        assert block.letter_spacing == 0.0
        assert block.word_spacing == {}
        assert block.line_ranges() == natural
        assert block.range_box(0, 7)[2] == pytest.approx(70.0)

    def test_set_text_clears_spacing(self):
        block = _block("aaa bbb ccc")
        block.set_word_spacing(0, 2.0)
        block.set_text("ddd eee")
        assert block.word_spacing == {}
        assert block.rendered_lines() == ["ddd eee"]


class TestLoadFont:
    def test_missing_file_falls_back(self):
        font = load_font("/nonexistent/font-file.ttf", 12)
        assert font.getlength("abc") > 0
