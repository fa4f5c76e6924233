"""Tests for mdmu.wrap: visible width and word wrapping."""

from mdmu.wrap import MIN_WRAP_WIDTH, strip_ansi, visible_width, wrap


class TestVisibleWidth:
    def test_plain(self):
        assert visible_width("hello") == 5

    def test_empty(self):
        assert visible_width("") == 0

    def test_skips_escape_sequences(self):
        assert visible_width("\x1b[31mhello\x1b[0m") == 5

    def test_multiple_parameters(self):
        assert visible_width("\x1b[1;38;5;33mhi\x1b[0m") == 2

    def test_wide_characters(self):
        assert visible_width("日本") == 4

    def test_unterminated_escape(self):
        assert visible_width("ab\x1b[3") == 2


class TestStripAnsi:
    def test_strip(self):
        assert strip_ansi("\x1b[1mbold\x1b[0m text") == "bold text"


class TestWrap:
    def test_short_text_unchanged(self):
        assert wrap("hello world", 80) == ["hello world"]

    def test_wraps_at_width(self):
        assert wrap("aaa bbb ccc", 7) == ["aaa bbb", "ccc"]

    def test_exact_fit(self):
        assert wrap("ab cd", 5) == ["ab cd"]

    def test_long_word_on_its_own_line(self):
        assert wrap("a supercalifragilistic b", 5) == ["a", "supercalifragilistic", "b"]

    def test_collapses_whitespace(self):
        assert wrap("a   b\tc", 80) == ["a b c"]

    def test_newline_starts_paragraph(self):
        assert wrap("one\ntwo", 80) == ["one", "two"]

    def test_empty_paragraph_kept(self):
        assert wrap("one\n\ntwo", 80) == ["one", "", "two"]

    def test_empty_input(self):
        assert wrap("", 80) == [""]

    def test_nonpositive_width_uses_minimum(self):
        text = " ".join(["word"] * 20)
        for line in wrap(text, 0):
            assert visible_width(line) <= MIN_WRAP_WIDTH
        assert wrap(text, 0) == wrap(text, MIN_WRAP_WIDTH)

    def test_escapes_do_not_count_toward_width(self):
        colored = "\x1b[31mred\x1b[0m"
        assert wrap(f"{colored} {colored}", 7) == [f"{colored} {colored}"]

    def test_lines_fit(self):
        text = "The quick brown fox jumps over the lazy dog " * 5
        for line in wrap(text, 17):
            assert visible_width(line) <= 17
