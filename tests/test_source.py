"""Tests for mdmu.source: line table and offset lookup."""

import pytest

from mdmu.errors import SourceReadError
from mdmu.source import SourceDocument, build_line_offsets


class TestBuildLineOffsets:
    def test_empty(self):
        assert build_line_offsets(b"") == [0]

    def test_lines(self):
        assert build_line_offsets(b"ab\ncd\n") == [0, 3, 6]

    def test_no_trailing_newline(self):
        assert build_line_offsets(b"ab\ncd") == [0, 3]


class TestOffsetToLine:
    @pytest.fixture
    def doc(self):
        return SourceDocument(b"line1\nline2\nline3\n")

    @pytest.mark.parametrize("offset,line", [
        (0, 1),
        (3, 1),
        (5, 1),   # the newline belongs to line 1
        (6, 2),
        (11, 2),
        (12, 3),
    ])
    def test_lookup(self, doc, offset, line):
        assert doc.offset_to_line(offset) == line

    def test_past_end_clamps_to_last_line(self, doc):
        assert doc.offset_to_line(10_000) == doc.line_count

    def test_negative_offset(self, doc):
        assert doc.offset_to_line(-5) == 1

    def test_empty_document(self):
        doc = SourceDocument(b"")
        assert doc.offset_to_line(0) == 1
        assert doc.offset_to_line(100) == 1


class TestLineBounds:
    def test_line_start_and_end(self):
        doc = SourceDocument(b"ab\ncde\nf")
        assert doc.line_start(2) == 3
        assert doc.line_end(2) == 6
        assert doc.line_end(3) == 8

    def test_clamped(self):
        doc = SourceDocument(b"ab\ncd")
        assert doc.line_start(0) == 0
        assert doc.line_start(99) == 3


class TestExcerpt:
    @pytest.fixture
    def doc(self):
        return SourceDocument(b"one\ntwo\nthree\nfour\n")

    def test_single_line(self, doc):
        assert doc.excerpt(2, 2) == "two"

    def test_range(self, doc):
        assert doc.excerpt(2, 3) == "two\nthree"

    def test_clamped_to_document(self, doc):
        assert doc.excerpt(4, 50) == "four\n"

    def test_utf8(self):
        doc = SourceDocument("héllo\nwörld\n".encode("utf-8"))
        assert doc.excerpt(2, 2) == "wörld"


class TestFromPath:
    def test_reads_file(self, tmp_path):
        f = tmp_path / "doc.md"
        f.write_bytes(b"# Title\n")
        doc = SourceDocument.from_path(f)
        assert doc.data == b"# Title\n"
        assert doc.path == str(f)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceReadError):
            SourceDocument.from_path(tmp_path / "missing.md")
