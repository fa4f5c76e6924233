"""Tests for mdmu.models."""

from datetime import datetime, timedelta, timezone

import pytest

from mdmu.models import AnnotationFile, Comment, RenderedDocument, SourceRange, parse_timestamp


def _comment(cid, start):
    return Comment(id=cid, source_range=SourceRange(start, start), selected_text="", body=cid)


class TestSourceRange:
    def test_label(self):
        assert SourceRange(3, 3).label() == "L3"
        assert SourceRange(3, 7).label() == "L3-7"

    @pytest.mark.parametrize("start,end", [(0, 1), (5, 4), (-1, -1)])
    def test_invalid(self, start, end):
        with pytest.raises(ValueError):
            SourceRange(start, end)


class TestRenderedDocument:
    def test_add_line_keeps_tables_parallel(self):
        doc = RenderedDocument()
        doc.add_line("a", 1, 1)
        doc.add_line("b", 2, 3)
        assert len(doc) == 2
        assert doc.mappings[1].rendered_line == 1
        assert doc.mappings[1].source == SourceRange(2, 3)

    def test_extend_with_prefix(self):
        inner = RenderedDocument()
        inner.add_line("x", 4, 4)
        outer = RenderedDocument()
        outer.add_line("top", 1, 1)
        outer.extend(inner, prefix="> ")
        assert outer.lines == ["top", "> x"]
        assert outer.mappings[1].rendered_line == 1
        assert outer.mappings[1].source == SourceRange(4, 4)


class TestAnnotationFile:
    def test_sorted_is_stable_and_non_mutating(self):
        af = AnnotationFile("/a.md", "h", (_comment("c", 5), _comment("a", 1), _comment("b", 5)))
        assert [c.id for c in af.sorted_comments()] == ["a", "c", "b"]
        assert [c.id for c in af.comments] == ["c", "a", "b"]

    def test_with_and_without(self):
        af = AnnotationFile("/a.md", "h")
        added = af.with_comment(_comment("x", 1))
        assert af.comments == ()
        assert [c.id for c in added.comments] == ["x"]
        assert added.without_comment("x").comments == ()
        assert added.without_comment("missing") == added


class TestParseTimestamp:
    def test_zulu_suffix(self):
        ts = parse_timestamp("2024-01-02T03:04:05Z")
        assert ts == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_nanoseconds_truncated(self):
        ts = parse_timestamp("2024-01-02T03:04:05.123456789Z")
        assert ts.microsecond == 123456
        assert ts.utcoffset() == timedelta(0)

    def test_short_fraction_and_offset(self):
        ts = parse_timestamp("2024-01-02T03:04:05.5+02:00")
        assert ts.microsecond == 500000
        assert ts.utcoffset() == timedelta(hours=2)

    def test_comment_from_dict_accepts_nanosecond_time(self):
        comment = Comment.from_dict({
            "id": "1", "source_start": 2, "source_end": 3, "selected_text": "x",
            "comment": "note", "created_at": "2024-01-02T03:04:05.000000001Z",
        })
        assert comment.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert comment.source_range == SourceRange(2, 3)

    def test_comment_from_dict_rejects_non_string_body(self):
        with pytest.raises(ValueError):
            Comment.from_dict({
                "id": "1", "source_start": 2, "source_end": 3,
                "comment": 42, "created_at": "2024-01-02T03:04:05Z",
            })
