"""Data models for rendered documents and stored comments."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

_MISSING = object()
# Fractional seconds of any precision; fromisoformat before 3.11 wants 3 or 6 digits.
_FRACTION_RE = re.compile(r"\.(\d+)")


def _field(data: dict, key: str, kind: type, default=_MISSING):
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    if key not in data and default is not _MISSING:
        return default
    value = data[key]
    # bool is an int subclass but never a valid line number.
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ValueError(f"field {key!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


def _str_field(data: dict, key: str, default=_MISSING) -> str:
    return _field(data, key, str, default)


def _int_field(data: dict, key: str) -> int:
    return _field(data, key, int)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, including ``Z`` and nanosecond forms."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], value, count=1)
    return datetime.fromisoformat(value)


@dataclass(frozen=True, order=True)
class SourceRange:
    """Inclusive, 1-indexed range of source lines."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < self.start:
            raise ValueError(f"invalid source range ({self.start}, {self.end})")

    @property
    def is_single_line(self) -> bool:
        return self.start == self.end

    def label(self) -> str:
        """Short label like ``L3`` or ``L3-7``."""
        if self.is_single_line:
            return f"L{self.start}"
        return f"L{self.start}-{self.end}"


@dataclass(frozen=True)
class LineMapping:
    """Associates one rendered line with the source lines it came from."""
    rendered_line: int  # 0-indexed into RenderedDocument.lines
    source: SourceRange


@dataclass
class RenderedDocument:
    """Styled output lines plus a parallel mapping table.

    ``mappings[i]`` always describes ``lines[i]``.
    """
    lines: list[str] = field(default_factory=list)
    mappings: list[LineMapping] = field(default_factory=list)

    def add_line(self, text: str, start: int, end: int) -> None:
        idx = len(self.lines)
        self.lines.append(text)
        self.mappings.append(LineMapping(rendered_line=idx, source=SourceRange(start, end)))

    def extend(self, other: RenderedDocument, prefix: str = "") -> None:
        """Append another document's lines, keeping their source ranges."""
        for line, mapping in zip(other.lines, other.mappings):
            self.add_line(prefix + line, mapping.source.start, mapping.source.end)

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class Comment:
    """A comment anchored to a range of source lines. Immutable once created."""
    id: str
    source_range: SourceRange
    selected_text: str
    body: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_start": self.source_range.start,
            "source_end": self.source_range.end,
            "selected_text": self.selected_text,
            "comment": self.body,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Comment:
        return cls(
            id=_str_field(data, "id"),
            source_range=SourceRange(_int_field(data, "source_start"), _int_field(data, "source_end")),
            selected_text=_str_field(data, "selected_text", ""),
            body=_str_field(data, "comment"),
            created_at=parse_timestamp(_str_field(data, "created_at")),
        )


@dataclass(frozen=True)
class AnnotationFile:
    """All comments on one document, keyed by its absolute path."""
    target_path: str
    content_hash: str
    comments: tuple[Comment, ...] = ()

    def sorted_comments(self) -> list[Comment]:
        """Comments ordered by start line; ties keep insertion order."""
        return sorted(self.comments, key=lambda c: c.source_range.start)

    def with_comment(self, comment: Comment) -> AnnotationFile:
        return replace(self, comments=self.comments + (comment,))

    def without_comment(self, comment_id: str) -> AnnotationFile:
        return replace(self, comments=tuple(c for c in self.comments if c.id != comment_id))

    def to_dict(self) -> dict:
        return {
            "file": self.target_path,
            "file_hash": self.content_hash,
            "comments": [c.to_dict() for c in self.comments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> AnnotationFile:
        return cls(
            target_path=_str_field(data, "file"),
            content_hash=_str_field(data, "file_hash", ""),
            comments=tuple(Comment.from_dict(c) for c in _comment_list(data)),
        )


def _comment_list(data: dict) -> list:
    comments = data.get("comments") or []
    if not isinstance(comments, list):
        raise ValueError(f"field 'comments' must be list, got {type(comments).__name__}")
    return comments
