"""Raw source bytes and byte-offset to line-number lookup."""

from __future__ import annotations

from bisect import bisect_right
from pathlib import Path

from mdmu.errors import SourceReadError


def build_line_offsets(data: bytes) -> list[int]:
    """Byte offsets at which each source line starts. Index 0 is always 0."""
    offsets = [0]
    pos = data.find(b"\n")
    while pos != -1:
        offsets.append(pos + 1)
        pos = data.find(b"\n", pos + 1)
    return offsets


class SourceDocument:
    """Immutable source bytes with a precomputed line-start table."""

    def __init__(self, data: bytes, path: str = ""):
        self._data = bytes(data)
        self._offsets = build_line_offsets(self._data)
        self.path = path

    @classmethod
    def from_path(cls, path: str | Path) -> SourceDocument:
        p = Path(path)
        try:
            return cls(p.read_bytes(), path=str(p))
        except OSError as e:
            raise SourceReadError(f"reading file {p}: {e}") from e

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def line_offsets(self) -> tuple[int, ...]:
        return tuple(self._offsets)

    @property
    def line_count(self) -> int:
        """Number of lines, counting a trailing newline as opening an empty line."""
        return len(self._offsets)

    def offset_to_line(self, offset: int) -> int:
        """Map a byte offset to its 1-indexed line number.

        Counts the line starts at or before ``offset``; out-of-range offsets
        clamp to the first or last line.
        """
        if offset <= 0:
            return 1
        return bisect_right(self._offsets, offset)

    def line_start(self, line: int) -> int:
        """Byte offset of the start of 1-indexed ``line`` (clamped)."""
        idx = min(max(line, 1), len(self._offsets)) - 1
        return self._offsets[idx]

    def line_end(self, line: int) -> int:
        """Byte offset just past the content of ``line``, excluding its newline."""
        idx = min(max(line, 1), len(self._offsets))
        if idx < len(self._offsets):
            return self._offsets[idx] - 1
        return len(self._data)

    def lines(self) -> list[str]:
        """Decoded source lines; a trailing newline yields a final empty line."""
        return self._data.decode("utf-8", errors="replace").split("\n")

    def excerpt(self, start: int, end: int) -> str:
        """Verbatim text of lines ``start..end`` clamped to the document."""
        lines = self.lines()
        lo = max(start - 1, 0)
        hi = min(end, len(lines))
        return "\n".join(lines[lo:hi])
