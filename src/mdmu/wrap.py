"""ANSI-aware text measurement and greedy word wrapping."""

from __future__ import annotations

import re

from rich.cells import cell_len

# ESC, any parameter bytes, then a single terminating letter. An unterminated
# sequence swallows the rest of the string.
ANSI_ESCAPE_RE = re.compile(r"\x1b[^A-Za-z]*(?:[A-Za-z]|$)")

MIN_WRAP_WIDTH = 40


def strip_ansi(s: str) -> str:
    """Remove escape sequences, leaving only displayed characters."""
    return ANSI_ESCAPE_RE.sub("", s)


def visible_width(s: str) -> int:
    """Number of terminal columns ``s`` occupies once escapes are skipped.

    Wide East Asian characters and most emoji count as two columns.
    """
    if not s:
        return 0
    return cell_len(strip_ansi(s))


def wrap(text: str, width: int) -> list[str]:
    """Wrap ``text`` so no line is wider than ``width`` visible columns.

    Explicit newlines start a new paragraph. A word wider than ``width`` is
    placed on a line of its own rather than split.
    """
    if width <= 0:
        width = MIN_WRAP_WIDTH

    lines: list[str] = []
    for paragraph in text.split("\n"):
        lines.extend(_wrap_paragraph(paragraph, width))
    return lines or [""]


def _wrap_paragraph(paragraph: str, width: int) -> list[str]:
    words = paragraph.split()
    if not words:
        return [""]

    lines: list[str] = []
    current = words[0]
    current_width = visible_width(current)
    for word in words[1:]:
        word_width = visible_width(word)
        if current_width + 1 + word_width <= width:
            current += " " + word
            current_width += 1 + word_width
        else:
            lines.append(current)
            current = word
            current_width = word_width
    lines.append(current)
    return lines
