"""Semantic styling roles shared by the renderer and the terminal UI.

Nothing downstream depends on the particular colors chosen here; callers
only ever refer to roles.
"""

from __future__ import annotations

from rich.color import ColorSystem
from rich.style import Style

STYLES: dict[str, Style] = {
    # Document content
    "heading.1": Style(color="cyan", bold=True),
    "heading.2": Style(color="green", bold=True),
    "heading.3": Style(color="yellow", bold=True),
    "heading.4": Style(color="magenta", bold=True),
    "heading": Style(bold=True),
    "code": Style(color="white", bgcolor="color(236)"),
    "code.header": Style(color="color(244)", bgcolor="color(236)"),
    "code.inline": Style(color="yellow"),
    "quote.bar": Style(color="color(244)"),
    "rule": Style(color="color(244)"),
    "html": Style(color="color(244)"),
    "link": Style(color="cyan", underline=True),
    "link.destination": Style(color="color(244)"),
    "image": Style(color="color(244)"),
    "strong": Style(bold=True),
    "emphasis": Style(italic=True),
    "strike": Style(dim=True),
    # Terminal UI
    "ui.cursor": Style(bgcolor="color(236)"),
    "ui.selection": Style(bgcolor="color(24)"),
    "ui.border.active": Style(color="color(62)"),
    "ui.border.inactive": Style(color="color(240)"),
    "ui.title": Style(color="color(62)", bold=True),
    "ui.comment.header": Style(color="color(62)", bold=True),
    "ui.comment.text": Style(color="color(252)"),
    "ui.comment.focused": Style(bgcolor="color(236)"),
    "ui.separator": Style(color="color(243)"),
    "ui.status": Style(color="color(252)", bgcolor="color(236)"),
    "ui.status.key": Style(color="color(229)", bgcolor="color(236)", bold=True),
    "ui.empty": Style(color="color(243)", italic=True),
    "ui.warning": Style(color="color(214)", bold=True),
}

_COLOR_SYSTEM = ColorSystem.EIGHT_BIT


def style_for(role: str) -> Style:
    return STYLES.get(role, Style.null())


def heading_role(level: int) -> str:
    return f"heading.{level}" if level <= 4 else "heading"


def paint(role: str, text: str) -> str:
    """Wrap ``text`` in the escape sequences for ``role``."""
    return style_for(role).render(text, color_system=_COLOR_SYSTEM)
