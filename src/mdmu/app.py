"""Textual front end for an interactive session.

The view functions turn a ``UIState`` into rich ``Text`` for each panel; the
app itself only forwards keys and resizes to the session and repaints.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.logging import TextualHandler
from textual.widgets import Static

from mdmu.controller import KeyPress, Mode, Pane, UIState, rendered_to_source_range
from mdmu.session import Session
from mdmu.styles import style_for

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = "No content to display"
EMPTY_COMMENTS = "No comments yet\nSelect lines and press C"

HINTS: dict[str, list[tuple[str, str]]] = {
    "commenting": [("Enter", "save"), ("Ctrl+J", "newline"), ("Esc", "cancel")],
    "selecting": [("Shift+↑↓", "extend"), ("C", "comment"), ("Esc", "cancel")],
    "comments": [("↑↓", "navigate"), ("d", "delete"), ("Tab", "markdown"), ("q", "quit")],
    "document": [("↑↓", "navigate"), ("Shift+↑↓", "select"), ("C", "comment"),
                 ("Tab", "comments"), ("Enter", "preview"), ("q", "quit")],
    "preview": [("C", "copy"), ("↑↓ PgUp/PgDn", "scroll"), ("Esc", "return"), ("q", "quit")],
}


# ------------------------------------------------------------------
# Views
# ------------------------------------------------------------------

def document_view(state: UIState, width: int) -> Text:
    lines = state.document.lines
    if not lines:
        return Text(EMPTY_DOCUMENT, style=style_for("ui.empty"))

    rows = []
    for i in range(state.scroll, min(state.scroll + state.height, len(lines))):
        row = Text.from_ansi(lines[i])
        row.pad_right(max(width - row.cell_len, 0))
        if state.is_selected(i):
            row.stylize(style_for("ui.selection"))
        elif i == state.cursor and state.focus == Pane.DOCUMENT:
            row.stylize(style_for("ui.cursor"))
        rows.append(row)
    return Text("\n").join(rows)


def comments_view(state: UIState, width: int) -> Text:
    ordered = state.annotations.sorted_comments()
    if not ordered:
        return Text(EMPTY_COMMENTS, style=style_for("ui.empty"))

    text_width = max(width - 6, 10)
    rows = []
    for i, comment in enumerate(ordered):
        body = Text(comment.body.replace("\n", " "), style=style_for("ui.comment.text"))
        body.truncate(text_width, overflow="ellipsis")
        row = Text.assemble((comment.source_range.label(), style_for("ui.comment.header")), " ", body)
        if state.focus == Pane.COMMENTS and i == state.comment_cursor:
            row.pad_right(max(width - row.cell_len, 0))
            row.stylize(style_for("ui.comment.focused"))
        rows.append(row)
        if i < len(ordered) - 1:
            rows.append(Text("─" * max(width - 2, 1), style=style_for("ui.separator")))

    # Two rows per comment; keep the focused one on screen.
    scroll = max(2 * state.comment_cursor - state.height + 1, 0)
    return Text("\n").join(rows[scroll:scroll + state.height])


def comment_input_view(state: UIState) -> Text:
    lo, hi = state.selection_range()
    rng = rendered_to_source_range(state.document.mappings, lo, hi)
    title = Text(f"Comment on lines {rng.start}-{rng.end}", style=style_for("ui.status.key"))
    return Text("\n").join([title, Text(state.draft + "▏")])


def preview_view(state: UIState) -> Text:
    lines = state.preview.split("\n")
    return Text("\n".join(lines[state.preview_scroll:state.preview_scroll + state.height]))


def hint_key(state: UIState) -> str:
    if state.mode == Mode.PREVIEW:
        return "preview"
    if state.mode == Mode.COMMENTING:
        return "commenting"
    if state.mode == Mode.SELECTING:
        return "selecting"
    if state.focus == Pane.COMMENTS:
        return "comments"
    return "document"


def status_view(state: UIState) -> Text:
    parts: list = []
    if state.status:
        role = "ui.warning" if state.status.startswith(("⚠", "✗")) else "ui.status"
        parts += [(state.status, style_for(role)), "  "]
    for key, label in HINTS[hint_key(state)]:
        parts += [(key, style_for("ui.status.key")), f" {label}  "]
    return Text.assemble(*parts, style=style_for("ui.status"))


# ------------------------------------------------------------------
# App
# ------------------------------------------------------------------

class MdmuApp(App):
    """Two panes (document and comments) above a status bar."""

    CSS = """
    #panes { height: 1fr; }
    #document { width: 65%; height: 100%; border: round #585858; }
    #comments { width: 35%; height: 100%; border: round #585858; }
    #document.active, #comments.active, #preview { border: round #5f5fd7; }
    #preview { height: 1fr; display: none; }
    #comment-input { height: auto; border: round #5f5fd7; padding: 0 1; display: none; }
    #status { height: 1; background: #303030; }
    """

    # Routed through the session before Textual's own handling of these keys.
    BINDINGS = [
        Binding("ctrl+c", "route('ctrl+c')", show=False, priority=True),
        Binding("tab", "route('tab')", show=False, priority=True),
    ]

    def __init__(self, session: Session):
        super().__init__()
        self.session = session
        self.title = f"mdmu: {session.filename}"

    def compose(self) -> ComposeResult:
        with Horizontal(id="panes"):
            yield Static(id="document")
            yield Static(id="comments")
        yield Static(id="preview")
        yield Static(id="comment-input")
        yield Static(id="status")

    def on_mount(self) -> None:
        self.query_one("#document", Static).border_title = "Markdown"
        self.query_one("#preview", Static).border_title = "Comment Preview"
        self.refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        self.session.resize(event.size.width, event.size.height)
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._route(event.key, event.character)

    def action_route(self, key: str) -> None:
        self._route(key, None)

    def _route(self, key: str, character: str | None) -> None:
        self.session.dispatch(KeyPress(key, character))
        if self.session.quit_requested:
            self.exit()
            return
        self.refresh_view()

    def refresh_view(self) -> None:
        state = self.session.state
        document = self.query_one("#document", Static)
        comments = self.query_one("#comments", Static)
        preview = self.query_one("#preview", Static)
        comment_input = self.query_one("#comment-input", Static)

        previewing = state.mode == Mode.PREVIEW
        self.query_one("#panes").display = not previewing
        preview.display = previewing
        comment_input.display = state.mode == Mode.COMMENTING

        if previewing:
            preview.update(preview_view(state))
        else:
            document.set_class(state.focus == Pane.DOCUMENT, "active")
            comments.set_class(state.focus == Pane.COMMENTS, "active")
            comments.border_title = f"Comments ({len(state.annotations.comments)})"
            document.update(document_view(state, document.content_size.width))
            comments.update(comments_view(state, comments.content_size.width))
        if state.mode == Mode.COMMENTING:
            comment_input.update(comment_input_view(state))
        self.query_one("#status", Static).update(status_view(state))


@contextmanager
def _log_to_textual():
    """Swap root stderr handlers for Textual's handler while the app owns the terminal."""
    root = logging.getLogger()
    displaced = [
        h for h in root.handlers
        if type(h) is logging.StreamHandler and h.stream in (sys.stderr, sys.__stderr__)
    ]
    handler = TextualHandler()
    for h in displaced:
        root.removeHandler(h)
        handler.setFormatter(h.formatter)
    root.addHandler(handler)
    try:
        yield handler
    finally:
        root.removeHandler(handler)
        for h in displaced:
            root.addHandler(h)


def run(session: Session) -> None:
    logger.debug("Starting interactive view for %s", session.filename)
    with _log_to_textual():
        MdmuApp(session).run()
