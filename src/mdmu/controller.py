"""Selection and comment state machine for the interactive view.

The controller is a reducer: ``reduce(state, event)`` returns the next state
plus the side effects the surrounding event loop must carry out (persisting
comments, copying to the clipboard, focusing text entry, quitting). It never
touches the terminal, the clipboard, or the filesystem itself, so every
transition can be tested without a live terminal.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Union

from mdmu.formatter import format_citations
from mdmu.models import AnnotationFile, Comment, LineMapping, RenderedDocument, SourceRange
from mdmu.source import SourceDocument
from mdmu.store import content_hash


class Mode(enum.Enum):
    NORMAL = "normal"
    SELECTING = "selecting"
    COMMENTING = "commenting"
    PREVIEW = "preview"


class Pane(enum.Enum):
    DOCUMENT = "document"
    COMMENTS = "comments"


# Key names follow Textual's conventions.
KEYMAP: dict[str, tuple[str, ...]] = {
    "force_quit": ("ctrl+c",),
    "quit": ("q",),
    "up": ("up",),
    "down": ("down",),
    "page_up": ("pageup",),
    "page_down": ("pagedown",),
    "home": ("home",),
    "end": ("end",),
    "select_up": ("shift+up",),
    "select_down": ("shift+down",),
    "select_page_up": ("shift+pageup",),
    "select_page_down": ("shift+pagedown",),
    "select_home": ("shift+home",),
    "select_end": ("shift+end",),
    "cancel": ("escape",),
    "comment": ("c", "C", "shift+c"),
    "copy": ("c", "C", "shift+c"),
    "toggle_pane": ("tab",),
    "submit": ("enter",),
    "newline": ("ctrl+j", "alt+enter", "shift+enter"),
    "backspace": ("backspace", "ctrl+h"),
    "delete": ("d",),
}


# --- Events ---

@dataclass(frozen=True)
class KeyPress:
    key: str
    character: str | None = None


@dataclass(frozen=True)
class Resized:
    """The view was resized and the document re-rendered to fit."""
    document: RenderedDocument
    height: int


Event = Union[KeyPress, Resized]


# --- Effects ---

@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Persist:
    annotations: AnnotationFile


@dataclass(frozen=True)
class CopyToClipboard:
    text: str


@dataclass(frozen=True)
class FocusTextInput:
    pass


Effect = Union[Quit, Persist, CopyToClipboard, FocusTextInput]


@dataclass(frozen=True)
class UIState:
    document: RenderedDocument
    annotations: AnnotationFile
    cursor: int = 0
    anchor: int | None = None
    mode: Mode = Mode.NORMAL
    focus: Pane = Pane.DOCUMENT
    scroll: int = 0
    height: int = 20
    comment_cursor: int = 0
    draft: str = ""
    preview: str = ""
    preview_scroll: int = 0
    status: str = ""

    def selection_range(self) -> tuple[int, int]:
        """Selected rendered-line indices, normalized to (low, high)."""
        if self.anchor is None:
            return self.cursor, self.cursor
        return min(self.anchor, self.cursor), max(self.anchor, self.cursor)

    def is_selected(self, line: int) -> bool:
        if self.anchor is None:
            return False
        lo, hi = self.selection_range()
        return lo <= line <= hi

    @property
    def last_line(self) -> int:
        return max(len(self.document.lines) - 1, 0)


@dataclass(frozen=True)
class Transition:
    state: UIState
    effects: tuple[Effect, ...] = field(default_factory=tuple)


def rendered_to_source_range(mappings: list[LineMapping], lo: int, hi: int) -> SourceRange:
    """Smallest source range covering rendered lines ``lo..hi``.

    Indices outside the mapping table are ignored; a window with no mapped
    lines falls back to line 1.
    """
    start = 0
    end = 0
    for i in range(max(lo, 0), min(hi, len(mappings) - 1) + 1):
        src = mappings[i].source
        if src.start > 0:
            if start == 0 or src.start < start:
                start = src.start
            end = max(end, src.end)
    if start == 0:
        return SourceRange(1, 1)
    return SourceRange(start, max(start, end))


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SelectionController:
    """Turns key events into state transitions and effects."""

    def __init__(
        self,
        source: SourceDocument,
        *,
        new_id: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _now,
        keymap: dict[str, tuple[str, ...]] | None = None,
    ):
        self.source = source
        self.new_id = new_id
        self.clock = clock
        self.keymap = keymap or KEYMAP

    def initial_state(self, document: RenderedDocument, annotations: AnnotationFile,
                      height: int = 20, status: str = "") -> UIState:
        return UIState(document=document, annotations=annotations, height=max(height, 1), status=status)

    def _is(self, key: str, action: str) -> bool:
        return key in self.keymap.get(action, ())

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def reduce(self, state: UIState, event: Event) -> Transition:
        if isinstance(event, Resized):
            return Transition(self._resize(state, event))

        key = event.key
        if self._is(key, "force_quit"):
            return Transition(state, (Quit(),))
        if state.mode == Mode.COMMENTING:
            return self._commenting(state, event)
        if state.mode == Mode.PREVIEW:
            return self._preview(state, key)
        return self._browsing(state, key)

    def _resize(self, state: UIState, event: Resized) -> UIState:
        state = replace(state, document=event.document, height=max(event.height, 1))
        return _ensure_cursor_visible(replace(state, cursor=min(state.cursor, state.last_line)))

    # ------------------------------------------------------------------
    # Normal / Selecting
    # ------------------------------------------------------------------

    def _browsing(self, state: UIState, key: str) -> Transition:
        if self._is(key, "quit"):
            return Transition(state, (Quit(),))

        if self._is(key, "submit") and state.annotations.comments:
            return Transition(self._enter_preview(state))

        if self._is(key, "toggle_pane"):
            return Transition(self._toggle_pane(state))

        if state.focus == Pane.DOCUMENT:
            return self._document_keys(state, key)
        return self._comment_list_keys(state, key)

    def _document_keys(self, state: UIState, key: str) -> Transition:
        page = state.height
        moves = {
            "up": -1,
            "down": 1,
            "page_up": -page,
            "page_down": page,
        }
        for action, delta in moves.items():
            if self._is(key, action):
                return Transition(self._move(state, state.cursor + delta, extend=False))
            if self._is(key, "select_" + action):
                return Transition(self._move(state, state.cursor + delta, extend=True))

        if self._is(key, "home"):
            return Transition(self._move(state, 0, extend=False))
        if self._is(key, "end"):
            return Transition(self._move(state, state.last_line, extend=False))
        if self._is(key, "select_home"):
            return Transition(self._move(state, 0, extend=True))
        if self._is(key, "select_end"):
            return Transition(self._move(state, state.last_line, extend=True))

        if self._is(key, "cancel"):
            return Transition(replace(state, anchor=None, mode=Mode.NORMAL, status=""))

        if self._is(key, "comment"):
            anchor = state.cursor if state.anchor is None else state.anchor
            return Transition(
                replace(state, anchor=anchor, mode=Mode.COMMENTING, draft=""),
                (FocusTextInput(),),
            )

        return Transition(state)

    def _move(self, state: UIState, target: int, *, extend: bool) -> UIState:
        cursor = min(max(target, 0), state.last_line)
        if extend:
            anchor = state.cursor if state.anchor is None else state.anchor
            state = replace(state, anchor=anchor, mode=Mode.SELECTING, cursor=cursor)
        else:
            state = replace(state, anchor=None, mode=Mode.NORMAL, cursor=cursor)
        return _ensure_cursor_visible(state)

    def _toggle_pane(self, state: UIState) -> UIState:
        if state.focus == Pane.COMMENTS:
            return replace(state, focus=Pane.DOCUMENT)

        state = replace(state, focus=Pane.COMMENTS)
        count = len(state.annotations.comments)
        if count:
            state = replace(state, comment_cursor=min(state.comment_cursor, count - 1))
            state = _scroll_to_comment_target(state)
        return state

    def _comment_list_keys(self, state: UIState, key: str) -> Transition:
        ordered = state.annotations.sorted_comments()
        last = max(len(ordered) - 1, 0)

        if self._is(key, "up"):
            if state.comment_cursor > 0:
                state = _scroll_to_comment_target(replace(state, comment_cursor=state.comment_cursor - 1))
            return Transition(state)

        if self._is(key, "down"):
            if state.comment_cursor < last:
                state = _scroll_to_comment_target(replace(state, comment_cursor=state.comment_cursor + 1))
            return Transition(state)

        if self._is(key, "delete") and 0 <= state.comment_cursor < len(ordered):
            target = ordered[state.comment_cursor]
            annotations = state.annotations.without_comment(target.id)
            cursor = min(state.comment_cursor, max(len(annotations.comments) - 1, 0))
            state = replace(
                state,
                annotations=annotations,
                comment_cursor=cursor,
                status=f"Deleted comment on {target.source_range.label()}",
            )
            return Transition(state, (Persist(annotations),))

        return Transition(state)

    # ------------------------------------------------------------------
    # Commenting
    # ------------------------------------------------------------------

    def _commenting(self, state: UIState, event: KeyPress) -> Transition:
        key = event.key

        if self._is(key, "cancel"):
            return Transition(replace(state, mode=Mode.NORMAL, anchor=None, draft=""))

        if self._is(key, "newline"):
            return Transition(replace(state, draft=state.draft + "\n"))

        if self._is(key, "submit"):
            return self._commit(state)

        if self._is(key, "backspace"):
            return Transition(replace(state, draft=state.draft[:-1]))

        if event.character and event.character.isprintable():
            return Transition(replace(state, draft=state.draft + event.character))

        return Transition(state)

    def pending_range(self, state: UIState) -> SourceRange:
        """Source lines the current selection maps to."""
        lo, hi = state.selection_range()
        return rendered_to_source_range(state.document.mappings, lo, hi)

    def _commit(self, state: UIState) -> Transition:
        body = state.draft
        if not body.strip():
            return Transition(replace(state, mode=Mode.NORMAL, anchor=None, draft=""))

        source_range = self.pending_range(state)
        comment = Comment(
            id=self.new_id(),
            source_range=source_range,
            selected_text=self.source.excerpt(source_range.start, source_range.end),
            body=body,
            created_at=self.clock(),
        )
        annotations = state.annotations
        if not annotations.comments:
            # Nothing left to go stale; restamp against the text being annotated.
            annotations = replace(annotations, content_hash=content_hash(self.source.data))
        annotations = annotations.with_comment(comment)
        state = replace(
            state,
            annotations=annotations,
            mode=Mode.NORMAL,
            anchor=None,
            draft="",
            status=f"Added comment on {source_range.label()}",
        )
        return Transition(state, (Persist(annotations),))

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def _enter_preview(self, state: UIState) -> UIState:
        content = format_citations(state.annotations, self.source.data)
        return replace(state, mode=Mode.PREVIEW, preview=content, preview_scroll=0)

    def _preview(self, state: UIState, key: str) -> Transition:
        if self._is(key, "quit"):
            return Transition(state, (Quit(),))

        if self._is(key, "cancel"):
            return Transition(replace(state, mode=Mode.NORMAL, status=""))

        if self._is(key, "copy"):
            return Transition(replace(state, mode=Mode.NORMAL), (CopyToClipboard(state.preview),))

        max_scroll = max(len(state.preview.split("\n")) - state.height, 0)
        deltas = {"up": -1, "down": 1, "page_up": -state.height, "page_down": state.height}
        for action, delta in deltas.items():
            if self._is(key, action):
                scroll = min(max(state.preview_scroll + delta, 0), max_scroll)
                return Transition(replace(state, preview_scroll=scroll))

        return Transition(state)


# ------------------------------------------------------------------
# Scrolling helpers
# ------------------------------------------------------------------

def _ensure_cursor_visible(state: UIState) -> UIState:
    scroll = state.scroll
    if state.cursor < scroll:
        scroll = state.cursor
    if state.cursor >= scroll + state.height:
        scroll = state.cursor - state.height + 1
    if scroll == state.scroll:
        return state
    return replace(state, scroll=scroll)


def _scroll_to_comment_target(state: UIState) -> UIState:
    """Move the document cursor to the first line of the focused comment."""
    ordered = state.annotations.sorted_comments()
    if not 0 <= state.comment_cursor < len(ordered):
        return state

    target = ordered[state.comment_cursor].source_range
    for i, mapping in enumerate(state.document.mappings):
        if target.start <= mapping.source.start <= target.end:
            return _ensure_cursor_visible(replace(state, cursor=i))
    return state
