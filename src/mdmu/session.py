"""Interactive session: owns the document and comments, runs controller effects.

The controller decides what should happen; the session does it. Saves and
clipboard copies happen here, and their failures turn into status-bar
messages instead of ending the session.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable

from mdmu import clipboard
from mdmu.controller import (
    CopyToClipboard,
    Effect,
    Event,
    Persist,
    Quit,
    Resized,
    SelectionController,
    UIState,
)
from mdmu.errors import ClipboardError, ParseError, StoreError
from mdmu.renderer import parse_and_render
from mdmu.source import SourceDocument
from mdmu.store import AnnotationStore

logger = logging.getLogger(__name__)

# Share of the terminal width given to the document pane.
DOCUMENT_PANE_RATIO = 0.65
MIN_RENDER_WIDTH = 20
# Pane title, borders and status bar.
CHROME_HEIGHT = 4

STALE_WARNING = "⚠ File changed since comments were made; line numbers may be off"


def render_width_for(term_width: int) -> int:
    """Wrap width for the document pane of a terminal ``term_width`` wide."""
    return max(int(term_width * DOCUMENT_PANE_RATIO) - 4, MIN_RENDER_WIDTH)


def content_height_for(term_height: int) -> int:
    return max(term_height - CHROME_HEIGHT, 1)


class Session:
    """Glue between the terminal front end, the controller and the store."""

    def __init__(
        self,
        source: SourceDocument,
        store: AnnotationStore,
        controller: SelectionController,
        state: UIState,
        *,
        copy: Callable[[str], None] = clipboard.copy,
    ):
        self.source = source
        self.store = store
        self.controller = controller
        self.state = state
        self.copy = copy
        self.quit_requested = False

    @classmethod
    def open(
        cls,
        path: str | Path,
        store: AnnotationStore,
        *,
        width: int = 80,
        height: int = 24,
        controller_factory: Callable[[SourceDocument], SelectionController] = SelectionController,
        copy: Callable[[str], None] = clipboard.copy,
    ) -> Session:
        """Read, load and render ``path``.

        Raises ``SourceReadError``, ``StoreError`` or ``ParseError``; all of
        them are fatal before the interactive view starts.
        """
        path = Path(path).absolute()
        source = SourceDocument.from_path(path)
        annotations = store.load(path)

        status = ""
        if annotations.comments and store.is_stale(annotations):
            logger.warning("%s changed since it was last annotated", path)
            status = STALE_WARNING

        document = parse_and_render(source.data, render_width_for(width))
        logger.info("Rendered %s: %d lines, %d comments", path.name, len(document), len(annotations.comments))

        controller = controller_factory(source)
        state = controller.initial_state(document, annotations, content_height_for(height), status)
        return cls(source, store, controller, state, copy=copy)

    @property
    def filename(self) -> str:
        return Path(self.state.annotations.target_path).name

    def dispatch(self, event: Event) -> tuple[Effect, ...]:
        """Feed one event through the controller and carry out its effects."""
        transition = self.controller.reduce(self.state, event)
        self.state = transition.state
        for effect in transition.effects:
            self._run(effect)
        return transition.effects

    def resize(self, width: int, height: int) -> None:
        """Re-render for a new terminal size, keeping the old lines on failure."""
        document = self.state.document
        try:
            document = parse_and_render(self.source.data, render_width_for(width))
        except ParseError as e:
            logger.warning("Re-render failed: %s", e)
            self.state = replace(self.state, status=f"✗ Render failed: {e}")
        self.dispatch(Resized(document, content_height_for(height)))

    def _run(self, effect: Effect) -> None:
        if isinstance(effect, Quit):
            self.quit_requested = True
        elif isinstance(effect, Persist):
            self._persist(effect)
        elif isinstance(effect, CopyToClipboard):
            self._copy(effect.text)
        # FocusTextInput is for the front end; nothing to do here.

    def _persist(self, effect: Persist) -> None:
        try:
            self.store.save(effect.annotations)
        except StoreError as e:
            logger.error("Failed to save comments: %s", e)
            self.state = replace(self.state, status=f"✗ Failed to save: {e}")

    def _copy(self, text: str) -> None:
        try:
            self.copy(text)
        except ClipboardError as e:
            logger.warning("Clipboard copy failed: %s", e)
            self.state = replace(self.state, status=f"✗ Failed to copy: {e}")
            return
        self.state = replace(self.state, status="✓ Copied to clipboard")
