"""Tests for mdmu.session: effect execution around the controller."""

import json

import pytest

from mdmu.controller import KeyPress, Mode, Quit
from mdmu.errors import ClipboardError, SourceReadError, StoreCorruptedError
from mdmu.session import STALE_WARNING, Session, content_height_for, render_width_for
from mdmu.store import AnnotationStore
from mdmu.wrap import visible_width

TEXT = "# Plan\n\nShip the first version of the viewer this week.\n\n- tests\n- docs\n"


@pytest.fixture
def doc(tmp_path):
    path = tmp_path / "plan.md"
    path.write_text(TEXT)
    return path


@pytest.fixture
def store(tmp_path):
    return AnnotationStore(tmp_path / "store")


class FakeClipboard:
    def __init__(self, fail=False):
        self.fail = fail
        self.copied = []

    def __call__(self, text):
        if self.fail:
            raise ClipboardError("xclip exited with status 1")
        self.copied.append(text)


def _keys(session, *keys):
    for key in keys:
        session.dispatch(KeyPress(key, key if len(key) == 1 else None))


def _comment(session, body="fix"):
    _keys(session, "c", *body, "enter")


class TestLayout:
    def test_render_width(self):
        assert render_width_for(100) == 61
        assert render_width_for(10) == 20

    def test_content_height(self):
        assert content_height_for(30) == 26
        assert content_height_for(2) == 1


class TestOpen:
    def test_open_fresh(self, doc, store):
        session = Session.open(doc, store, width=100, height=30)
        assert session.filename == "plan.md"
        assert session.state.height == 26
        assert session.state.status == ""
        assert session.state.annotations.comments == ()
        assert all(visible_width(line) <= render_width_for(100) for line in session.state.document.lines)

    def test_missing_file(self, tmp_path, store):
        with pytest.raises(SourceReadError):
            Session.open(tmp_path / "nope.md", store)

    def test_corrupt_store(self, doc, store):
        record = store.resolve_store_path(str(doc.absolute()))
        record.parent.mkdir(parents=True)
        record.write_text("[]")
        with pytest.raises(StoreCorruptedError):
            Session.open(doc, store)

    def test_stale_warning(self, doc, store):
        session = Session.open(doc, store, copy=FakeClipboard())
        _comment(session)
        doc.write_text(TEXT + "\nMore.\n")
        reopened = Session.open(doc, store)
        assert reopened.state.status == STALE_WARNING
        assert len(reopened.state.annotations.comments) == 1


class TestPersist:
    def test_comment_saved(self, doc, store):
        session = Session.open(doc, store)
        _keys(session, "down", "down")
        _comment(session, "tighten")
        record = store.resolve_store_path(str(doc.absolute()))
        data = json.loads(record.read_text())
        assert data["comments"][0]["comment"] == "tighten"
        assert data["comments"][0]["source_start"] == 3

    def test_delete_saved(self, doc, store):
        session = Session.open(doc, store)
        _comment(session)
        _keys(session, "tab", "d")
        assert store.load(doc).comments == ()

    def test_save_failure_becomes_status(self, doc, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        session = Session.open(doc, AnnotationStore(blocker))
        _comment(session)
        assert session.state.status.startswith("✗ Failed to save")
        assert len(session.state.annotations.comments) == 1


class TestClipboard:
    def test_copy_success(self, doc, store):
        clip = FakeClipboard()
        session = Session.open(doc, store, copy=clip)
        _comment(session, "ok")
        _keys(session, "enter", "c")
        assert clip.copied and clip.copied[0].startswith("## Comments on plan.md")
        assert session.state.status == "✓ Copied to clipboard"
        assert session.state.mode == Mode.NORMAL

    def test_copy_failure(self, doc, store):
        session = Session.open(doc, store, copy=FakeClipboard(fail=True))
        _comment(session)
        _keys(session, "enter", "c")
        assert session.state.status == "✗ Failed to copy: xclip exited with status 1"


class TestDispatch:
    def test_quit(self, doc, store):
        session = Session.open(doc, store)
        effects = session.dispatch(KeyPress("q", "q"))
        assert effects == (Quit(),)
        assert session.quit_requested

    def test_resize_rerenders(self, doc, store):
        session = Session.open(doc, store, width=200, height=40)
        _keys(session, "end")
        session.resize(40, 10)
        state = session.state
        assert state.height == 6
        assert state.cursor <= state.last_line
        assert all(visible_width(line) <= render_width_for(40) for line in state.document.lines)
