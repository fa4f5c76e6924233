"""Tests for mdmu CLI: command routing, comments output and error exits."""

import pytest
from click.testing import CliRunner

from mdmu.cli import cli
from mdmu.models import Comment, SourceRange
from mdmu.store import AnnotationStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store_dir(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def doc(tmp_path):
    path = tmp_path / "design.md"
    path.write_text("# Design\n\nUse a reducer.\n\nKeep it pure.\n")
    return path


def _add_comment(store_dir, doc, start, end, body):
    store = AnnotationStore(store_dir)
    af = store.load(doc)
    af = af.with_comment(Comment(id=body, source_range=SourceRange(start, end), selected_text="", body=body))
    store.save(af)


class TestHelp:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "comments" in result.output
        assert "open" in result.output

    def test_comments_help(self, runner):
        result = runner.invoke(cli, ["comments", "--help"])
        assert result.exit_code == 0
        assert "FILE" in result.output


class TestComments:
    def test_prints_citations(self, runner, store_dir, doc):
        _add_comment(store_dir, doc, 5, 5, "second")
        _add_comment(store_dir, doc, 3, 3, "first")
        result = runner.invoke(cli, ["--store-dir", str(store_dir), "comments", str(doc)])
        assert result.exit_code == 0
        assert result.output.startswith("## Comments on design.md\n")
        assert "### Line 3:\n> Use a reducer.\n\n**Comment:** first\n" in result.output
        assert result.output.index("first") < result.output.index("second")

    def test_no_comments(self, runner, store_dir, doc):
        result = runner.invoke(cli, ["--store-dir", str(store_dir), "comments", str(doc)])
        assert result.exit_code == 0
        assert "No comments found for this file." in result.output

    def test_store_dir_from_env(self, runner, store_dir, doc, monkeypatch):
        _add_comment(store_dir, doc, 1, 1, "title")
        monkeypatch.setenv("MDMU_STORE_DIR", str(store_dir))
        result = runner.invoke(cli, ["comments", str(doc)])
        assert "**Comment:** title" in result.output

    def test_missing_file(self, runner, store_dir, tmp_path):
        result = runner.invoke(cli, ["--store-dir", str(store_dir), "comments", str(tmp_path / "nope.md")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_corrupt_store(self, runner, store_dir, doc):
        record = AnnotationStore(store_dir).resolve_store_path(str(doc.absolute()))
        record.parent.mkdir(parents=True)
        record.write_text("{{{")
        result = runner.invoke(cli, ["--store-dir", str(store_dir), "comments", str(doc)])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestOpen:
    @pytest.fixture
    def launched(self, monkeypatch):
        sessions = []
        monkeypatch.setattr("mdmu.app.run", sessions.append)
        return sessions

    def test_bare_file_opens(self, runner, store_dir, doc, launched):
        result = runner.invoke(cli, ["--store-dir", str(store_dir), str(doc)])
        assert result.exit_code == 0, result.output
        [session] = launched
        assert session.filename == "design.md"

    def test_open_command(self, runner, store_dir, doc, launched):
        result = runner.invoke(cli, ["--store-dir", str(store_dir), "open", str(doc)])
        assert result.exit_code == 0, result.output
        assert len(launched) == 1

    def test_open_missing_file(self, runner, store_dir, tmp_path, launched):
        result = runner.invoke(cli, ["--store-dir", str(store_dir), str(tmp_path / "nope.md")])
        assert result.exit_code == 1
        assert launched == []
