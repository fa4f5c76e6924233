"""CLI entry point for mdmu."""

from __future__ import annotations

import logging
import shutil
import sys

import click
from rich.console import Console
from rich.markup import escape

from mdmu.config import load_settings
from mdmu.errors import MdmuError
from mdmu.formatter import format_citations
from mdmu.session import Session
from mdmu.source import SourceDocument
from mdmu.store import AnnotationStore

console = Console(stderr=True)

DEFAULT_COMMAND = "open"


class DefaultCommandGroup(click.Group):
    """Group that treats ``mdmu FILE`` as ``mdmu open FILE``."""

    def get_command(self, ctx: click.Context, cmd_name: str):
        if cmd_name not in self.commands:
            # Not a subcommand: it is the file argument of the default one.
            ctx.meta["mdmu.file_arg"] = cmd_name
            cmd_name = DEFAULT_COMMAND
        return super().get_command(ctx, cmd_name)

    def resolve_command(self, ctx: click.Context, args: list[str]):
        cmd_name, cmd, args = super().resolve_command(ctx, args)
        file_arg = ctx.meta.pop("mdmu.file_arg", None)
        if file_arg is not None:
            args.insert(0, file_arg)
            cmd_name = DEFAULT_COMMAND
        return cmd_name, cmd, args


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group(cls=DefaultCommandGroup)
@click.version_option(package_name="mdmu")
@click.option("--store-dir", type=click.Path(file_okay=False), default=None,
              help="Directory holding comment records (default: $MDMU_STORE_DIR or <tmp>/mdmu).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx, store_dir: str | None, verbose: bool):
    """mdmu - Read a markdown file in the terminal and comment on its lines."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = load_settings(store_dir)


def _store(ctx) -> AnnotationStore:
    return AnnotationStore(ctx.obj["settings"].store_dir)


@cli.command(name="open")
@click.argument("file", type=click.Path(dir_okay=False))
@click.pass_context
def open_cmd(ctx, file: str):
    """Open FILE in the interactive viewer.

    Select lines with Shift+arrows, press C to comment, Enter to preview
    and copy all comments.
    """
    size = shutil.get_terminal_size(fallback=(ctx.obj["settings"].width, 24))
    try:
        session = Session.open(file, _store(ctx), width=size.columns, height=size.lines)
    except MdmuError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1)

    from mdmu.app import run
    run(session)


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.pass_context
def comments(ctx, file: str):
    """Print the comments on FILE as markdown with quoted source lines.

    Output goes to stdout so it can be piped, e.g. into a code review or an
    LLM prompt.
    """
    try:
        source = SourceDocument.from_path(file)
        annotation_file = _store(ctx).load(file)
    except MdmuError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1)

    if not annotation_file.comments:
        click.echo("No comments found for this file.", err=True)
        return

    click.echo(format_citations(annotation_file, source.data), nl=False)
