"""Render a document tree into styled terminal lines with source mappings.

Every emitted line records the inclusive range of source lines it was
produced from, so a selection over rendered lines can always be turned
back into source line numbers.
"""

from __future__ import annotations

import logging
from typing import Callable

from mdmu import nodes
from mdmu.errors import ParseError
from mdmu.models import RenderedDocument
from mdmu.parser import parse
from mdmu.source import SourceDocument
from mdmu.styles import heading_role, paint
from mdmu.wrap import visible_width, wrap

logger = logging.getLogger(__name__)

BULLET = "  • "
QUOTE_BAR = "│ "
QUOTE_INDENT = 4
RULE_CHAR = "─"
RULE_MAX_WIDTH = 40


def render(document: nodes.Document, source: SourceDocument, width: int) -> RenderedDocument:
    """Render ``document`` at ``width`` columns."""
    renderer = _Renderer(source, width)
    renderer.render_block(document, depth=0)
    return renderer.out


def parse_and_render(data: bytes, width: int) -> RenderedDocument:
    """Parse markdown bytes and render them in one step."""
    source = SourceDocument(data)
    document = parse(source)
    try:
        rendered = render(document, source, width)
    except (ValueError, IndexError, UnicodeError) as e:
        raise ParseError(f"rendering markdown: {e}") from e
    logger.debug("Rendered %d lines at width %d", len(rendered), width)
    return rendered


class _Renderer:
    def __init__(self, source: SourceDocument, width: int):
        self.source = source
        self.width = width
        self.out = RenderedDocument()
        self._block_handlers: dict[type, Callable[[nodes.Block, int], None]] = {
            nodes.Document: self._render_children,
            nodes.Heading: self._render_heading,
            nodes.Paragraph: self._render_paragraph,
            nodes.CodeBlock: self._render_code,
            nodes.ListBlock: self._render_list,
            nodes.ListItem: self._render_children,
            nodes.BlockQuote: self._render_blockquote,
            nodes.ThematicBreak: self._render_thematic_break,
            nodes.HtmlBlock: self._render_html,
            nodes.UnknownBlock: self._render_unknown,
        }

    # --- Source ranges ---

    def source_range(self, node: nodes.Block) -> tuple[int, int]:
        """1-indexed (start, end) source lines for ``node``, never below (1, 1)."""
        if node.segments:
            first, last = node.segments[0], node.segments[-1]
            start = self.source.offset_to_line(first.start)
            end = self.source.offset_to_line(max(last.stop - 1, last.start))
            return start, max(start, end)

        start, end = self._range_from_children(node)
        if start == 0:
            return 1, 1
        return start, end

    def _range_from_children(self, node: nodes.Block) -> tuple[int, int]:
        start = 0
        end = 0
        for child in node.children:
            cs, ce = self._child_range(child)
            if cs > 0:
                if start == 0 or cs < start:
                    start = cs
                end = max(end, ce)
        return start, end

    def _child_range(self, node: nodes.Block) -> tuple[int, int]:
        if node.segments:
            return self.source_range(node)
        return self._range_from_children(node)

    def _line_of(self, segment: nodes.Segment) -> int:
        return self.source.offset_to_line(segment.start)

    # --- Blocks ---

    def render_block(self, node: nodes.Block, depth: int) -> None:
        handler = self._block_handlers.get(type(node), self._render_unknown)
        handler(node, depth)

    def _render_children(self, node: nodes.Block, depth: int) -> None:
        for child in node.children:
            self.render_block(child, depth)

    def _render_unknown(self, node: nodes.Block, depth: int) -> None:
        if node.children:
            self._render_children(node, depth)

    def _render_heading(self, node: nodes.Heading, depth: int) -> None:
        start, end = self.source_range(node)
        prefix = "#" * node.level + " "
        # Hard breaks split a heading over several lines; only the first gets the marker.
        parts = render_inlines(node.inlines).split("\n")
        for i, part in enumerate(parts):
            text = prefix + part if i == 0 else " " * len(prefix) + part
            self.out.add_line(paint(heading_role(node.level), text), start, end)
        self.out.add_line("", start, end)

    def _render_paragraph(self, node: nodes.Paragraph, depth: int) -> None:
        start, end = self.source_range(node)
        text = render_inlines(node.inlines)
        for line in wrap(text, self.width - depth * 2):
            self.out.add_line(line, start, end)
        self.out.add_line("", start, end)

    def _render_code(self, node: nodes.CodeBlock, depth: int) -> None:
        start, end = self.source_range(node)
        if node.language:
            self.out.add_line(paint("code.header", f" {node.language} "), start, start)

        for code_line in node.code_lines:
            line_no = self._line_of(code_line.segment)
            self.out.add_line(paint("code", f" {code_line.text} "), line_no, line_no)

        self.out.add_line("", end, end)

    def _render_list(self, node: nodes.ListBlock, depth: int) -> None:
        number = node.start
        indent = "  " * depth

        for item in node.children:
            if not isinstance(item, nodes.ListItem):
                continue

            if node.ordered:
                prefix = f"{number}. "
                number += 1
            else:
                prefix = BULLET
            hanging = " " * visible_width(prefix)

            if not item.children:
                start, end = self.source_range(item)
                self.out.add_line(indent + prefix.rstrip(), start, end)
                continue

            first_line = True
            for block in item.children:
                if isinstance(block, nodes.ListBlock):
                    self._render_list(block, depth + 1)
                    continue

                start, end = self.source_range(block)
                inner_width = self.width - len(indent) - visible_width(prefix)
                for line, (ls, le) in self._item_block_lines(block, inner_width, start, end):
                    marker = prefix if first_line else hanging
                    self.out.add_line(indent + marker + line, ls, le)
                    first_line = False

        start, end = self.source_range(node)
        self.out.add_line("", start, end)

    def _item_block_lines(self, block: nodes.Block, width: int,
                          start: int, end: int) -> list[tuple[str, tuple[int, int]]]:
        """Lines for one block inside a list item, without the item marker."""
        if isinstance(block, (nodes.Paragraph, nodes.Heading)):
            text = render_inlines(block.inlines)
            return [(line, (start, end)) for line in wrap(text, width)]

        sub = _Renderer(self.source, width)
        sub.render_block(block, depth=0)
        lines = list(zip(sub.out.lines, sub.out.mappings))
        # Trailing separator lines belong to the list, not the item.
        while lines and lines[-1][0] == "":
            lines.pop()
        return [(line, (m.source.start, m.source.end)) for line, m in lines]

    def _render_blockquote(self, node: nodes.BlockQuote, depth: int) -> None:
        sub = _Renderer(self.source, self.width - QUOTE_INDENT)
        sub._render_children(node, depth)
        self.out.extend(sub.out, prefix=paint("quote.bar", QUOTE_BAR))

    def _render_thematic_break(self, node: nodes.ThematicBreak, depth: int) -> None:
        start, end = self.source_range(node)
        self.out.add_line(paint("rule", RULE_CHAR * min(self.width, RULE_MAX_WIDTH)), start, end)
        self.out.add_line("", start, end)

    def _render_html(self, node: nodes.HtmlBlock, depth: int) -> None:
        _, end = self.source_range(node)
        for line, segment in zip(node.lines, node.segments):
            line = line.rstrip("\r")
            line_no = self._line_of(segment)
            self.out.add_line(paint("html", line), line_no, line_no)
        self.out.add_line("", end, end)


# ------------------------------------------------------------------
# Inlines
# ------------------------------------------------------------------

def render_inlines(inlines: list[nodes.Inline]) -> str:
    """Flatten inline nodes into one styled string.

    Soft breaks become spaces; hard breaks become newlines so the wrapper
    starts a new line there.
    """
    return "".join(_render_inline(node) for node in inlines)


def _render_inline(node: nodes.Inline) -> str:
    if isinstance(node, nodes.Text):
        return node.content
    if isinstance(node, nodes.SoftBreak):
        return " "
    if isinstance(node, nodes.HardBreak):
        return "\n"
    if isinstance(node, nodes.CodeSpan):
        return paint("code.inline", f"`{node.content}`")
    if isinstance(node, nodes.Strong):
        return paint("strong", render_inlines(node.children))
    if isinstance(node, nodes.Emphasis):
        return paint("emphasis", render_inlines(node.children))
    if isinstance(node, nodes.Strikethrough):
        return paint("strike", render_inlines(node.children))
    if isinstance(node, nodes.Link):
        return (paint("link", render_inlines(node.children))
                + paint("link.destination", f" ({node.destination})"))
    if isinstance(node, nodes.AutoLink):
        return paint("link", node.url)
    if isinstance(node, nodes.Image):
        return paint("image", f"[img: {render_inlines(node.children)}]")
    if isinstance(node, nodes.RawHtml):
        return node.content
    # Unknown inline kinds contribute their children's text only.
    return render_inlines(node.children)
