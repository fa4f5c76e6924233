"""Parse markdown into a ``mdmu.nodes`` tree using markdown-it-py.

markdown-it reports block positions as 0-indexed, half-open line maps.
These are converted to byte segments through the source's line table so
the renderer can resolve every node back to source lines the same way,
whatever produced the tree.
"""

from __future__ import annotations

import logging

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from mdmu import nodes
from mdmu.errors import ParseError
from mdmu.source import SourceDocument

logger = logging.getLogger(__name__)

_md: MarkdownIt | None = None


def _markdown() -> MarkdownIt:
    global _md
    if _md is None:
        _md = MarkdownIt("commonmark").enable("strikethrough")
    return _md


def parse(source: SourceDocument) -> nodes.Document:
    """Parse ``source`` into a document tree."""
    text = source.data.decode("utf-8", errors="replace")
    try:
        tokens = _markdown().parse(text)
        root = SyntaxTreeNode(tokens)
    except Exception as e:
        raise ParseError(f"parsing markdown: {e}") from e

    doc = nodes.Document(children=_convert_blocks(root.children, source))
    logger.debug("Parsed %d top-level blocks from %d bytes", len(doc.children), len(source.data))
    return doc


# ------------------------------------------------------------------
# Blocks
# ------------------------------------------------------------------

def _line_segments(node: SyntaxTreeNode, source: SourceDocument) -> list[nodes.Segment]:
    """One segment per source line covered by the node's line map."""
    if not node.map:
        return []
    first, last = node.map
    return [
        nodes.Segment(source.line_start(line), source.line_end(line))
        for line in range(first + 1, last + 1)
    ]


def _convert_blocks(children: list[SyntaxTreeNode], source: SourceDocument) -> list[nodes.Block]:
    return [_convert_block(child, source) for child in children]


def _convert_block(node: SyntaxTreeNode, source: SourceDocument) -> nodes.Block:
    segments = _line_segments(node, source)
    kind = node.type

    if kind == "heading":
        return nodes.Heading(
            segments=segments,
            level=int(node.tag[1:]),
            inlines=_inline_content(node),
        )
    if kind == "paragraph":
        return nodes.Paragraph(segments=segments, inlines=_inline_content(node))
    if kind in ("fence", "code_block"):
        return _convert_code(node, source, segments)
    if kind in ("bullet_list", "ordered_list"):
        ordered = kind == "ordered_list"
        start = int(node.attrs.get("start", 1)) if ordered else 1
        return nodes.ListBlock(
            segments=segments,
            children=_convert_blocks(node.children, source),
            ordered=ordered,
            start=start,
        )
    if kind == "list_item":
        return nodes.ListItem(segments=segments, children=_convert_blocks(node.children, source))
    if kind == "blockquote":
        return nodes.BlockQuote(segments=segments, children=_convert_blocks(node.children, source))
    if kind == "hr":
        return nodes.ThematicBreak(segments=segments)
    if kind == "html_block":
        return nodes.HtmlBlock(segments=segments, lines=node.content.rstrip("\n").split("\n"))

    return nodes.UnknownBlock(
        segments=segments,
        children=_convert_blocks(node.children, source),
        kind=kind,
    )


def _convert_code(node: SyntaxTreeNode, source: SourceDocument,
                  segments: list[nodes.Segment]) -> nodes.CodeBlock:
    fenced = node.type == "fence"
    code_text = node.content
    texts = code_text.split("\n")
    if texts and texts[-1] == "":
        texts.pop()

    # Fenced code starts one line below the opening fence.
    first_line = node.map[0] + 1 if node.map else 1
    if fenced:
        first_line += 1

    code_lines = [
        nodes.CodeLine(
            text=line,
            segment=nodes.Segment(source.line_start(first_line + i), source.line_end(first_line + i)),
        )
        for i, line in enumerate(texts)
    ]
    language = node.info.strip().split()[0] if fenced and node.info.strip() else ""
    return nodes.CodeBlock(segments=segments, code_lines=code_lines, language=language, fenced=fenced)


# ------------------------------------------------------------------
# Inlines
# ------------------------------------------------------------------

def _inline_content(node: SyntaxTreeNode) -> list[nodes.Inline]:
    """Inline children of a heading or paragraph."""
    result: list[nodes.Inline] = []
    for child in node.children:
        if child.type == "inline":
            result.extend(_convert_inlines(child.children))
    return result


def _convert_inlines(children: list[SyntaxTreeNode]) -> list[nodes.Inline]:
    return [_convert_inline(child) for child in children]


def _convert_inline(node: SyntaxTreeNode) -> nodes.Inline:
    kind = node.type
    if kind == "text":
        return nodes.Text(content=node.content)
    if kind == "softbreak":
        return nodes.SoftBreak()
    if kind == "hardbreak":
        return nodes.HardBreak()
    if kind == "code_inline":
        return nodes.CodeSpan(content=node.content)
    if kind == "strong":
        return nodes.Strong(children=_convert_inlines(node.children))
    if kind == "em":
        return nodes.Emphasis(children=_convert_inlines(node.children))
    if kind == "s":
        return nodes.Strikethrough(children=_convert_inlines(node.children))
    if kind == "link":
        href = str(node.attrs.get("href", ""))
        if node.markup == "autolink":
            return nodes.AutoLink(url=href)
        return nodes.Link(children=_convert_inlines(node.children), destination=href)
    if kind == "image":
        alt = _convert_inlines(node.children) or [nodes.Text(content=node.content)]
        return nodes.Image(children=alt, source=str(node.attrs.get("src", "")))
    if kind == "html_inline":
        return nodes.RawHtml(content=node.content)
    return nodes.UnknownInline(children=_convert_inlines(node.children), kind=kind)
