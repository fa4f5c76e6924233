"""Document tree consumed by the renderer.

A closed set of block and inline variants. Block nodes carry the byte
segments of the source lines they were parsed from; ``UnknownBlock`` and
``UnknownInline`` stand in for anything the renderer has no dedicated
handling for.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Segment:
    """Half-open byte range ``[start, stop)`` into the source."""
    start: int
    stop: int


# --- Inline nodes ---

@dataclass
class Inline:
    children: list[Inline] = field(default_factory=list)


@dataclass
class Text(Inline):
    content: str = ""


@dataclass
class SoftBreak(Inline):
    pass


@dataclass
class HardBreak(Inline):
    pass


@dataclass
class CodeSpan(Inline):
    content: str = ""


@dataclass
class Strong(Inline):
    pass


@dataclass
class Emphasis(Inline):
    pass


@dataclass
class Strikethrough(Inline):
    pass


@dataclass
class Link(Inline):
    destination: str = ""


@dataclass
class AutoLink(Inline):
    url: str = ""


@dataclass
class Image(Inline):
    source: str = ""


@dataclass
class RawHtml(Inline):
    content: str = ""


@dataclass
class UnknownInline(Inline):
    kind: str = ""


# --- Block nodes ---

@dataclass
class Block:
    segments: list[Segment] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)


@dataclass
class Document(Block):
    pass


@dataclass
class Heading(Block):
    level: int = 1
    inlines: list[Inline] = field(default_factory=list)


@dataclass
class Paragraph(Block):
    inlines: list[Inline] = field(default_factory=list)


@dataclass
class CodeLine:
    text: str
    segment: Segment


@dataclass
class CodeBlock(Block):
    """Fenced or indented code. ``segments`` span the whole block."""
    code_lines: list[CodeLine] = field(default_factory=list)
    language: str = ""
    fenced: bool = True


@dataclass
class ListItem(Block):
    pass


@dataclass
class ListBlock(Block):
    ordered: bool = False
    start: int = 1


@dataclass
class BlockQuote(Block):
    pass


@dataclass
class ThematicBreak(Block):
    pass


@dataclass
class HtmlBlock(Block):
    # Raw lines with container prefixes (quote markers, list indent) removed.
    lines: list[str] = field(default_factory=list)


@dataclass
class UnknownBlock(Block):
    kind: str = ""
