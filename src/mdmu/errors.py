"""Exception hierarchy for mdmu."""

from __future__ import annotations


class MdmuError(Exception):
    """Base class for errors reported to the user."""


class SourceReadError(MdmuError):
    """The document being annotated could not be read."""


class ParseError(MdmuError):
    """The markdown source could not be parsed or rendered."""


class StoreError(MdmuError):
    """The comment store could not be read or written."""


class StoreCorruptedError(StoreError):
    """A stored comment record exists but is malformed.

    Never recovered from silently: discarding the record would lose comments.
    """


class ClipboardError(MdmuError):
    """Copying to the system clipboard failed."""
