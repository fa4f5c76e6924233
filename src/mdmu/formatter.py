"""Format stored comments as a markdown citation document."""

from __future__ import annotations

from pathlib import Path

from mdmu.models import AnnotationFile, Comment

DIVIDER = "---"


def format_citations(annotation_file: AnnotationFile, source: bytes) -> str:
    """Render each comment with a quote of the source lines it refers to.

    Comments appear in source order. Ranges beyond the end of the current
    source are clamped, so an edited document still yields whatever lines
    remain.
    """
    if not annotation_file.comments:
        return ""

    source_lines = source.decode("utf-8", errors="replace").split("\n")
    entries = [_format_entry(c, source_lines) for c in annotation_file.sorted_comments()]

    header = f"## Comments on {Path(annotation_file.target_path).name}\n\n"
    return header + f"\n{DIVIDER}\n\n".join(entries) + "\n"


def _format_entry(comment: Comment, source_lines: list[str]) -> str:
    rng = comment.source_range
    if rng.is_single_line:
        heading = f"### Line {rng.start}:"
    else:
        heading = f"### Lines {rng.start}-{rng.end}:"

    start = max(rng.start - 1, 0)
    end = min(rng.end, len(source_lines))
    quoted = "".join(f"> {line}\n" for line in source_lines[start:end])

    return f"{heading}\n{quoted}\n**Comment:** {comment.body}\n"
