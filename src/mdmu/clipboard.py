"""Copy text to the system clipboard through a native command-line tool."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

from mdmu.errors import ClipboardError

logger = logging.getLogger(__name__)

COPY_TIMEOUT = 5  # seconds


def detect_tool() -> list[str] | None:
    """Command line of the first available clipboard tool, if any.

    macOS uses pbcopy, Windows clip; elsewhere wl-copy is preferred under
    Wayland, then xclip and xsel.
    """
    if sys.platform == "darwin":
        return ["pbcopy"] if shutil.which("pbcopy") else None
    if sys.platform == "win32":
        return ["clip"] if shutil.which("clip") else None

    candidates = [
        ("wl-copy", ["wl-copy"]),
        ("xclip", ["xclip", "-selection", "clipboard"]),
        ("xsel", ["xsel", "--clipboard", "--input"]),
    ]
    if os.environ.get("XDG_SESSION_TYPE", "").lower() != "wayland":
        candidates = candidates[1:] + candidates[:1]
    for tool, argv in candidates:
        if shutil.which(tool):
            return argv
    return None


def copy(text: str) -> None:
    """Copy ``text`` to the clipboard, raising ``ClipboardError`` on failure."""
    argv = detect_tool()
    if argv is None:
        raise ClipboardError("no clipboard tool found (install pbcopy, wl-copy, xclip or xsel)")

    logger.debug("Copying %d characters with %s", len(text), argv[0])
    try:
        proc = subprocess.run(
            argv,
            input=text.encode("utf-8"),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=COPY_TIMEOUT,
            check=False,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        raise ClipboardError(f"{argv[0]}: {e}") from e

    if proc.returncode != 0:
        detail = proc.stderr.decode("utf-8", errors="replace").strip()
        raise ClipboardError(f"{argv[0]} exited with status {proc.returncode}: {detail}")
