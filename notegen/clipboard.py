"""Clipboard access for copying generated articles."""

from __future__ import annotations

import pyperclip

from .errors import ClipboardError
from .logging import get_logger

logger = get_logger("clipboard")


def copy_to_clipboard(text: str) -> None:
    """Write ``text`` to the system clipboard of the machine running notegen."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ClipboardError(f"Clipboard unavailable: {exc}") from exc
    logger.debug("Copied %d characters to the clipboard", len(text))


__all__ = ["copy_to_clipboard"]
