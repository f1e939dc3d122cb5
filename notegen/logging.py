"""Logging helpers shared by the notegen CLI and the browser UI."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "notegen"
_CONSOLE_FORMAT = "[notegen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``notegen.<name>``, or the package root logger when no name is given."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the notegen logger.

    Calling this again replaces the handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(sink)

    return root


def uvicorn_log_level(verbose: bool) -> str:
    """Map the CLI verbosity flag onto uvicorn's ``log_level`` names."""
    return "debug" if verbose else "info"


__all__ = ["configure_logging", "get_logger", "uvicorn_log_level"]
