"""Error kinds surfaced to the user as a single notice."""

from __future__ import annotations


class NoteGenError(RuntimeError):
    """Base class for recoverable notegen failures."""


class EmptyInputError(NoteGenError):
    """Raised when there is no reference or primary content to submit."""


class OverCapacityError(NoteGenError):
    """Raised when the reference set would exceed its file limit."""

    def __init__(self, limit: int, requested: int) -> None:
        super().__init__(f"A maximum of {limit} reference files is allowed")
        self.limit = limit
        self.requested = requested


class UnsupportedFormatError(NoteGenError):
    """Raised when a file extension is not accepted for the target slot."""

    def __init__(self, name: str, allowed: tuple[str, ...]) -> None:
        super().__init__(f"Unsupported file format: {name} (expected {', '.join(allowed)})")
        self.name = name
        self.allowed = allowed


class FileReadError(NoteGenError):
    """Raised when a selected file cannot be read as text."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason


class GenerationError(NoteGenError):
    """Raised when the completion endpoint could not produce an article."""


class ServiceError(GenerationError):
    """The endpoint answered with an error payload; the message is kept verbatim."""


class TransportError(GenerationError):
    """The request could not be completed (network failure or timeout)."""


class MalformedResponseError(GenerationError):
    """The endpoint answered with a payload that carries no usable text."""


class GenerationCancelled(GenerationError):
    """The in-flight request was cancelled before its response was used."""


class ClipboardError(NoteGenError):
    """Raised when the clipboard backend rejects a write."""


__all__ = [
    "ClipboardError",
    "EmptyInputError",
    "FileReadError",
    "GenerationCancelled",
    "GenerationError",
    "MalformedResponseError",
    "NoteGenError",
    "OverCapacityError",
    "ServiceError",
    "TransportError",
    "UnsupportedFormatError",
]
