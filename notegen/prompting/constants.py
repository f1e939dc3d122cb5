"""Shared constants for article prompting and file admission."""

from __future__ import annotations

MAX_REFERENCE_FILES = 50

NOTE_EXTENSION = ".md"
PRIMARY_EXTENSIONS: tuple[str, ...] = (".txt", ".md")
EXPORT_EXTENSIONS: tuple[str, ...] = (
    ".jsx",
    ".js",
    ".ts",
    ".tsx",
    ".py",
    ".html",
    ".css",
    ".json",
    ".md",
    ".txt",
)

TONES: tuple[str, ...] = ("casual", "professional", "storytelling", "essay")
DEFAULT_TONE = "casual"

TONE_GUIDES: dict[str, str] = {
    "casual": "Casual and friendly, as if talking to a friend.",
    "professional": "Polite but not stiff; a professional voice.",
    "storytelling": "Storytelling: a narrative voice that pulls the reader into the story.",
    "essay": "Essay style, weaving in personal thoughts and feelings.",
}

TONE_LABELS: dict[str, str] = {
    "casual": "Casual",
    "professional": "Professional",
    "storytelling": "Story",
    "essay": "Essay",
}

NONE_PLACEHOLDER = "(none)"
REFERENCE_SEPARATOR = "\n\n---\n\n"


__all__ = [
    "DEFAULT_TONE",
    "EXPORT_EXTENSIONS",
    "MAX_REFERENCE_FILES",
    "NONE_PLACEHOLDER",
    "NOTE_EXTENSION",
    "PRIMARY_EXTENSIONS",
    "REFERENCE_SEPARATOR",
    "TONES",
    "TONE_GUIDES",
    "TONE_LABELS",
]
