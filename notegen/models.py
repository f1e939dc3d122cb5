"""Core data models shared across notegen components."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple


def new_document_id() -> str:
    """Return a token that is unique for every successful file read."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ReferenceDocument:
    """Markdown note supplied only to convey the desired style and structure."""

    name: str
    content: str
    id: str = field(default_factory=new_document_id)


@dataclass(frozen=True)
class PrimaryDocument:
    """The single file supplying the substance of the article."""

    file_name: str
    content: str


@dataclass(frozen=True)
class GenerationRequest:
    """Snapshot of everything needed to assemble one prompt."""

    references: Tuple[ReferenceDocument, ...]
    primary: Optional[PrimaryDocument]
    title_hint: str
    tone: str

    @property
    def is_empty(self) -> bool:
        return not self.references and (self.primary is None or not self.primary.content)


@dataclass(frozen=True)
class GenerationResult:
    """Text produced by one successful generation."""

    text: str


@dataclass(frozen=True)
class Notice:
    """The single user-facing error or success message of a session."""

    kind: str
    message: str

    ERROR = "error"
    SUCCESS = "success"

    @property
    def is_error(self) -> bool:
        return self.kind == self.ERROR
