"""In-memory holder for reference notes and the primary content document."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .errors import OverCapacityError
from .models import PrimaryDocument, ReferenceDocument
from .prompting.constants import MAX_REFERENCE_FILES


class DocumentStore:
    """Keeps at most ``limit`` reference documents plus one primary document."""

    def __init__(self, limit: int = MAX_REFERENCE_FILES) -> None:
        self.limit = limit
        self._references: List[ReferenceDocument] = []
        self._primary: Optional[PrimaryDocument] = None
        self.folder_label = ""

    @property
    def references(self) -> Tuple[ReferenceDocument, ...]:
        return tuple(self._references)

    @property
    def primary(self) -> Optional[PrimaryDocument]:
        return self._primary

    @property
    def count(self) -> int:
        return len(self._references)

    @property
    def remaining(self) -> int:
        return self.limit - len(self._references)

    @property
    def has_content(self) -> bool:
        return bool(self._references) or bool(self._primary and self._primary.content)

    def replace(self, folder: str, documents: Iterable[ReferenceDocument]) -> None:
        """Swap the whole reference set for a folder load, truncating to the limit."""
        self._references = list(documents)[: self.limit]
        self.folder_label = folder

    def extend(self, documents: Iterable[ReferenceDocument]) -> None:
        """Append documents, rejecting the whole batch if it would exceed the limit."""
        batch = list(documents)
        if len(batch) > self.remaining:
            raise OverCapacityError(self.limit, len(self._references) + len(batch))
        self._references.extend(batch)

    def remove(self, document_id: str) -> bool:
        """Remove the document with ``document_id``; returns False when it is absent."""
        for index, document in enumerate(self._references):
            if document.id == document_id:
                del self._references[index]
                return True
        return False

    def clear_all(self) -> None:
        self._references.clear()
        self.folder_label = ""

    def set_primary(self, document: PrimaryDocument) -> None:
        self._primary = document

    def clear_primary(self) -> None:
        self._primary = None


__all__ = ["DocumentStore"]
