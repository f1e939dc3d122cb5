"""Reads user-selected text files into reference and primary documents."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Protocol, Sequence, Tuple

from .errors import FileReadError, OverCapacityError, UnsupportedFormatError
from .logging import get_logger
from .models import PrimaryDocument, ReferenceDocument
from .prompting.constants import (
    EXPORT_EXTENSIONS,
    MAX_REFERENCE_FILES,
    NOTE_EXTENSION,
    PRIMARY_EXTENSIONS,
)

logger = get_logger("loader")


class FileHandle(Protocol):
    """A selected file: a display name (relative path for folder picks) plus its text."""

    name: str

    def read_text(self) -> str:
        ...


@dataclass
class InMemoryFile:
    """File uploaded through the browser, held as raw bytes."""

    name: str
    data: bytes

    def read_text(self) -> str:
        return self.data.decode("utf-8")


@dataclass
class LocalFile:
    """File on the local disk, named the way a browser folder pick would name it."""

    path: Path
    name: str

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class VaultLoad:
    """Outcome of a folder load: the folder label and the documents read from it."""

    folder: str
    documents: List[ReferenceDocument]


@dataclass
class ReferenceBatch:
    """Outcome of an incremental upload."""

    documents: List[ReferenceDocument]
    requested: int
    failures: List[FileReadError] = field(default_factory=list)


def is_hidden_path(path: str) -> bool:
    """Return True when any segment after the first starts with a dot."""
    return "/." in path.replace("\\", "/")


def has_extension(name: str, extensions: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(ext) for ext in extensions)


def folder_label(name: str) -> str:
    return name.replace("\\", "/").split("/", 1)[0]


def display_name(name: str) -> str:
    return name.replace("\\", "/").rsplit("/", 1)[-1]


def select_vault_entries(
    handles: Sequence[FileHandle], *, limit: int = MAX_REFERENCE_FILES
) -> List[FileHandle]:
    """Filter a folder selection to visible Markdown notes, keeping the first ``limit``."""
    eligible = [
        handle
        for handle in handles
        if has_extension(handle.name, (NOTE_EXTENSION,)) and not is_hidden_path(handle.name)
    ]
    return eligible[:limit]


def collect_directory(root: Path) -> List[LocalFile]:
    """List every file under ``root`` as ``<root-name>/<relative path>``, sorted."""
    root = root.expanduser().resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Folder not found: {root}")

    files: List[LocalFile] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            relative = path.relative_to(root).as_posix()
            files.append(LocalFile(path=path, name=f"{root.name}/{relative}"))
    return files


def local_files(paths: Iterable[Path]) -> List[LocalFile]:
    """Wrap individually picked paths; names are bare file names."""
    return [LocalFile(path=Path(path), name=Path(path).name) for path in paths]


def load_vault(handles: Sequence[FileHandle], *, limit: int = MAX_REFERENCE_FILES) -> VaultLoad:
    """Read a folder selection; any read failure aborts the whole load."""
    folder = folder_label(handles[0].name) if handles else ""
    selected = select_vault_entries(handles, limit=limit)
    logger.debug(
        "Folder %s: %d of %d entries selected for reading", folder, len(selected), len(handles)
    )

    documents: List[ReferenceDocument] = []
    for handle in selected:
        documents.append(ReferenceDocument(name=handle.name, content=_read(handle)))

    logger.info("Loaded %d reference files from %s", len(documents), folder or "selection")
    return VaultLoad(folder=folder, documents=documents)


def load_references(
    handles: Sequence[FileHandle],
    current_count: int,
    *,
    limit: int = MAX_REFERENCE_FILES,
) -> ReferenceBatch:
    """Read an incremental batch; the batch is rejected whole if it would exceed ``limit``."""
    notes = [handle for handle in handles if has_extension(handle.name, (NOTE_EXTENSION,))]
    if current_count + len(notes) > limit:
        raise OverCapacityError(limit, current_count + len(notes))

    batch = ReferenceBatch(documents=[], requested=len(notes))
    for handle in notes:
        try:
            content = _read(handle)
        except FileReadError as exc:
            logger.warning("Skipping unreadable reference file %s", exc)
            batch.failures.append(exc)
            continue
        batch.documents.append(ReferenceDocument(name=display_name(handle.name), content=content))

    logger.info("Read %d of %d reference files", len(batch.documents), batch.requested)
    return batch


def load_primary(handle: FileHandle) -> PrimaryDocument:
    """Read the primary content file; only .txt and .md are accepted."""
    if not has_extension(handle.name, PRIMARY_EXTENSIONS):
        raise UnsupportedFormatError(display_name(handle.name), PRIMARY_EXTENSIONS)
    document = PrimaryDocument(file_name=display_name(handle.name), content=_read(handle))
    logger.info("Loaded content file %s (%d characters)", document.file_name, len(document.content))
    return document


def load_export_file(handle: FileHandle) -> Tuple[str, str]:
    """Read a file the user wants to download for a manual GitHub upload."""
    if not has_extension(handle.name, EXPORT_EXTENSIONS):
        raise UnsupportedFormatError(display_name(handle.name), EXPORT_EXTENSIONS)
    return display_name(handle.name), _read(handle)


def _read(handle: FileHandle) -> str:
    try:
        return handle.read_text()
    except UnicodeDecodeError as exc:
        raise FileReadError(handle.name, "not a UTF-8 text file") from exc
    except OSError as exc:
        raise FileReadError(handle.name, exc.strerror or str(exc)) from exc


__all__ = [
    "FileHandle",
    "InMemoryFile",
    "LocalFile",
    "ReferenceBatch",
    "VaultLoad",
    "collect_directory",
    "display_name",
    "folder_label",
    "has_extension",
    "is_hidden_path",
    "load_export_file",
    "load_primary",
    "load_references",
    "load_vault",
    "local_files",
    "select_vault_entries",
]
