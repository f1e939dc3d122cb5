"""Session controller driving the upload, settings, result and export views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional, Sequence

from .clipboard import copy_to_clipboard
from .errors import (
    ClipboardError,
    EmptyInputError,
    FileReadError,
    GenerationCancelled,
    GenerationError,
    OverCapacityError,
    UnsupportedFormatError,
)
from .export import DEFAULT_EXPORT_NAME, ExportArtifact, build_artifact
from .llm.client import CancellationToken, GenerationClient
from .loader import FileHandle, load_export_file, load_primary, load_references, load_vault
from .logging import get_logger
from .models import GenerationRequest, GenerationResult, Notice
from .prompting.builder import PromptBuilder
from .prompting.constants import DEFAULT_TONE, PRIMARY_EXTENSIONS, TONES
from .store import DocumentStore

if TYPE_CHECKING:  # pragma: no cover
    from .config import NoteGenConfig

VIEWS: tuple[str, ...] = ("upload", "settings", "result", "export")


@dataclass
class PendingGeneration:
    """A generation that has been admitted but not yet sent."""

    request: GenerationRequest
    prompt: str
    cancel: CancellationToken


class SessionController:
    """Holds every mutable field of one session and implements the user actions.

    Each action clears the current notice before it runs and leaves exactly
    one notice behind. Failures never propagate out of the action methods;
    they become error notices. Only programming errors (unknown view or tone)
    raise.
    """

    PREVIEW_LIMIT = 500

    def __init__(
        self,
        client: GenerationClient,
        *,
        builder: PromptBuilder | None = None,
        store: DocumentStore | None = None,
        clipboard: Callable[[str], None] | None = None,
        tone: str = DEFAULT_TONE,
        title_hint: str = "",
        export_name: str = DEFAULT_EXPORT_NAME,
    ) -> None:
        self.client = client
        self.builder = builder or PromptBuilder()
        self.store = store or DocumentStore()
        self.clipboard = clipboard or copy_to_clipboard
        self.logger = get_logger("session")

        self.active_view = "upload"
        self.title_hint = title_hint
        self.tone = self._validate_tone(tone)
        self.busy = False
        self.loading_vault = False
        self.notice: Optional[Notice] = None
        self.result: Optional[GenerationResult] = None
        self.export_name = export_name
        self.export_content: Optional[str] = None
        self._cancel_token: Optional[CancellationToken] = None

    # ------------------------------------------------------------------
    # Navigation and settings

    def navigate(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown view {view!r}; expected one of {', '.join(VIEWS)}")
        self.active_view = view

    def update_settings(self, *, title_hint: str | None = None, tone: str | None = None) -> None:
        if tone is not None:
            self.tone = self._validate_tone(tone)
        if title_hint is not None:
            self.title_hint = title_hint

    # ------------------------------------------------------------------
    # Reference and primary documents

    def load_vault(self, handles: Sequence[FileHandle]) -> None:
        """Replace the reference set with the Markdown notes of a folder selection."""
        if not handles:
            return
        self.loading_vault = True
        self._clear_notice()
        try:
            loaded = load_vault(handles, limit=self.store.limit)
        except FileReadError as exc:
            self._fail(f"Failed to load folder: {exc}")
            return
        finally:
            self.loading_vault = False

        self.store.replace(loaded.folder, loaded.documents)
        if not loaded.documents:
            self._fail("No Markdown files found")
        else:
            self._succeed(f"Loaded {len(loaded.documents)} Markdown files")

    def add_references(self, handles: Sequence[FileHandle]) -> None:
        """Append individually picked notes; an over-limit batch is rejected whole."""
        self._clear_notice()
        try:
            batch = load_references(handles, self.store.count, limit=self.store.limit)
        except OverCapacityError as exc:
            self._fail(str(exc))
            return

        self.store.extend(batch.documents)
        message = f"Added {len(batch.documents)} files"
        if batch.failures:
            message += f" ({len(batch.failures)} could not be read)"
        self._succeed(message)

    def load_primary(self, handle: FileHandle | None) -> None:
        if handle is None:
            return
        self._clear_notice()
        try:
            document = load_primary(handle)
        except UnsupportedFormatError:
            self._fail(f"Supported formats: {', '.join(PRIMARY_EXTENSIONS)}")
            return
        except FileReadError as exc:
            self._fail(f"Failed to read content file: {exc}")
            return
        self.store.set_primary(document)
        self._succeed("Loaded content file")

    def remove_reference(self, document_id: str) -> bool:
        return self.store.remove(document_id)

    def clear_references(self) -> None:
        self.store.clear_all()

    def clear_primary(self) -> None:
        self.store.clear_primary()

    # ------------------------------------------------------------------
    # Generation

    def start_generation(self) -> Optional[PendingGeneration]:
        """Admit a generation: returns None while busy or when there is no input."""
        if self.busy:
            self.logger.debug("Generation already in progress; ignoring request")
            return None

        request = GenerationRequest(
            references=self.store.references,
            primary=self.store.primary,
            title_hint=self.title_hint,
            tone=self.tone,
        )
        try:
            prompt = self.builder.build(request)
        except EmptyInputError as exc:
            self._fail(str(exc))
            return None

        self.busy = True
        self._clear_notice()
        self.active_view = "result"
        self._cancel_token = CancellationToken()
        self.logger.info(
            "Generating article from %d reference files (tone=%s)",
            len(request.references),
            request.tone,
        )
        return PendingGeneration(request=request, prompt=prompt, cancel=self._cancel_token)

    def complete_generation(self, pending: PendingGeneration) -> Optional[GenerationResult]:
        """Send an admitted generation and record its outcome."""
        try:
            result = self.client.generate(pending.prompt, cancel=pending.cancel)
        except GenerationCancelled:
            self._fail("Article generation was cancelled")
            return None
        except GenerationError as exc:
            self._fail(f"Article generation failed: {exc}")
            return None
        finally:
            self.busy = False
            self._cancel_token = None

        self.result = result
        self._succeed("Article generated")
        return result

    def generate(self) -> Optional[GenerationResult]:
        pending = self.start_generation()
        if pending is None:
            return None
        return self.complete_generation(pending)

    def cancel_generation(self) -> bool:
        if self._cancel_token is None:
            return False
        self._cancel_token.cancel()
        return True

    # ------------------------------------------------------------------
    # Result and export

    def copy_result(self) -> None:
        self._clear_notice()
        if self.result is None:
            self._fail("No article has been generated yet")
            return
        try:
            self.clipboard(self.result.text)
        except ClipboardError as exc:
            self.logger.debug("Clipboard write failed: %s", exc)
            self._fail("Copy failed")
            return
        self._succeed("Copied to clipboard")

    def load_export_file(self, handle: FileHandle | None) -> None:
        if handle is None:
            return
        self._clear_notice()
        try:
            name, content = load_export_file(handle)
        except (UnsupportedFormatError, FileReadError) as exc:
            self._fail(str(exc))
            return
        self.export_name = name
        self.export_content = content
        self._succeed(f"Loaded {name}")

    def set_export_name(self, name: str) -> None:
        self.export_name = name

    def export_artifact(self) -> Optional[ExportArtifact]:
        """Build the download for the loaded export file, else for the generated article."""
        self._clear_notice()
        content = self.export_content
        if content is None and self.result is not None:
            content = self.result.text
        if content is None:
            self._fail("Select a file to download")
            return None
        artifact = build_artifact(content, self.export_name)
        self._succeed(f"Downloaded {artifact.file_name}")
        return artifact

    # ------------------------------------------------------------------
    # Read-only views of the state

    @property
    def reference_count(self) -> int:
        return self.store.count

    @property
    def upload_badge(self) -> int:
        return self.store.count + (1 if self.store.primary is not None else 0)

    @property
    def can_generate(self) -> bool:
        return self.store.has_content and not self.busy

    @property
    def primary_preview(self) -> str:
        primary = self.store.primary
        if primary is None:
            return ""
        preview = primary.content[: self.PREVIEW_LIMIT]
        if len(primary.content) > self.PREVIEW_LIMIT:
            preview += "..."
        return preview

    def snapshot(self) -> Dict[str, object]:
        primary = self.store.primary
        return {
            "view": self.active_view,
            "busy": self.busy,
            "notice": (
                {"kind": self.notice.kind, "message": self.notice.message} if self.notice else None
            ),
            "folder": self.store.folder_label,
            "references": [
                {"id": document.id, "name": document.name} for document in self.store.references
            ],
            "primary": (
                {"file_name": primary.file_name, "length": len(primary.content)}
                if primary
                else None
            ),
            "title_hint": self.title_hint,
            "tone": self.tone,
            "result": self.result.text if self.result else None,
            "export_name": self.export_name,
            "has_export_file": self.export_content is not None,
        }

    # ------------------------------------------------------------------
    # Internal helpers

    def _clear_notice(self) -> None:
        self.notice = None

    def _fail(self, message: str) -> None:
        self.logger.warning(message)
        self.notice = Notice(kind=Notice.ERROR, message=message)

    def _succeed(self, message: str) -> None:
        self.logger.info(message)
        self.notice = Notice(kind=Notice.SUCCESS, message=message)

    @staticmethod
    def _validate_tone(tone: str) -> str:
        if tone not in TONES:
            raise ValueError(f"Unknown tone {tone!r}; expected one of {', '.join(TONES)}")
        return tone


__all__ = ["PendingGeneration", "SessionController", "VIEWS"]


def build_session(
    config: "NoteGenConfig",
    *,
    request_timeout: float | None = None,
    client: GenerationClient | None = None,
) -> SessionController:
    """Create a session whose client and defaults come from ``config``."""
    llm = config.llm
    if client is None:
        client_kwargs: Dict[str, object] = {}
        if llm.base_url:
            client_kwargs["base_url"] = llm.base_url
        if llm.api_key:
            client_kwargs["api_key"] = llm.api_key
        timeout = request_timeout
        if timeout is None:
            timeout = llm.request_timeout
        if timeout is None:
            timeout = GenerationClient.DEFAULT_TIMEOUT
        client = GenerationClient(
            llm.model,
            max_tokens=llm.max_tokens,
            request_timeout=timeout,
            api_version=llm.api_version,
            **client_kwargs,  # type: ignore[arg-type]
        )
    return SessionController(
        client,
        tone=config.article.tone or DEFAULT_TONE,
        title_hint=config.article.title or "",
        export_name=config.export_name or DEFAULT_EXPORT_NAME,
    )
