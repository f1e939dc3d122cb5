"""Download artifacts and the manual GitHub upload walkthrough."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

DEFAULT_EXPORT_NAME = "article.md"
GITHUB_NEW_REPOSITORY_URL = "https://github.com/new"
GITHUB_URL = "https://github.com"

UPLOAD_STEPS: tuple[str, ...] = (
    "Choose the file to upload with \"Select a file\" above, or keep the generated article",
    "Press \"Download\" to save the file",
    "Open \"Create a new repository\" or an existing repository",
    "Use \"Add file\" then \"Upload files\" and drag the downloaded file in",
    "Click \"Commit changes\" to finish",
)

UPLOAD_NOTE = (
    "Browsers do not allow this app to upload to GitHub directly. "
    "Download the file and upload it by hand using the steps above."
)


@dataclass(frozen=True)
class ExportArtifact:
    """A downloadable file built from an in-memory string."""

    file_name: str
    content: str
    media_type: str = "text/plain; charset=utf-8"

    @property
    def data(self) -> bytes:
        return self.content.encode("utf-8")

    def content_disposition(self) -> str:
        ascii_name = self.file_name.encode("ascii", errors="replace").decode("ascii").replace('"', "")
        return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(self.file_name)}"


def sanitize_file_name(name: str | None, *, default: str = DEFAULT_EXPORT_NAME) -> str:
    """Keep only the final path component of a user-entered name."""
    if not name:
        return default
    cleaned = name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    if cleaned in {"", ".", ".."}:
        return default
    return cleaned


def build_artifact(content: str, file_name: str | None) -> ExportArtifact:
    return ExportArtifact(file_name=sanitize_file_name(file_name), content=content)


__all__ = [
    "DEFAULT_EXPORT_NAME",
    "ExportArtifact",
    "GITHUB_NEW_REPOSITORY_URL",
    "GITHUB_URL",
    "UPLOAD_NOTE",
    "UPLOAD_STEPS",
    "build_artifact",
    "sanitize_file_name",
]
