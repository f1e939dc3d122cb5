from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List

import pytest

from notegen.llm.client import CompletionRequest, GenerationClient
from notegen.session import SessionController
from tests._fixtures.vault_builder import VaultBuilder


class RecordingTransport:
    """Transport double that records requests and replays a canned payload."""

    def __init__(self, payload: Dict[str, object] | None = None) -> None:
        self.payload = payload or {"content": [{"type": "text", "text": "Generated article"}]}
        self.requests: List[CompletionRequest] = []

    def __call__(self, request: CompletionRequest) -> Dict[str, object]:
        self.requests.append(request)
        return self.payload


class RecordingClipboard:
    def __init__(self) -> None:
        self.writes: List[str] = []

    def __call__(self, text: str) -> None:
        self.writes.append(text)


@pytest.fixture
def vault_builder(tmp_path: Path) -> VaultBuilder:
    """Provide a reusable note folder rooted at the pytest tmp_path."""
    return VaultBuilder(tmp_path)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def clipboard() -> RecordingClipboard:
    return RecordingClipboard()


@pytest.fixture
def make_session(
    transport: RecordingTransport, clipboard: RecordingClipboard
) -> Callable[..., SessionController]:
    def _factory(**kwargs: object) -> SessionController:
        client = GenerationClient(
            "test-model", base_url="http://endpoint.test/v1", api_key="test-key", transport=transport
        )
        return SessionController(client, clipboard=clipboard, **kwargs)  # type: ignore[arg-type]

    return _factory
