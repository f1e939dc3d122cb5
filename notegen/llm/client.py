"""Client for the hosted text-completion endpoint (Anthropic Messages API)."""

from __future__ import annotations

import json
import os
import threading
from http.client import HTTPException
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..errors import (
    GenerationCancelled,
    GenerationError,
    MalformedResponseError,
    ServiceError,
    TransportError,
)
from ..logging import get_logger
from ..models import GenerationResult
from ..prompting.builder import PromptBuilder

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()

logger = get_logger("llm")


@dataclass
class CompletionRequest:
    """Represents one request to the completion endpoint."""

    prompt: str
    model: str
    max_tokens: int
    base_url: str
    api_key: Optional[str]
    api_version: str
    request_timeout: Optional[float]

    def payload(self) -> Dict[str, object]:
        messages = [
            {"role": message.role, "content": message.content}
            for message in PromptBuilder.build_messages(self.prompt)
        ]
        return {"model": self.model, "max_tokens": self.max_tokens, "messages": messages}


class CancellationToken:
    """Flag shared between the caller and an in-flight generation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


Transport = Callable[[CompletionRequest], Dict[str, Any]]


class GenerationClient:
    """Sends an assembled prompt to the completion endpoint and extracts its text."""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
    DEFAULT_MAX_TOKENS = 4096
    DEFAULT_API_VERSION = "2023-06-01"
    DEFAULT_TIMEOUT = 60.0
    CANCEL_POLL_INTERVAL = 0.1
    ENV_MODEL_KEYS = ("NOTEGEN_MODEL", "ANTHROPIC_MODEL")
    ENV_BASE_URL_KEYS = ("NOTEGEN_BASE_URL", "ANTHROPIC_BASE_URL")
    ENV_API_KEY_KEYS = ("NOTEGEN_API_KEY", "ANTHROPIC_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        api_key: str | None | object = _AUTO_API_KEY,
        max_tokens: int | None = None,
        request_timeout: Optional[float] = DEFAULT_TIMEOUT,
        api_version: str | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.api_key = self._resolve_api_key(api_key)
        self.max_tokens = max_tokens or self.DEFAULT_MAX_TOKENS
        self.request_timeout = request_timeout
        self.api_version = api_version or self.DEFAULT_API_VERSION
        self._transport = transport or self._http_transport

    def build_request(self, prompt: str) -> CompletionRequest:
        return CompletionRequest(
            prompt=prompt,
            model=self.model,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            api_version=self.api_version,
            request_timeout=self.request_timeout,
        )

    def generate(
        self, prompt: str, *, cancel: CancellationToken | None = None
    ) -> GenerationResult:
        """Send ``prompt`` and return the concatenated text blocks of the response.

        Every failure raises a ``GenerationError`` subclass; nothing is retried.
        When ``cancel`` is given the request runs on a worker thread and a
        cancellation discards whatever response arrives afterwards.
        """
        request = self.build_request(prompt)
        if not request.api_key:
            logger.warning("No API key configured; the endpoint will likely reject the request")
        logger.info(
            "Requesting generation from %s (model=%s, max_tokens=%d, prompt=%d characters)",
            request.base_url,
            request.model,
            request.max_tokens,
            len(prompt),
        )
        payload = self._dispatch(request, cancel)
        text = self.extract_text(payload)
        logger.info("Generation returned %d characters", len(text))
        return GenerationResult(text=text)

    def _dispatch(
        self, request: CompletionRequest, cancel: CancellationToken | None
    ) -> Dict[str, Any]:
        if cancel is None:
            return self._send(request)
        if cancel.cancelled:
            raise GenerationCancelled("Generation was cancelled")

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notegen-generate")
        try:
            future = executor.submit(self._send, request)
            while True:
                done, _ = wait([future], timeout=self.CANCEL_POLL_INTERVAL, return_when=FIRST_COMPLETED)
                if cancel.cancelled:
                    logger.info("Generation cancelled; discarding the pending response")
                    raise GenerationCancelled("Generation was cancelled")
                if done:
                    return future.result()
        finally:
            executor.shutdown(wait=False)

    def _send(self, request: CompletionRequest) -> Dict[str, Any]:
        try:
            return self._transport(request)
        except GenerationError:
            raise
        except (HTTPException, OSError, ValueError) as exc:
            raise TransportError(f"Request failed: {exc!r}") from exc

    @staticmethod
    def extract_text(payload: object) -> str:
        """Join the ``text`` blocks of a response in order, dropping other block types."""
        if not isinstance(payload, dict):
            raise MalformedResponseError("Completion endpoint returned an unexpected payload")

        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            raise ServiceError(message if isinstance(message, str) and message else str(error))

        content = payload.get("content")
        if not isinstance(content, list):
            raise MalformedResponseError("Completion response has no content blocks")

        texts: List[str] = []
        for block in content:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            text = block.get("text")
            if isinstance(text, str):
                texts.append(text)
        return "\n".join(texts)

    @staticmethod
    def _http_transport(request: CompletionRequest) -> Dict[str, Any]:
        endpoint = f"{request.base_url}/messages"
        data = json.dumps(request.payload()).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "anthropic-version": request.api_version,
        }
        if request.api_key:
            headers["x-api-key"] = request.api_key

        timeout = request.request_timeout
        if timeout is None:
            timeout = GenerationClient.DEFAULT_TIMEOUT

        try:
            http_request = Request(endpoint, data=data, headers=headers, method="POST")
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read() if hasattr(exc, "read") else b""
            error_payload = GenerationClient._decode_error_payload(detail)
            if error_payload is not None:
                return error_payload
            message = detail.decode("utf-8", errors="ignore").strip() or exc.reason
            raise TransportError(f"HTTP {exc.code}: {message}") from exc
        except URLError as exc:
            raise TransportError(f"Request failed: {exc.reason}") from exc
        except (TimeoutError, OSError) as exc:
            raise TransportError(f"Request failed: {exc}") from exc
        except HTTPException as exc:
            raise TransportError(f"Connection dropped mid-response: {exc!r}") from exc
        except ValueError as exc:
            raise TransportError(f"Invalid endpoint {endpoint!r}: {exc}") from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedResponseError("Completion endpoint returned invalid JSON") from exc

    @staticmethod
    def _decode_error_payload(raw: bytes) -> Optional[Dict[str, Any]]:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            return payload
        return None

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str:
        if base_url is _AUTO_BASE_URL or base_url is None:
            base_url = self._first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        return self._ensure_http_url(str(base_url))

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _ensure_http_url(url: str) -> str:
        normalized = url.strip().rstrip("/")
        parsed = urlparse(normalized)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise TransportError(
                f"base_url '{url}' must be an absolute http:// or https:// URL"
            )
        return normalized

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


__all__ = ["CancellationToken", "CompletionRequest", "GenerationClient"]
