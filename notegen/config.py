"""Configuration loading for notegen (.notegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .prompting.constants import TONES

CONFIG_FILENAME = ".notegen.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Completion endpoint settings from .notegen.yml."""

    model: Optional[str] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    api_version: Optional[str] = None


@dataclass
class ArticleConfig:
    """Default article options shown on the settings view."""

    tone: Optional[str] = None
    title: Optional[str] = None


@dataclass
class ServerConfig:
    """Bind address for `notegen serve`."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class NoteGenConfig:
    """Represents the settings defined in .notegen.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    article: ArticleConfig = field(default_factory=ArticleConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    export_name: Optional[str] = None


def load_config(config_path: Path) -> NoteGenConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return NoteGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        model=_as_str(llm_data.get("model")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
        api_version=_as_str(llm_data.get("api_version")),
    )
    if llm.request_timeout is not None and llm.request_timeout <= 0:
        raise ConfigError(f"llm.request_timeout must be greater than zero (got {llm.request_timeout})")

    article_data = _as_dict(data.get("article"))
    tone = _as_str(article_data.get("tone"))
    if tone is not None and tone not in TONES:
        raise ConfigError(f"article.tone must be one of {', '.join(TONES)} (got {tone!r})")
    article = ArticleConfig(tone=tone, title=_as_str(article_data.get("title")))

    server_data = _as_dict(data.get("server"))
    server = ServerConfig()
    host = _as_str(server_data.get("host"))
    if host:
        server.host = host
    port = _as_int(server_data.get("port"))
    if port is not None:
        server.port = port

    export_data = _as_dict(data.get("export"))

    return NoteGenConfig(
        root=root,
        llm=llm,
        article=article,
        server=server,
        export_name=_as_str(export_data.get("file_name")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


__all__ = [
    "ArticleConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "LLMConfig",
    "NoteGenConfig",
    "ServerConfig",
    "load_config",
]
