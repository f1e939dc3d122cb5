"""CLI parser and generate command tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from notegen import cli
from notegen.cli import _build_parser
from notegen.llm.client import GenerationClient
from notegen.session import build_session


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "serve"])
    assert args.verbose is True
    assert args.command == "serve"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["generate", "--verbose"])
    assert args.verbose is True
    assert args.command == "generate"


def test_cli_collects_repeated_references() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["generate", "--reference", "a.md", "--reference", "b.md", "--tone", "essay"]
    )
    assert args.reference == [Path("a.md"), Path("b.md")]
    assert args.tone == "essay"


def test_cli_rejects_unknown_tone() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["generate", "--tone", "angry"])


@pytest.fixture
def offline_client(monkeypatch, transport):
    """Route `notegen generate` through the recording transport."""

    def _build(config, *, request_timeout=None, client=None):
        client = GenerationClient(
            "test-model",
            base_url="http://endpoint.test/v1",
            api_key="test-key",
            request_timeout=request_timeout or 60.0,
            transport=transport,
        )
        return build_session(config, client=client)

    monkeypatch.setattr(cli, "build_session", _build)
    return transport


def test_generate_writes_article_to_output(tmp_path, vault_builder, offline_client) -> None:
    vault_builder.write({"one.md": "First note", ".obsidian/skip.md": "hidden"})
    content = tmp_path / "draft.txt"
    content.write_text("Main content", encoding="utf-8")
    output = tmp_path / "out" / "article.md"

    cli.main(
        [
            "generate",
            "--config",
            str(tmp_path),
            "--vault",
            str(vault_builder.path()),
            "--content",
            str(content),
            "--title",
            "Morning",
            "--tone",
            "storytelling",
            "--output",
            str(output),
        ]
    )

    assert output.read_text(encoding="utf-8") == "Generated article"
    (request,) = offline_client.requests
    prompt = request.payload()["messages"][0]["content"]
    assert "### vault/one.md\nFirst note" in prompt
    assert "hidden" not in prompt
    assert "## Title suggestion: Morning" in prompt


def test_generate_prints_article_and_copies(tmp_path, monkeypatch, offline_client, capsys) -> None:
    copied = []
    monkeypatch.setattr("notegen.session.copy_to_clipboard", copied.append)
    reference = tmp_path / "style.md"
    reference.write_text("Short sentences.", encoding="utf-8")

    cli.main(["generate", "--config", str(tmp_path), "--reference", str(reference), "--copy"])

    assert capsys.readouterr().out == "Generated article\n"
    assert copied == ["Generated article"]


def test_generate_without_input_exits_with_message(tmp_path, offline_client, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "Please upload files first" in capsys.readouterr().err
    assert offline_client.requests == []


def test_generate_rejects_unsupported_content(tmp_path, offline_client, capsys) -> None:
    slides = tmp_path / "slides.pdf"
    slides.write_bytes(b"%PDF")

    with pytest.raises(SystemExit):
        cli.main(["generate", "--config", str(tmp_path), "--content", str(slides)])

    assert "Supported formats: .txt, .md" in capsys.readouterr().err


def test_generate_missing_vault_exits(tmp_path, offline_client) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", "--config", str(tmp_path), "--vault", str(tmp_path / "missing")])

    assert excinfo.value.code == 1


def test_invalid_config_exits(tmp_path, capsys) -> None:
    (tmp_path / ".notegen.yml").write_text("article:\n  tone: angry\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "article.tone" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "-1", "soon"])
def test_cli_rejects_non_positive_timeout(value: str) -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["generate", "--timeout", value])


def test_cli_accepts_fractional_timeout() -> None:
    args = _build_parser().parse_args(["generate", "--timeout", "2.5"])
    assert args.timeout == 2.5


def test_generate_with_schemeless_base_url_exits(tmp_path, capsys) -> None:
    (tmp_path / ".notegen.yml").write_text("llm:\n  base_url: api.example.com/v1\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "base_url" in capsys.readouterr().err
