"""CLI entrypoints for notegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, NoteGenConfig, load_config
from .errors import NoteGenError
from .loader import collect_directory, local_files
from .logging import configure_logging, get_logger, uvicorn_log_level
from .prompting.constants import TONES
from .session import SessionController, build_session


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {value!r}") from None
    if seconds <= 0:
        raise argparse.ArgumentTypeError("timeout must be greater than zero")
    return seconds


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=Path.cwd(),
        help="Path to .notegen.yml or the directory holding it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notegen",
        description="Draft note articles from Markdown reference notes with a hosted LLM.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the browser UI.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", help="Interface to bind (defaults to 127.0.0.1).")
    serve_parser.add_argument("--port", type=int, help="Port to bind (defaults to 8000).")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate one article from files on disk.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_config_option(generate_parser)
    generate_parser.add_argument(
        "--vault",
        type=Path,
        help="Folder of Markdown notes to use as references (hidden folders are skipped).",
    )
    generate_parser.add_argument(
        "--reference",
        type=Path,
        action="append",
        default=[],
        help="Individual Markdown reference file; repeat to add several.",
    )
    generate_parser.add_argument(
        "--content",
        type=Path,
        help="Primary content file (.txt or .md).",
    )
    generate_parser.add_argument("--title", help="Optional title suggestion.")
    generate_parser.add_argument(
        "--tone",
        choices=TONES,
        help="Writing style preset (defaults to the configured tone, else casual).",
    )
    generate_parser.add_argument(
        "--output",
        type=Path,
        help="Write the article to this file instead of standard output.",
    )
    generate_parser.add_argument(
        "--copy",
        action="store_true",
        help="Also copy the article to the clipboard.",
    )
    generate_parser.add_argument(
        "--timeout",
        type=_positive_seconds,
        help="Request timeout in seconds for the completion endpoint.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for notegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        _serve(parser, args, config)
    elif args.command == "generate":
        _generate(parser, args, config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _serve(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: NoteGenConfig
) -> None:  # pragma: no cover - integration path
    from .service import run_service

    try:
        session = build_session(config)
    except NoteGenError as exc:
        parser.exit(1, f"{exc}\n")
    host = args.host or config.server.host
    port = args.port or config.server.port
    run_service(
        host,
        port,
        session_factory=lambda: session,
        log_level=uvicorn_log_level(bool(args.verbose)),
    )


def _generate(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: NoteGenConfig
) -> None:
    logger = get_logger("cli")
    try:
        session = build_session(config, request_timeout=args.timeout)
    except NoteGenError as exc:
        parser.exit(1, f"notegen generate failed: {exc}\n")
    session.update_settings(title_hint=args.title, tone=args.tone)

    if args.vault is not None:
        try:
            handles = collect_directory(args.vault)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        session.load_vault(handles)
        _exit_on_error(parser, session)
    if args.reference:
        session.add_references(local_files(args.reference))
        _exit_on_error(parser, session)
    if args.content is not None:
        session.load_primary(local_files([args.content])[0])
        _exit_on_error(parser, session)

    result = session.generate()
    _exit_on_error(parser, session)
    if result is None:  # pragma: no cover - busy is never set in a fresh CLI session
        parser.exit(1, "notegen generate produced no article\n")

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(result.text, encoding="utf-8")
        logger.info("Article written to %s", args.output)
        print(f"Article written to {_relativize(args.output)}")
    else:
        print(result.text)

    if args.copy:
        session.copy_result()
        _exit_on_error(parser, session)


def _exit_on_error(parser: argparse.ArgumentParser, session: SessionController) -> None:
    notice = session.notice
    if notice is not None and notice.is_error:
        parser.exit(1, f"notegen generate failed: {notice.message}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
