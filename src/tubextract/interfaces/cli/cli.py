from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

import structlog

from tubextract.application.use_cases import BrowseUseCase, PageExtractor
from tubextract.domain.entities import Unknown
from tubextract.domain.exceptions import ExtractionError, TubextractError
from tubextract.infrastructure.cipher import analyze_player, describe
from tubextract.infrastructure.config import AppConfig, load_config
from tubextract.infrastructure.extraction import load_field_table
from tubextract.infrastructure.logging.setup import configure_logging
from tubextract.infrastructure.transport.httpx_transport import HttpxTransport

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tubextract")

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--field-table",
        default=None,
        help="Override the field-path table.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    video = commands.add_parser("video", help="Extract a video from a watch page.")
    video.add_argument("source", help="Saved watch page or watch URL.")

    playlist = commands.add_parser(
        "playlist", help="Extract a playlist and its items."
    )
    playlist.add_argument("source", help="Saved playlist page or playlist URL.")
    playlist.add_argument(
        "--limit",
        default=None,
        type=int,
        help="Stop after this many items.",
    )

    player = commands.add_parser(
        "player", help="Show the cipher operations of a player script."
    )
    player.add_argument("source", help="Saved player script.")
    player.add_argument(
        "--version",
        required=True,
        dest="player_version",
        help="Player version the script belongs to.",
    )

    return parser.parse_args(argv)


def to_jsonable(value: Any) -> Any:
    """Entities as JSON-ready data; ``UNKNOWN`` becomes ``null``."""
    if isinstance(value, Unknown):
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.repr
        }
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _query_value(url: str, name: str) -> str:
    values = parse_qs(urlparse(url).query).get(name)
    if not values:
        raise SystemExit(f"URL has no '{name}' parameter: {url}")
    return values[0]


def _transport(config: AppConfig) -> HttpxTransport:
    return HttpxTransport.create(
        base_url=config.base_url,
        timeout_seconds=config.http_timeout_seconds,
        user_agent=config.http_user_agent,
        accept_language=config.http_accept_language,
    )


async def _video(
    args: argparse.Namespace, config: AppConfig, extractor: PageExtractor
) -> Any:
    if not _is_url(args.source):
        return to_jsonable(extractor.video(Path(args.source).read_bytes()))
    async with _transport(config) as transport:
        watch = await BrowseUseCase(transport, extractor).watch(
            _query_value(args.source, "v")
        )
    return to_jsonable(watch)


async def _playlist(
    args: argparse.Namespace, config: AppConfig, extractor: PageExtractor
) -> Any:
    if not _is_url(args.source):
        document = Path(args.source).read_text(encoding="utf-8", errors="replace")
        page = extractor.playlist_page(document)
        try:
            playlist = to_jsonable(extractor.playlist(document))
        except ExtractionError:
            playlist = None
        items = page.items[: args.limit] if args.limit is not None else page.items
        return {
            "playlist": playlist,
            "items": to_jsonable(items),
            "next_token": page.next_token,
        }

    async with _transport(config) as transport:
        browse = BrowseUseCase(transport, extractor)
        playlist = await browse.playlist(_query_value(args.source, "list"))
        walker = playlist.videos()
        items = await walker.collect(args.limit)
    return {
        "playlist": to_jsonable(playlist),
        "items": to_jsonable(items),
        "pages": walker.pages_fetched,
    }


def _player(args: argparse.Namespace) -> Any:
    source = Path(args.source).read_text(encoding="utf-8", errors="replace")
    program = analyze_player(source, args.player_version)
    return {
        "player_version": program.player_version,
        "signature": describe(program.signature),
        "n_transform": describe(program.n_transform) if program.n_transform else None,
    }


async def run(args: argparse.Namespace, config: AppConfig) -> Any:
    if args.command == "player":
        return _player(args)

    extractor = PageExtractor(load_field_table(config.field_table_path))
    if args.command == "video":
        return await _video(args, config, extractor)
    return await _playlist(args, config, extractor)


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, configures logging, then runs one command
    and prints its result as JSON on stdout.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.field_table:
        cli_overrides["field_table_path"] = args.field_table
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )

    configure_logging(config)

    try:
        result = asyncio.run(run(args, config))
    except TubextractError as e:
        log.error("command_failed", command=args.command, error_type=type(e).__name__)
        print(f"error: {e}", file=sys.stderr)
        return 1

    json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def main() -> None:
    raise SystemExit(start())


if __name__ == "__main__":
    main()
