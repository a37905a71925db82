from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from dataclasses import asdict
from pathlib import Path
from typing import Any

import structlog

from mirrorchase.domain.entities.links import DownloadOption, PendingOption
from mirrorchase.infrastructure.composition import build_link_components
from mirrorchase.infrastructure.config import AppConfig, load_config
from mirrorchase.infrastructure.fetch.httpx_fetcher import create_http_client
from mirrorchase.infrastructure.logging.setup import configure_logging
from mirrorchase.infrastructure.stremio.stream_formatter import format_streams

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mirrorchase")

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

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("config", help="Print the effective configuration.")

    options = sub.add_parser("options", help="List download options on a page.")
    options.add_argument("page_url")
    options.add_argument(
        "--episode",
        type=int,
        default=None,
        help="Only the options of this episode.",
    )

    resolve = sub.add_parser("resolve", help="Resolve one download link to a stream.")
    resolve.add_argument("target_url")
    resolve.add_argument(
        "--source-page",
        default=None,
        help="Page the link was found on (base for relative URLs).",
    )
    resolve.add_argument(
        "--quality",
        default="Download",
        help="Quality label, e.g. '1080p'.",
    )
    resolve.add_argument(
        "--title",
        default="",
        help="Display title used when no filename can be recovered.",
    )
    resolve.add_argument(
        "--stremio",
        action="store_true",
        help="Print the Stremio stream object instead of the raw stream.",
    )

    return parser.parse_args(argv)


async def _run(args: argparse.Namespace, config: AppConfig) -> Any:
    client = create_http_client(config)
    try:
        parts = build_link_components(config, client)

        if args.command == "options":
            options = await parts.page_reader.options_for(args.page_url, args.episode)
            return [asdict(o) for o in options]

        pending = PendingOption(
            DownloadOption(args.quality, None, args.target_url),
            args.source_page or args.target_url,
        )
        stream = await parts.option_resolver.resolve(pending, display_title=args.title)
        if stream is None:
            return None
        if args.stremio:
            [formatted] = format_streams([stream], provider=config.resolution.provider_name)
            return formatted.to_dict()
        return asdict(stream)
    finally:
        await client.aclose()


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, configures logging, runs one command and
    prints its JSON result.  Exit code 1 means nothing was found.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
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

    if args.command == "config":
        result = config.to_sectioned_dict()
    else:
        result = asyncio.run(_run(args, config))
    log.debug("cli_command_done", command=args.command, found=bool(result))

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0 if result else 1


if __name__ == "__main__":
    raise SystemExit(start())
