# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from quota_rotator import CredentialSelector, QuotaSnapshot, QuotaStore
from quota_rotator.failure_logger import setup_failure_logger

from .config import ConfigurationError, Settings, configure_logging, get_settings
from .search_client import GoogleSearchClient
from .search_tool import GoogleSearchTool
from .server import build_server


logger = logging.getLogger(__name__)

SETUP_HELP = [
    "First time setup:",
    "1. Get API keys: https://console.cloud.google.com/",
    "2. Get Search Engine ID: https://programmablesearchengine.google.com/",
    "3. Run: google-search-mcp setup --api-key KEY --search-engine-id ID",
]


def looks_like_google_api_key(api_key: str) -> bool:
    return len(api_key) >= 30 and api_key.lower().startswith("aiza")


def check_configuration(store: QuotaStore) -> bool:
    if not store.has_usable_configuration():
        logger.warning("No Google API keys configured.")
        for line in SETUP_HELP:
            logger.info(line)
        return False

    snapshot = store.quota_snapshot()
    logger.info(f"{len(snapshot.keys_status)} Google API keys loaded from {store.config_path}")
    return True


async def serve(settings: Settings) -> None:
    store = QuotaStore(settings.config_path)
    check_configuration(store)
    selector = CredentialSelector(store)

    async with GoogleSearchClient(timeout=settings.request_timeout) as client:
        server = build_server(GoogleSearchTool(selector, client))
        logger.info("Google Search MCP Server with API Key Rotation started")
        logger.info("Each API key gives you 100 free searches per day")
        logger.info("Server automatically rotates between available keys")
        logger.info("Quotas reset at midnight UTC")
        await server.run_stdio_async()


def run_setup(settings: Settings, api_keys: Sequence[str], search_engine_ids: Sequence[str]) -> int:
    keys = [key.strip() for key in api_keys if key and key.strip()]
    if not keys:
        logger.error("At least one --api-key is required")
        return 2
    engine_ids = [engine_id.strip() for engine_id in search_engine_ids if engine_id and engine_id.strip()]
    if not engine_ids:
        logger.error("At least one --search-engine-id is required")
        return 2

    for index, key in enumerate(keys, start=1):
        if not looks_like_google_api_key(key):
            logger.warning(f"API key #{index} does not look like a Google API key (AIza...)")

    store = QuotaStore(settings.config_path)
    store.bulk_replace(keys, engine_ids)
    Console().print(
        f"[green]{len(keys)} API keys saved to {store.config_path}[/green] "
        f"({len(keys) * 100} free searches per day)"
    )
    return 0


def render_quota_table(snapshot: QuotaSnapshot) -> Table:
    table = Table(title="Google Search API quota (resets at midnight UTC)")
    table.add_column("Key")
    table.add_column("Used", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Status")
    for status in snapshot.keys_status:
        table.add_row(
            status.id,
            str(status.used),
            str(status.limit),
            str(status.remaining),
            "[green]active[/green]" if status.active else "[red]disabled[/red]",
        )
    table.add_section()
    table.add_row(
        "total",
        str(snapshot.total_used),
        str(snapshot.total_limit),
        str(snapshot.total_limit - snapshot.total_used),
        "",
    )
    return table


def run_status(settings: Settings, console: Optional[Console] = None) -> int:
    console = console or Console()
    store = QuotaStore(settings.config_path)
    if not store.credentials:
        console.print(f"[yellow]No API keys configured in {store.config_path}[/yellow]")
        return 1
    console.print(render_quota_table(store.quota_snapshot()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="google-search-mcp",
        description="Google Search MCP server with API key rotation",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run the MCP server on stdio (default)")

    setup = subparsers.add_parser("setup", help="Replace the configured API keys")
    setup.add_argument(
        "--api-key",
        dest="api_keys",
        action="append",
        default=[],
        help="Google API key; repeat for several keys, tried in order",
    )
    setup.add_argument(
        "--search-engine-id",
        dest="search_engine_ids",
        action="append",
        default=[],
        help="Search engine id paired with the key at the same position; "
        "keys without one use the first",
    )

    subparsers.add_parser("status", help="Show today's quota usage")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    if args.command == "setup":
        return run_setup(settings, args.api_keys, args.search_engine_ids)
    if args.command == "status":
        return run_status(settings)

    if settings.failure_log_enabled:
        setup_failure_logger(settings.log_dir)
    asyncio.run(serve(settings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
