"""Command line entry point: run one explorer query and print it as JSON.

Usage:
    ```bash
    rpcscan query blocks --param items_count=5
    rpcscan query tx --path hash=0x5c50...
    rpcscan query quick_search --param q=19000000 --retries 3
    ```
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace

from typing import Any

from rich.console import Console

from rpcscan.explorer.backend import BackendClient
from rpcscan.explorer.gateway import RPCGateway
from rpcscan.explorer.resources import RESOURCE_HANDLERS, ResourceDispatcher
from rpcscan.helpers.config import ExplorerSettings, load_settings
from rpcscan.helpers.errors import ExplorerError, UpstreamError
from rpcscan.helpers.http import retry_with_backoff
from rpcscan.helpers.logging import configure_logging, get_logger
from rpcscan.helpers.models import QueryResult


logger = get_logger(__name__, log_handler="stderr")


def parse_pairs(pairs: list[str] | None) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` arguments.

    Raises:
        ValueError: If an item has no ``=``
    """
    parsed: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"expected KEY=VALUE, got {pair!r}"
            raise ValueError(msg)
        parsed[key] = value
    return parsed


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="rpcscan", description="Explorer queries answered from a JSON-RPC node"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    query = subparsers.add_parser("query", help="Run one resource query")
    query.add_argument(
        "resource",
        help=f"Resource name, emulated: {', '.join(sorted(RESOURCE_HANDLERS))}",
    )
    query.add_argument(
        "--path",
        action="append",
        metavar="KEY=VALUE",
        help="Path parameter, repeatable",
    )
    query.add_argument(
        "--param",
        action="append",
        metavar="KEY=VALUE",
        help="Query parameter, repeatable",
    )
    query.add_argument(
        "--retries",
        type=int,
        default=1,
        help="Attempts on upstream failure (default: 1)",
    )
    query.add_argument("--rpc-url", default=None, help="Overrides ETH_RPC_URL")
    return parser


async def run_query(
    settings: ExplorerSettings,
    resource: str,
    path_params: dict[str, str],
    query_params: dict[str, Any],
    retries: int = 1,
) -> QueryResult:
    """Open a gateway, answer one query and close everything again."""
    async with RPCGateway.from_settings(settings) as gateway:
        backend = (
            BackendClient(settings.backend_api_url, gateway.http_client)
            if settings.backend_api_url
            else None
        )
        dispatcher = ResourceDispatcher.from_settings(settings, gateway, backend)

        @retry_with_backoff(max_retries=max(retries, 1), retry_on=(UpstreamError,))
        async def query() -> QueryResult:
            return await dispatcher.query(resource, path_params, query_params)

        return await query()


async def main(args: Namespace, console: Console | None = None) -> int:
    """Run the parsed command.

    Returns:
        Process exit code
    """
    console = console or Console()
    try:
        path_params = parse_pairs(args.path)
        query_params = parse_pairs(args.param)
        settings = load_settings(args.rpc_url)
        configure_logging(settings.log_level, log_color=settings.log_color)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 2

    try:
        result = await run_query(
            settings, args.resource, path_params, query_params, args.retries
        )
    except ExplorerError as e:
        logger.error("%s failed: %s", args.resource, e)
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        return 1

    console.print_json(result.model_dump_json(by_alias=True))
    return 0


def cli() -> None:
    """Console script entry point."""
    args = build_parser().parse_args()
    sys.exit(asyncio.run(main(args)))


__all__ = [
    "build_parser",
    "cli",
    "main",
    "parse_pairs",
    "run_query",
]


if __name__ == "__main__":
    cli()
