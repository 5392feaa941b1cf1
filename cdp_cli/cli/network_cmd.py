"""
Network subcommand for listing network requests.

Implements 'network PAGE' to collect requests for a fixed window and print
one NDJSON line per request.
"""

import argparse

from ..output import output_lines
from .common import directory_from_args, run_handler, session_for


async def network_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'network' command (async implementation).

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    target = directory_from_args(args).find(args.page)

    async with session_for(args, target) as session:
        requests = await session.collect_network(args.duration, category=args.type)

    output_lines(entity.to_dict() for entity in requests)
    return 0


def network_handler(args: argparse.Namespace) -> int:
    return run_handler(args, network_handler_async, "LIST_NETWORK_FAILED", page=args.page)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'network' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    network_parser = subparsers.add_parser(
        "network",
        parents=[parent],
        help="List network requests",
        description="Collect network requests made by a page",
        epilog="""
Examples:
  # Requests seen during 5 seconds
  cdp-cli network "Example Domain" --duration 5

  # Only XHR requests
  cdp-cli network page-1 --type XHR --duration 10
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    network_parser.add_argument("page", help="Page ID or title")
    network_parser.add_argument(
        "-t",
        "--type",
        help="Filter by resource type as reported by Chrome (XHR, Fetch, Script, ...)",
    )
    network_parser.add_argument(
        "-d",
        "--duration",
        type=float,
        default=0.1,
        help="Collection duration in seconds (default: 0.1)",
    )

    network_parser.set_defaults(func=network_handler)
