"""
Query subcommand for executing arbitrary CDP commands.

Implements 'query PAGE METHOD --params JSON'; the result is passed through untouched.
"""

import argparse
import json

from ..exceptions import CDPError
from ..output import output_line
from .common import directory_from_args, run_handler, session_for


async def query_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'query' command (async implementation).

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    params = None
    if args.params:
        try:
            params = json.loads(args.params)
        except json.JSONDecodeError as e:
            raise CDPError(f"Invalid JSON params: {e}") from e
        if not isinstance(params, dict):
            raise CDPError("Params must be a JSON object")

    target = directory_from_args(args).find(args.page)

    async with session_for(args, target) as session:
        result = await session.invoke(args.method, params)

    output_line(result)
    return 0


def query_handler(args: argparse.Namespace) -> int:
    return run_handler(args, query_handler_async, "QUERY_FAILED", method=args.method)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'query' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    query_parser = subparsers.add_parser(
        "query",
        parents=[parent],
        help="Execute arbitrary CDP command",
        description="Send one CDP command to a page and print its raw result",
        epilog="""
Examples:
  cdp-cli query page-1 Browser.getVersion
  cdp-cli query page-1 Page.navigate --params '{"url": "https://example.com"}'
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    query_parser.add_argument("page", help="Page ID or title")
    query_parser.add_argument("method", help="CDP method (e.g., Runtime.evaluate)")
    query_parser.add_argument("--params", help="Method parameters as a JSON object")

    query_parser.set_defaults(func=query_handler)
