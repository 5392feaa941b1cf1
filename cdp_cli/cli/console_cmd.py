"""
Console subcommand for collecting console messages.

Implements 'console PAGE' to collect console calls and uncaught exceptions
for a fixed window and print them as NDJSON.
"""

import argparse
import json
import sys

from ..collectors.console import tail_entries
from ..output import output_lines, output_raw
from .common import directory_from_args, run_handler, session_for

DEFAULT_TAIL = 10


def format_entry(entry, args: argparse.Namespace) -> dict:
    """Object with the fields requested by the --with-* flags."""
    data = {"text": entry.text}
    if args.with_type:
        data["type"] = entry.kind
        data["source"] = entry.origin
    if args.with_timestamp:
        data["timestamp"] = entry.timestamp
    if args.with_source:
        if entry.line:
            data["line"] = entry.line
        if entry.url:
            data["url"] = entry.url
    return data


async def console_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'console' command (async implementation).

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    target = directory_from_args(args).find(args.page)

    async with session_for(args, target) as session:
        messages = await session.collect_console(
            args.duration, kind=args.type, enrich=args.enrich
        )

    total = len(messages)
    messages = tail_entries(messages, -1 if args.all else args.tail)
    skipped = total - len(messages)
    if skipped:
        print(
            f"({skipped} messages skipped. Use --tail {min(total, 50)} or --all to see more)",
            file=sys.stderr,
        )

    if args.with_type or args.with_timestamp or args.with_source:
        output_lines(format_entry(entry, args) for entry in messages)
    else:
        for entry in messages:
            output_raw(json.dumps(entry.text, ensure_ascii=False))
    return 0


def console_handler(args: argparse.Namespace) -> int:
    return run_handler(args, console_handler_async, "LIST_CONSOLE_FAILED", page=args.page)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'console' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    console_parser = subparsers.add_parser(
        "console",
        parents=[parent],
        help="List console messages",
        description="Collect console messages and uncaught exceptions from a page",
        epilog="""
Examples:
  # Last 10 messages seen during 2 seconds
  cdp-cli console "Example Domain" --duration 2

  # Only errors, with type and source location
  cdp-cli console page-1 --type error --with-type --with-source

  # Everything, with objects expanded
  cdp-cli console page-1 --all --enrich
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    console_parser.add_argument("page", help="Page ID or title")
    console_parser.add_argument(
        "-t", "--type", help="Filter by message type (log, error, warn, info)"
    )
    console_parser.add_argument(
        "-d",
        "--duration",
        type=float,
        default=0.1,
        help="Collection duration in seconds (default: 0.1)",
    )

    limit_group = console_parser.add_mutually_exclusive_group()
    limit_group.add_argument(
        "--tail",
        type=int,
        default=DEFAULT_TAIL,
        help=f"Show only the last N messages, -1 for all (default: {DEFAULT_TAIL})",
    )
    limit_group.add_argument("--all", action="store_true", help="Show all messages")

    console_parser.add_argument(
        "--with-type", action="store_true", help="Include message type and source"
    )
    console_parser.add_argument(
        "--with-timestamp", action="store_true", help="Include timestamps"
    )
    console_parser.add_argument(
        "--with-source", action="store_true", help="Include source line and URL"
    )
    console_parser.add_argument(
        "--enrich",
        action="store_true",
        help="Expand logged objects into key: value summaries",
    )

    console_parser.set_defaults(func=console_handler)
