"""
Pages subcommand for the target directory.

Implements 'pages list', 'pages new [URL]' and 'pages close PAGE'.
"""

import argparse

from ..output import output_error, output_lines, output_success
from .common import directory_from_args, run_handler


async def pages_list_async(args: argparse.Namespace) -> int:
    directory = directory_from_args(args)
    output_lines(target.to_dict() for target in directory.list_targets())
    return 0


async def pages_new_async(args: argparse.Namespace) -> int:
    directory = directory_from_args(args)
    target = directory.create(args.argument)
    output_success(
        "Page created", {"id": target.id, "title": target.title, "url": target.url}
    )
    return 0


async def pages_close_async(args: argparse.Namespace) -> int:
    directory = directory_from_args(args)
    target = directory.find(args.argument)
    directory.close(target.id)
    output_success("Page closed", {"id": target.id, "title": target.title})
    return 0


def pages_handler(args: argparse.Namespace) -> int:
    """
    Dispatch 'pages' actions.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if args.action == "list":
        return run_handler(args, pages_list_async, "LIST_PAGES_FAILED")
    if args.action == "new":
        return run_handler(args, pages_new_async, "NEW_PAGE_FAILED", url=args.argument)
    if not args.argument:
        output_error("pages close requires a page ID or title", "CLOSE_PAGE_FAILED")
        return 1
    return run_handler(args, pages_close_async, "CLOSE_PAGE_FAILED", page=args.argument)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'pages' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    pages_parser = subparsers.add_parser(
        "pages",
        parents=[parent],
        help="List, open and close pages",
        description="Manage debuggable pages through Chrome's HTTP endpoints",
        epilog="""
Examples:
  cdp-cli pages list
  cdp-cli pages new https://example.com
  cdp-cli pages close "Example Domain"
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pages_parser.add_argument(
        "action", choices=["list", "new", "close"], help="Action to perform"
    )
    pages_parser.add_argument(
        "argument",
        nargs="?",
        help="URL to open (new) or page ID or title (close)",
    )

    pages_parser.set_defaults(func=pages_handler)
