"""
Snapshot subcommand for capturing page content.

Implements 'snapshot PAGE --format text|dom|ax'. Text is the page's
innerText printed as-is; dom and ax results are passed through as one
NDJSON line.
"""

import argparse

from ..output import output_line, output_raw
from .common import directory_from_args, run_handler, session_for

SNAPSHOT_FORMATS = ("text", "dom", "ax")


async def snapshot_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'snapshot' command (async implementation).

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    target = directory_from_args(args).find(args.page)

    async with session_for(args, target) as session:
        if args.format == "text":
            await session.invoke("Runtime.enable")
            result = await session.invoke(
                "Runtime.evaluate",
                {"expression": "document.body.innerText", "returnByValue": True},
            )
            output_raw(result.get("result", {}).get("value") or "")
        elif args.format == "dom":
            await session.invoke("DOM.enable")
            output_line(await session.invoke("DOM.getDocument", {"depth": -1, "pierce": True}))
        else:
            await session.invoke("Accessibility.enable")
            output_line(await session.invoke("Accessibility.getFullAXTree"))
    return 0


def snapshot_handler(args: argparse.Namespace) -> int:
    return run_handler(args, snapshot_handler_async, "SNAPSHOT_FAILED", format=args.format)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'snapshot' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    snapshot_parser = subparsers.add_parser(
        "snapshot",
        parents=[parent],
        help="Capture page text, DOM or accessibility tree",
        description="Capture a snapshot of a page",
        epilog="""
Examples:
  cdp-cli snapshot "Example Domain"
  cdp-cli snapshot page-1 --format dom
  cdp-cli snapshot page-1 --format ax
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    snapshot_parser.add_argument("page", help="Page ID or title")
    snapshot_parser.add_argument(
        "-f",
        "--format",
        choices=SNAPSHOT_FORMATS,
        default="text",
        help="Snapshot format (default: text)",
    )

    snapshot_parser.set_defaults(func=snapshot_handler)
