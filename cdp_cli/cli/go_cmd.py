"""
Go subcommand for page navigation.

Implements 'go ACTION PAGE' where ACTION is a URL or one of back, forward
and reload. History moves go through Page.getNavigationHistory.
"""

import argparse

from ..exceptions import CDPError
from ..output import output_success
from .common import directory_from_args, run_handler, session_for

HISTORY_ACTIONS = {"back": -1, "forward": 1}


async def navigate_history(session, step: int) -> None:
    """Move step entries through the page history.

    Raises:
        CDPError: If there is no entry in that direction
    """
    history = await session.invoke("Page.getNavigationHistory")
    entries = history.get("entries", [])
    index = history.get("currentIndex", 0) + step

    if not 0 <= index < len(entries):
        edge = "back: already at oldest page" if step < 0 else "forward: already at newest page"
        raise CDPError(f"Cannot navigate {edge}")

    await session.invoke("Page.navigateToHistoryEntry", {"entryId": entries[index]["id"]})


async def go_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'go' command (async implementation).

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    target = directory_from_args(args).find(args.page)

    async with session_for(args, target) as session:
        await session.invoke("Page.enable")
        if args.action in HISTORY_ACTIONS:
            await navigate_history(session, HISTORY_ACTIONS[args.action])
        elif args.action == "reload":
            await session.invoke("Page.reload")
        else:
            result = await session.invoke("Page.navigate", {"url": args.action})
            if result.get("errorText"):
                raise CDPError(
                    f"Navigation failed: {result['errorText']}",
                    details={"url": args.action},
                )

    output_success("Navigation complete", {"action": args.action, "page": target.id})
    return 0


def go_handler(args: argparse.Namespace) -> int:
    return run_handler(
        args, go_handler_async, "NAVIGATE_FAILED", action=args.action, page=args.page
    )


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'go' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    go_parser = subparsers.add_parser(
        "go",
        parents=[parent],
        help="Navigate a page",
        description="Navigate a page to a URL, or back, forward or reload",
        epilog="""
Examples:
  cdp-cli go https://example.com "Example Domain"
  cdp-cli go back page-1
  cdp-cli go reload page-1
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    go_parser.add_argument("action", help="URL, or one of: back, forward, reload")
    go_parser.add_argument("page", help="Page ID or title")

    go_parser.set_defaults(func=go_handler)
