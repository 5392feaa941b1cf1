"""
Eval subcommand for evaluating JavaScript in a page.

Implements 'eval PAGE EXPRESSION' via Runtime.evaluate.
"""

import argparse

from ..output import output_error, output_line
from .common import directory_from_args, run_handler, session_for


async def eval_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'eval' command (async implementation).

    Returns:
        Exit code (0 for success, 1 when the expression throws)
    """
    target = directory_from_args(args).find(args.page)

    async with session_for(args, target) as session:
        await session.invoke("Runtime.enable")
        result = await session.invoke(
            "Runtime.evaluate",
            {
                "expression": args.expression,
                "returnByValue": True,
                "awaitPromise": True,
            },
        )

    exception = result.get("exceptionDetails")
    if exception:
        output_error(exception.get("text", "Evaluation failed"), "EVAL_EXCEPTION", exception)
        return 1

    remote = result.get("result", {})
    output_line({"success": True, "value": remote.get("value"), "type": remote.get("type")})
    return 0


def eval_handler(args: argparse.Namespace) -> int:
    return run_handler(args, eval_handler_async, "EVAL_FAILED", expression=args.expression)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'eval' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    eval_parser = subparsers.add_parser(
        "eval",
        parents=[parent],
        help="Evaluate JavaScript expression",
        description="Evaluate a JavaScript expression in a page and print its value",
        epilog="""
Examples:
  cdp-cli eval "Example Domain" "document.title"
  cdp-cli eval page-1 "fetch('/api').then(r => r.status)"
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    eval_parser.add_argument("page", help="Page ID or title")
    eval_parser.add_argument("expression", help="JavaScript expression to evaluate")

    eval_parser.set_defaults(func=eval_handler)
