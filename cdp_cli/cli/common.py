"""Helpers shared by the cdp-cli subcommands."""

import argparse
import asyncio
import logging
from typing import Awaitable, Callable

from ..exceptions import CDPError, ConnectionFailedError
from ..output import output_error
from ..session import CDPSession
from ..targets import Target, TargetDirectory

logger = logging.getLogger(__name__)


def directory_from_args(args: argparse.Namespace) -> TargetDirectory:
    config = args.config
    return TargetDirectory(config.chrome_host, config.chrome_port)


def session_for(args: argparse.Namespace, target: Target) -> CDPSession:
    """Session for target.

    Raises:
        ConnectionFailedError: If Chrome lists the page without a WebSocket URL
    """
    if not target.webSocketDebuggerUrl:
        # Chrome omits the URL while another DevTools client is attached
        raise ConnectionFailedError(
            f"Page {target.id} has no WebSocket debugger URL",
            details={
                "page": target.id,
                "recovery": "Close DevTools for this page and retry",
            },
        )

    config = args.config
    return CDPSession(
        target.webSocketDebuggerUrl,
        timeout=config.timeout,
        max_size=config.max_size,
    )


def run_handler(
    args: argparse.Namespace,
    coro_func: Callable[[argparse.Namespace], Awaitable[int]],
    error_code: str,
    **error_details,
) -> int:
    """Run an async handler, reporting CDPError as an NDJSON error line.

    Returns:
        Exit code (0 for success, 1 for CDP errors)
    """
    try:
        return asyncio.run(coro_func(args))
    except CDPError as e:
        if args.config.log_level.upper() == "DEBUG":
            raise
        details = {k: v for k, v in error_details.items() if v is not None}
        if e.details.get("recovery"):
            details["recovery"] = e.details["recovery"]
        output_error(e.message, error_code, details or None)
        return 1
