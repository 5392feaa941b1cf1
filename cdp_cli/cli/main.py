"""
Main CLI entry point for cdp-cli.

Provides unified command-line interface with subcommands for CDP operations.
Results are NDJSON on stdout; logs go to stderr.

Usage:
    cdp-cli <subcommand> [options]

Subcommands:
    pages    - List, open and close pages
    go       - Navigate a page (URL, back, forward, reload)
    console  - List console messages
    network  - List network requests
    eval     - Evaluate JavaScript in a page
    query    - Execute arbitrary CDP commands
    snapshot - Capture page text, DOM or accessibility tree
"""

import argparse
import sys
from typing import List, Optional

from ..config import DEFAULT_CONFIG_FILE, Configuration
from ..logging_setup import setup_logging


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Option defaults are None so that unset flags leave file and environment
    configuration in place.

    Returns:
        ArgumentParser with global options
    """
    parent = argparse.ArgumentParser(add_help=False)

    parent.add_argument("--chrome-host", help="Chrome host (default: localhost)")
    parent.add_argument(
        "--chrome-port", type=int, help="Chrome debugging port (default: 9222)"
    )
    parent.add_argument(
        "--timeout", type=float, help="Command timeout in seconds (default: 30.0)"
    )
    parent.add_argument(
        "--config",
        dest="config_file",
        default=DEFAULT_CONFIG_FILE,
        help=f"JSON configuration file (default: {DEFAULT_CONFIG_FILE})",
    )

    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parent.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Log output format on stderr (default: text)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-essential output (only show results)",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """
    Create main parser with all subcommands.

    Args:
        parent: Parent parser with global options

    Returns:
        Main ArgumentParser with subcommands configured
    """
    parser = argparse.ArgumentParser(
        prog="cdp-cli",
        description="Chrome DevTools Protocol (CDP) debugging tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List all pages
  cdp-cli pages list

  # Console messages seen during 2 seconds
  cdp-cli console "Example Domain" --duration 2

  # XHR requests seen during 5 seconds
  cdp-cli network "Example Domain" --type XHR --duration 5

  # Navigate a page
  cdp-cli go https://example.com "Example Domain"

  # Page text
  cdp-cli snapshot "Example Domain"

  # Evaluate JavaScript
  cdp-cli eval "Example Domain" "document.title"

  # Execute arbitrary CDP command
  cdp-cli query page-1 Page.navigate --params '{"url":"https://example.com"}'

For more information on subcommands, run: cdp-cli <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        description="Available CDP operations",
        required=True,
    )

    from . import (
        console_cmd,
        eval_cmd,
        go_cmd,
        network_cmd,
        pages_cmd,
        query_cmd,
        snapshot_cmd,
    )

    pages_cmd.register_subcommand(subparsers, parent)
    go_cmd.register_subcommand(subparsers, parent)
    console_cmd.register_subcommand(subparsers, parent)
    network_cmd.register_subcommand(subparsers, parent)
    eval_cmd.register_subcommand(subparsers, parent)
    query_cmd.register_subcommand(subparsers, parent)
    snapshot_cmd.register_subcommand(subparsers, parent)

    return parser


def build_configuration(args: argparse.Namespace) -> Configuration:
    """
    Load configuration with precedence: CLI > env > file > defaults.
    """
    config = Configuration()
    config.load_from_file(args.config_file)
    config.load_from_env()

    config.merge(
        chrome_host=args.chrome_host,
        chrome_port=args.chrome_port,
        timeout=args.timeout,
        log_level=args.log_level.upper() if args.log_level else None,
        log_format=args.log_format,
    )

    # Verbosity flags override log level
    if args.quiet:
        config.log_level = "ERROR"
    elif args.verbose:
        config.log_level = "DEBUG"
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)
    args = parser.parse_args(argv)

    # Configure logging before loading config so file/env warnings are visible
    setup_logging(quiet=args.quiet, verbose=args.verbose)
    config = build_configuration(args)
    setup_logging(
        format_type=config.log_format,
        level=str(config.log_level).upper(),
        quiet=args.quiet,
        verbose=args.verbose,
    )

    # Attach config to args for subcommands to access
    args.config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
