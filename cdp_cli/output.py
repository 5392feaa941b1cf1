"""NDJSON output for cdp-cli.

Each line on stdout is one complete JSON object so results stay greppable and
easy to parse line by line. Diagnostics go to stderr through logging.
"""

import json
import sys
from typing import Any, Iterable, Optional


def output_line(data: Any, *, pretty: bool = False) -> None:
    """Write a single NDJSON line."""
    if pretty:
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    else:
        text = json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
    print(text, file=sys.stdout, flush=True)


def output_lines(items: Iterable[Any], *, pretty: bool = False) -> None:
    for item in items:
        output_line(item, pretty=pretty)


def output_error(message: str, code: str = "ERROR", details: Optional[dict] = None) -> None:
    data = {"error": True, "message": message, "code": code}
    if details:
        data["details"] = details
    output_line(data)


def output_success(message: str, data: Optional[dict] = None) -> None:
    payload: dict = {"success": True, "message": message}
    if data:
        payload["data"] = data
    output_line(payload)


def output_raw(text: str) -> None:
    """Write text as-is (not NDJSON)."""
    print(text, file=sys.stdout, flush=True)
