"""
Console aggregator for CDP - builds the console log of one session.

Consumes Runtime.consoleAPICalled and Runtime.exceptionThrown notifications and
keeps an append-only, arrival-ordered list of entries.
"""

import json
import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..exceptions import CDPError
from ..notifications import ConsoleAPICalled, ExceptionThrown

logger = logging.getLogger(__name__)

ORIGIN_CONSOLE_API = "console-api"
ORIGIN_EXCEPTION = "exception"

# Properties shown per object when enriching, before the overflow marker
MAX_PREVIEW_PROPERTIES = 5
OVERFLOW_MARKER = "…"

_ID_ALPHABET = string.ascii_lowercase + string.digits

InvokeFunc = Callable[..., Awaitable[dict]]


@dataclass
class ConsoleEntry:
    """One console message or uncaught exception.

    Attributes:
        id: Unique id within the session ("msg_<ms>_<suffix>")
        kind: Console call type (log, warn, error, info, debug, ...)
        timestamp: Milliseconds since epoch
        text: Rendered message text
        origin: "console-api" or "exception"
        line: Source line (exceptions only)
        url: Source URL (exceptions only)
        args: Remote objects passed to the console call
        enriched: True once object references were expanded into text
    """

    id: str
    kind: str
    timestamp: float
    text: str
    origin: str
    line: Optional[int] = None
    url: Optional[str] = None
    args: List[dict] = field(default_factory=list)
    enriched: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "timestamp": self.timestamp,
            "text": self.text,
            "source": self.origin,
        }
        if self.line is not None:
            data["line"] = self.line
        if self.url:
            data["url"] = self.url
        return data


def js_string(value: Any) -> str:
    """Stringify a by-value remote object the way the page would print it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def format_arg(arg: dict) -> str:
    """Primitive value, else description, else a structural placeholder."""
    if "value" in arg:
        return js_string(arg["value"])
    if arg.get("description") is not None:
        return str(arg["description"])
    return json.dumps(arg, separators=(",", ":"))


def format_args(args: List[dict]) -> str:
    return " ".join(format_arg(arg) for arg in args)


def tail_entries(entries: List[ConsoleEntry], count: int) -> List[ConsoleEntry]:
    """Last count entries; all of them when count is negative."""
    if count < 0 or len(entries) <= count:
        return list(entries)
    return entries[len(entries) - count:]


def _is_object_reference(arg: dict) -> bool:
    return "objectId" in arg and "value" not in arg


def _now_ms() -> float:
    return time.time() * 1000


class ConsoleAggregator:
    """
    Append-only console log for one session.

    Usage:
        console = ConsoleAggregator()
        router.subscribe(ConsoleAPICalled.METHOD, console.on_console_api_called)
        router.subscribe(ExceptionThrown.METHOD, console.on_exception_thrown)
        ...
        await console.enrich(session.invoke)
        errors = console.entries(kind="error")
    """

    def __init__(self):
        self._entries: List[ConsoleEntry] = []
        self._ids: set = set()

    def __len__(self) -> int:
        return len(self._entries)

    def on_console_api_called(self, event: ConsoleAPICalled) -> ConsoleEntry:
        return self._append(
            kind=event.kind,
            timestamp=event.timestamp or _now_ms(),
            text=format_args(event.args),
            origin=ORIGIN_CONSOLE_API,
            args=list(event.args),
        )

    def on_exception_thrown(self, event: ExceptionThrown) -> ConsoleEntry:
        return self._append(
            kind="error",
            timestamp=event.timestamp or _now_ms(),
            text=event.text,
            origin=ORIGIN_EXCEPTION,
            line=event.line,
            url=event.url,
        )

    def entries(self, kind: Optional[str] = None) -> List[ConsoleEntry]:
        """Entries in arrival order, optionally only those of one kind."""
        if kind is None:
            return list(self._entries)
        return [entry for entry in self._entries if entry.kind == kind]

    def tail(self, count: int, kind: Optional[str] = None) -> List[ConsoleEntry]:
        """Last count entries (all of them when count is negative)."""
        return tail_entries(self.entries(kind), count)

    def clear(self) -> None:
        self._entries.clear()
        self._ids.clear()

    async def enrich(self, invoke: InvokeFunc) -> int:
        """Expand object references in console-call entries into key: value text.

        Calls Runtime.getProperties for every referenced object. Entries already
        enriched are skipped; an entry whose lookup fails keeps its text.

        Args:
            invoke: Command coroutine, normally CDPSession.invoke

        Returns:
            Number of entries whose text was rewritten
        """
        rewritten = 0
        for entry in list(self._entries):
            if entry.enriched or entry.origin != ORIGIN_CONSOLE_API:
                continue
            if not any(_is_object_reference(arg) for arg in entry.args):
                continue

            parts = []
            try:
                for arg in entry.args:
                    if _is_object_reference(arg):
                        parts.append(await self._describe_object(invoke, arg))
                    else:
                        parts.append(format_arg(arg))
            except CDPError as e:
                logger.debug(f"Could not enrich console entry {entry.id}: {e}")
                continue

            entry.text = " ".join(parts)
            entry.enriched = True
            rewritten += 1
        return rewritten

    async def _describe_object(self, invoke: InvokeFunc, arg: dict) -> str:
        result = await invoke(
            "Runtime.getProperties",
            {"objectId": arg["objectId"], "ownProperties": True},
        )

        pairs = []
        truncated = False
        for prop in result.get("result", []):
            name = prop.get("name")
            if not name or name == "__proto__" or prop.get("enumerable") is False:
                continue
            if len(pairs) >= MAX_PREVIEW_PROPERTIES:
                truncated = True
                break
            value = prop.get("value") or {}
            if "value" in value:
                rendered = js_string(value["value"])
            else:
                rendered = str(value.get("description", value.get("type", "undefined")))
            pairs.append(f"{name}: {rendered}")

        if truncated:
            pairs.append(OVERFLOW_MARKER)
        return "{" + ", ".join(pairs) + "}"

    def _append(self, **fields) -> ConsoleEntry:
        entry = ConsoleEntry(id=self._new_id(), **fields)
        self._entries.append(entry)
        self._ids.add(entry.id)
        return entry

    def _new_id(self) -> str:
        while True:
            suffix = "".join(random.choices(_ID_ALPHABET, k=9))
            entry_id = f"msg_{int(_now_ms())}_{suffix}"
            if entry_id not in self._ids:
                return entry_id
