"""Command correlation for CDP.

Assigns a per-instance, strictly increasing id to every outbound command,
keeps the table of outstanding commands and resolves them from inbound
identified messages, errors, timeouts or channel closure.
"""

import asyncio
import itertools
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from .exceptions import (
    CDPError,
    CommandTimeout,
    ConnectionClosedError,
    ProtocolError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 30.0

SendFunc = Callable[[str], Awaitable[None]]


@dataclass
class PendingCommand:
    """An outbound command waiting for its response."""

    id: int
    method: str
    future: asyncio.Future
    issued_at: float = field(default_factory=time.monotonic)


class CommandCorrelator:
    """Matches responses to commands by id.

    Exactly one of result, error, timeout or closure settles each command.
    Whichever comes first removes the pending entry, so a late duplicate
    response finds nothing to resolve and is dropped.

    Usage:
        correlator = CommandCorrelator(transport.send)
        result = await correlator.invoke("Runtime.evaluate", {"expression": "1+1"})

    Attributes:
        timeout: Default command timeout in seconds
    """

    def __init__(self, send: SendFunc, *, timeout: float = DEFAULT_COMMAND_TIMEOUT):
        self._send = send
        self.timeout = timeout
        self._ids = itertools.count(1)
        self._pending: Dict[int, PendingCommand] = {}
        self._closed_error: Optional[CDPError] = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def next_id(self) -> int:
        return next(self._ids)

    async def invoke(
        self,
        method: str,
        params: Optional[dict] = None,
        *,
        timeout: Optional[float] = None,
    ) -> dict:
        """Send a command and wait for its matching response.

        Args:
            method: CDP method name (e.g., "Runtime.evaluate", "Console.enable")
            params: Method parameters (omitted from the frame when None)
            timeout: Command timeout in seconds (default: self.timeout)

        Returns:
            Command result dict (contents of "result" field in response)

        Raises:
            ConnectionClosedError: If the channel was closed before or during the call
            TransportError: If the frame could not be written
            CommandTimeout: If no response arrives in time
            ProtocolError: If the target answers with an error object
        """
        if self._closed_error is not None:
            raise ConnectionClosedError(
                f"Cannot execute {method}: connection not active"
            )

        cmd_id = self.next_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[cmd_id] = PendingCommand(id=cmd_id, method=method, future=future)

        frame: Dict[str, Any] = {"id": cmd_id, "method": method}
        if params is not None:
            frame["params"] = params

        cmd_timeout = timeout if timeout is not None else self.timeout
        try:
            try:
                await self._send(json.dumps(frame))
            except CDPError:
                raise
            except Exception as e:
                raise TransportError(f"Failed to send {method}: {e}") from e
            logger.debug(f"Sent command {cmd_id}: {method}")

            return await asyncio.wait_for(future, timeout=cmd_timeout)
        except asyncio.TimeoutError:
            raise CommandTimeout(
                "Command timed out", command_method=method, timeout=cmd_timeout
            )
        finally:
            self._pending.pop(cmd_id, None)

    def resolve(self, message: dict) -> bool:
        """Settle the pending command matching message["id"].

        Returns:
            True if a pending command was settled, False if the message was dropped
        """
        cmd_id = message.get("id")
        is_valid_id = isinstance(cmd_id, int) and not isinstance(cmd_id, bool)
        pending = self._pending.pop(cmd_id, None) if is_valid_id else None
        if pending is None or pending.future.done():
            logger.debug(f"Dropped response for unknown or settled command {cmd_id!r}")
            return False

        error = message.get("error")
        if error is not None:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            pending.future.set_exception(
                ProtocolError(
                    error.get("message", "CDP command failed"),
                    method=pending.method,
                    error_code=error.get("code"),
                    details={"error": error},
                )
            )
        else:
            result = message.get("result")
            pending.future.set_result(result if result is not None else {})

        elapsed = time.monotonic() - pending.issued_at
        logger.debug(f"Settled command {cmd_id} ({pending.method}) in {elapsed:.3f}s")
        return True

    def fail_all(self, error: CDPError) -> None:
        """Reject every outstanding command and refuse new ones."""
        self._closed_error = error
        pending, self._pending = self._pending, {}
        for command in pending.values():
            if not command.future.done():
                command.future.set_exception(error)
        if pending:
            logger.warning(f"Failed {len(pending)} pending command(s): {error}")
