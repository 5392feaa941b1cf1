"""CDP WebSocket transport.

Owns the one persistent duplex channel to a target. Exposes send(raw), a single
inbound-message callback and a single close callback; knows nothing about
command ids or notification methods.
"""

import asyncio
import logging
from typing import Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from .exceptions import (
    ConnectionClosedError,
    ConnectionFailedError,
    TransportError,
)

logger = logging.getLogger(__name__)

RawMessage = Union[str, bytes]
MessageCallback = Callable[[RawMessage], None]
CloseCallback = Callable[[Optional[BaseException]], None]


class WebSocketTransport:
    """Manages the WebSocket connection to a Chrome DevTools Protocol endpoint.

    Handles:
    - Connection lifecycle (connect, close, context manager)
    - A background receive loop that hands every inbound frame to on_message
      in arrival order
    - Reporting channel closure exactly once through on_close

    Usage:
        transport = WebSocketTransport(ws_url)
        transport.on_message = router.route
        transport.on_close = lambda exc: correlator.fail_all(...)
        await transport.connect()
        await transport.send('{"id": 1, "method": "Runtime.enable"}')

    Attributes:
        ws_url: WebSocket debugger URL
        max_size: Maximum WebSocket message size in bytes (for large DOMs)
    """

    def __init__(self, ws_url: str, *, max_size: int = 2_097_152):
        if not ws_url.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URL: {ws_url}")

        self.ws_url = ws_url
        self.max_size = max_size
        self.on_message: Optional[MessageCallback] = None
        self.on_close: Optional[CloseCallback] = None

        self._ws = None
        self._receive_task: Optional[asyncio.Task] = None
        self._is_connected: bool = False
        self._close_reported: bool = False

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket connection is active."""
        if not self._is_connected or self._ws is None:
            return False
        try:
            return self._ws.state.name == "OPEN"
        except AttributeError:
            return not getattr(self._ws, "closed", True)

    async def connect(self) -> None:
        """Establish WebSocket connection and start receive loop.

        Raises:
            ConnectionFailedError: If WebSocket connection fails
        """
        try:
            logger.info(f"Connecting to {self.ws_url}")
            self._ws = await websockets.connect(self.ws_url, max_size=self.max_size)
        except Exception as e:
            raise ConnectionFailedError(
                f"Failed to connect to {self.ws_url}: {e}",
                details={"url": self.ws_url, "error": str(e)},
            ) from e

        self._is_connected = True
        self._close_reported = False
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("CDP connection established")

    async def send(self, raw: str) -> None:
        """Write one frame to the channel.

        Raises:
            ConnectionClosedError: If the channel is not open
            TransportError: On any other write failure
        """
        if not self.is_connected:
            raise ConnectionClosedError("Cannot send: connection not active")
        try:
            await self._ws.send(raw)
        except ConnectionClosed as e:
            raise ConnectionClosedError(f"Connection closed: {e}") from e
        except Exception as e:
            raise TransportError(
                f"Failed to send message: {e}", details={"url": self.ws_url}
            ) from e

    async def close(self) -> None:
        """Close WebSocket connection gracefully."""
        logger.info("Disconnecting CDP connection")
        self._is_connected = False

        if self._receive_task and not self._receive_task.done():
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass

        if self._ws is not None:
            try:
                await self._ws.close()
            except Exception as e:
                logger.warning(f"Error closing WebSocket: {e}")

        self._report_closed(None)
        logger.info("CDP connection closed")

    async def __aenter__(self) -> "WebSocketTransport":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _receive_loop(self) -> None:
        """Background task feeding inbound frames to on_message.

        A failing callback is logged and the loop continues with the next frame.
        """
        error: Optional[BaseException] = None
        try:
            async for message in self._ws:
                if self.on_message is None:
                    continue
                try:
                    self.on_message(message)
                except Exception as e:
                    logger.error(f"Error processing message: {e}", exc_info=True)
        except ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
            error = e
        except Exception as e:
            logger.error(f"Receive loop error: {e}", exc_info=True)
            error = e
        finally:
            self._is_connected = False

        self._report_closed(error)

    def _report_closed(self, error: Optional[BaseException]) -> None:
        if self._close_reported:
            return
        self._close_reported = True
        if self.on_close is not None:
            self.on_close(error)
