"""
CDP session - one target connection with its command and event plumbing.

Composes the transport, command correlator, event router and the console and
network aggregators. Everything here is scoped to one session; two sessions
never share ids, handlers or collected data.
"""

import asyncio
import logging
from typing import List, Optional

from .collectors.console import ConsoleAggregator, ConsoleEntry
from .collectors.network import NetworkAggregator, NetworkEntity
from .correlator import DEFAULT_COMMAND_TIMEOUT, CommandCorrelator
from .exceptions import ConnectionClosedError
from .notifications import (
    ConsoleAPICalled,
    ExceptionThrown,
    LoadingFinished,
    RequestWillBeSent,
    ResponseReceived,
)
from .router import EventRouter
from .transport import WebSocketTransport

logger = logging.getLogger(__name__)


class CDPSession:
    """
    Session with one debuggable target.

    Usage:
        async with CDPSession(target.webSocketDebuggerUrl) as session:
            result = await session.invoke("Runtime.evaluate", {"expression": "1+1"})
            messages = await session.collect_console(5)
            requests = await session.collect_network(5, category="XHR")

    Close discards collected data; read it before leaving the context.

    Attributes:
        transport: Channel to the target
        correlator: Command id allocation and response matching
        router: Inbound dispatch
        console: Console log aggregator
        network: Request table aggregator
    """

    def __init__(
        self,
        ws_url: Optional[str] = None,
        *,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        max_size: int = 2_097_152,
        transport=None,
    ):
        if transport is None:
            if ws_url is None:
                raise ValueError("CDPSession needs a ws_url or a transport")
            transport = WebSocketTransport(ws_url, max_size=max_size)

        self.transport = transport
        self.correlator = CommandCorrelator(transport.send, timeout=timeout)
        self.router = EventRouter(self.correlator)
        self.console = ConsoleAggregator()
        self.network = NetworkAggregator()

        self._console_attached = False
        self._network_attached = False

        transport.on_message = self.router.route
        transport.on_close = self._on_transport_closed

    async def connect(self) -> None:
        await self.transport.connect()

    async def close(self) -> None:
        """Close the channel, fail pending commands and drop collected data."""
        await self.transport.close()
        # Also covers transports that do not report their own closure
        self.correlator.fail_all(ConnectionClosedError("Session closed"))
        self.router.clear()
        self._console_attached = False
        self._network_attached = False
        self.console.clear()
        self.network.clear()

    async def __aenter__(self) -> "CDPSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def invoke(
        self, method: str, params: Optional[dict] = None, *, timeout: Optional[float] = None
    ) -> dict:
        """Send a command and return its result.

        Raises:
            CommandTimeout, ProtocolError, TransportError
        """
        return await self.correlator.invoke(method, params, timeout=timeout)

    def attach_console(self) -> None:
        if self._console_attached:
            return
        self.router.subscribe(ConsoleAPICalled.METHOD, self.console.on_console_api_called)
        self.router.subscribe(ExceptionThrown.METHOD, self.console.on_exception_thrown)
        self._console_attached = True

    def attach_network(self) -> None:
        if self._network_attached:
            return
        self.router.subscribe(RequestWillBeSent.METHOD, self.network.on_request_will_be_sent)
        self.router.subscribe(ResponseReceived.METHOD, self.network.on_response_received)
        self.router.subscribe(LoadingFinished.METHOD, self.network.on_loading_finished)
        self._network_attached = True

    async def collect_console(
        self, duration: float, *, kind: Optional[str] = None, enrich: bool = False
    ) -> List[ConsoleEntry]:
        """
        Collect console messages for duration seconds.

        Handlers are attached before Runtime.enable so messages replayed on
        enable are captured.

        Args:
            duration: Collection window in seconds
            kind: Only return entries of this type (log, warn, error, ...)
            enrich: Expand referenced objects into key: value text

        Returns:
            Entries in arrival order
        """
        self.attach_console()
        await self.invoke("Runtime.enable")
        logger.info(f"Collecting console messages for {duration}s")
        await asyncio.sleep(duration)

        if enrich:
            await self.console.enrich(self.invoke)
        return self.console.entries(kind)

    async def collect_network(
        self, duration: float, category: Optional[str] = None
    ) -> List[NetworkEntity]:
        """
        Collect network requests for duration seconds.

        Args:
            duration: Collection window in seconds
            category: Only return requests of this resource type

        Returns:
            Request entities in first-seen order
        """
        self.attach_network()
        await self.invoke("Network.enable")
        logger.info(f"Collecting network requests for {duration}s")
        await asyncio.sleep(duration)
        return self.network.entities(category)

    def _on_transport_closed(self, error: Optional[BaseException]) -> None:
        reason = f"Connection closed: {error}" if error else "Connection closed"
        self.correlator.fail_all(ConnectionClosedError(reason))
