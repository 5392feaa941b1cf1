"""Shared fixtures: an in-memory transport standing in for the WebSocket."""

import json
from typing import Dict, List, Optional

import pytest

from cdp_cli.exceptions import ConnectionClosedError
from cdp_cli.session import CDPSession


class FakeTransport:
    """Records outbound frames and feeds inbound ones straight to the router.

    With auto_respond, every command is answered with the result registered in
    results (default {}), followed by any notifications scripted for its method.
    """

    def __init__(self, auto_respond: bool = True):
        self.auto_respond = auto_respond
        self.results: Dict[str, dict] = {}
        self.scripted: Dict[str, List[dict]] = {}
        self.sent: List[dict] = []
        self.on_message = None
        self.on_close = None
        self.connected = True
        self.close_calls = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connected = True

    async def send(self, raw: str) -> None:
        if not self.connected:
            raise ConnectionClosedError("Cannot send: connection not active")
        frame = json.loads(raw)
        self.sent.append(frame)
        if self.auto_respond:
            self.deliver({"id": frame["id"], "result": self.results.get(frame["method"], {})})
            for notification in self.scripted.get(frame["method"], []):
                self.deliver(notification)

    def deliver(self, message) -> None:
        raw = message if isinstance(message, (str, bytes)) else json.dumps(message)
        self.on_message(raw)

    def drop(self, error: Optional[BaseException] = None) -> None:
        """Simulate the remote end closing the channel."""
        self.connected = False
        self.on_close(error)

    async def close(self) -> None:
        self.close_calls += 1
        if self.connected:
            self.connected = False
            self.on_close(None)

    def methods(self) -> List[str]:
        return [frame["method"] for frame in self.sent]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def session(transport):
    return CDPSession(transport=transport, timeout=1.0)


@pytest.fixture
def mock_targets_response():
    """Mock Chrome /json endpoint response."""
    return [
        {
            "id": "page-1",
            "type": "page",
            "title": "Example Domain",
            "url": "https://example.com",
            "webSocketDebuggerUrl": "ws://localhost:9222/devtools/page/page-1",
        },
        {
            "id": "page-2",
            "type": "page",
            "title": "GitHub",
            "url": "https://github.com",
            "webSocketDebuggerUrl": "ws://localhost:9222/devtools/page/page-2",
        },
        {
            "id": "worker-1",
            "type": "service_worker",
            "title": "Service Worker",
            "url": "https://example.com/sw.js",
            "webSocketDebuggerUrl": "ws://localhost:9222/devtools/page/worker-1",
        },
    ]


@pytest.fixture
def make_transport():
    """Factory for extra transports, e.g. FakeTransport(auto_respond=False)."""
    return FakeTransport
