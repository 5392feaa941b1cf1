"""Inbound message routing for one CDP session.

Every raw frame from the transport passes through EventRouter.route: identified
messages go to the command correlator, notifications go to the handlers
registered for their method. Nothing raised while routing escapes the loop.
"""

import json
import logging
from typing import Any, Callable, Dict, List

from .correlator import CommandCorrelator
from .exceptions import FormatError
from .logging_setup import log_with_context
from .notifications import parse_notification

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventRouter:
    """Per-session dispatcher keyed by notification method.

    Handlers are plain callables run inline, in arrival order, one at a time.
    They receive the typed variant for known methods and the raw params dict
    for any other method.

    Usage:
        router = EventRouter(correlator)
        router.subscribe("Runtime.consoleAPICalled", console.on_console_api_called)
        transport.on_message = router.route
    """

    def __init__(self, correlator: CommandCorrelator):
        self.correlator = correlator
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, method: str, handler: Handler) -> None:
        """Register handler for notifications named method."""
        self._handlers.setdefault(method, []).append(handler)
        logger.debug(f"Subscribed to event: {method}")

    def unsubscribe(self, method: str, handler: Handler) -> None:
        handlers = self._handlers.get(method)
        if not handlers or handler not in handlers:
            logger.warning(f"Callback not found for event: {method}")
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[method]
        logger.debug(f"Unsubscribed from event: {method}")

    def has_subscribers(self, method: str) -> bool:
        return bool(self._handlers.get(method))

    def clear(self) -> None:
        """Drop every registered handler (session teardown)."""
        self._handlers.clear()

    def route(self, raw: Any) -> None:
        """Decode one inbound frame and deliver it.

        Malformed frames are logged and discarded.
        """
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed CDP message: {e}")
            return

        if not isinstance(message, dict):
            logger.warning("Malformed CDP message: top-level value is not an object")
            return

        if "id" in message:
            self.correlator.resolve(message)
        elif isinstance(message.get("method"), str):
            self._dispatch(message["method"], message.get("params"))
        else:
            logger.warning("Discarded CDP message without id or method")

    def _dispatch(self, method: str, params: Any) -> None:
        handlers = self._handlers.get(method)
        if not handlers:
            return

        try:
            notification = parse_notification(method, params)
        except FormatError as e:
            log_with_context(
                logger,
                logging.WARNING,
                f"Dropped malformed notification {method}: {e.message}",
                method=method,
                **e.details,
            )
            return

        logger.debug(f"Received event: {method}")
        # Copy so a handler may unsubscribe itself
        for handler in list(handlers):
            try:
                handler(notification)
            except Exception as e:
                logger.error(f"Event handler error for {method}: {e}", exc_info=True)
