"""Exception hierarchy for CDP operations.

All CDP-related exceptions inherit from CDPError base class.
Provides structured error types for transport, command, timeout, target
lookup and payload format failures.
"""

from typing import Optional


class CDPError(Exception):
    """Base exception for all CDP-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class TransportError(CDPError):
    """Channel-level I/O failure.

    Raised when establishing, writing to, or keeping the CDP WebSocket fails.
    """

    pass


class ConnectionFailedError(TransportError):
    """Initial connection failed.

    Raised when the WebSocket or the HTTP target directory cannot be reached.
    Common causes: wrong port, Chrome not running, network issues.
    """

    pass


class ConnectionClosedError(TransportError):
    """Connection closed while commands were in flight, or before sending."""

    pass


class ProtocolError(CDPError):
    """The remote end answered a command with an error object.

    Example: invalid JavaScript expression in Runtime.evaluate
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.error_code = error_code


class CommandTimeout(CDPError):
    """Command did not receive a matching response within its timeout."""

    def __init__(
        self,
        message: str,
        command_method: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.command_method = command_method
        self.timeout = timeout

    def __str__(self):
        if self.command_method and self.timeout:
            return f"Command '{self.command_method}' timed out after {self.timeout}s"
        return self.message


class TargetNotFound(CDPError):
    """No target in the directory matches the selector.

    Raised before any channel is opened.
    """

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.selector = selector

    def __str__(self):
        if self.selector:
            return f"Page not found: {self.selector}"
        return self.message


class FormatError(CDPError):
    """Inbound payload failed to decode or lacked required fields.

    Never surfaced to callers for notifications; the router logs and drops them.
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
