"""Typed notification variants for the CDP events the collectors consume.

Each variant validates its required fields once, at the boundary, and raises
FormatError when they are missing or mistyped. Optional fields default to None.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, Union

from .exceptions import FormatError


def _require(params: dict, key: str, kind, method: str) -> Any:
    value = params.get(key)
    if not isinstance(value, kind):
        raise FormatError(
            f"{method}: missing or invalid '{key}'",
            method=method,
            details={"field": key},
        )
    return value


def _optional_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _optional_dict(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class ConsoleAPICalled:
    """Runtime.consoleAPICalled: a console.* call in the page."""

    METHOD = "Runtime.consoleAPICalled"

    kind: str
    args: List[dict] = field(default_factory=list)
    timestamp: Optional[float] = None

    @classmethod
    def from_params(cls, params: dict) -> "ConsoleAPICalled":
        kind = _require(params, "type", str, cls.METHOD)
        args = _require(params, "args", list, cls.METHOD)
        return cls(
            kind=kind,
            args=[arg if isinstance(arg, dict) else {"value": arg} for arg in args],
            timestamp=_optional_number(params.get("timestamp")),
        )


@dataclass(frozen=True)
class ExceptionThrown:
    """Runtime.exceptionThrown: an uncaught exception."""

    METHOD = "Runtime.exceptionThrown"

    text: str
    line: Optional[int] = None
    url: Optional[str] = None
    timestamp: Optional[float] = None

    @classmethod
    def from_params(cls, params: dict) -> "ExceptionThrown":
        details = _require(params, "exceptionDetails", dict, cls.METHOD)
        text = _require(details, "text", str, cls.METHOD)
        line = details.get("lineNumber")
        return cls(
            text=text,
            line=line if isinstance(line, int) and not isinstance(line, bool) else None,
            url=_optional_str(details.get("url")),
            timestamp=_optional_number(params.get("timestamp")),
        )


@dataclass(frozen=True)
class RequestWillBeSent:
    """Network.requestWillBeSent: the start of a request. Timestamp is in seconds."""

    METHOD = "Network.requestWillBeSent"

    request_id: str
    url: str
    method: str = "GET"
    headers: Optional[Dict[str, Any]] = None
    category: Optional[str] = None
    timestamp: Optional[float] = None

    @classmethod
    def from_params(cls, params: dict) -> "RequestWillBeSent":
        request_id = _require(params, "requestId", str, cls.METHOD)
        request = _require(params, "request", dict, cls.METHOD)
        url = _require(request, "url", str, cls.METHOD)
        return cls(
            request_id=request_id,
            url=url,
            method=_optional_str(request.get("method")) or "GET",
            headers=_optional_dict(request.get("headers")),
            category=_optional_str(params.get("type")),
            timestamp=_optional_number(params.get("timestamp")),
        )


@dataclass(frozen=True)
class ResponseReceived:
    """Network.responseReceived: response headers are available."""

    METHOD = "Network.responseReceived"

    request_id: str
    status: int
    headers: Optional[Dict[str, Any]] = None
    url: Optional[str] = None
    size: Optional[float] = None
    category: Optional[str] = None

    @classmethod
    def from_params(cls, params: dict) -> "ResponseReceived":
        request_id = _require(params, "requestId", str, cls.METHOD)
        response = _require(params, "response", dict, cls.METHOD)
        status = _optional_number(response.get("status"))
        if status is None:
            raise FormatError(
                f"{cls.METHOD}: missing or invalid 'status'",
                method=cls.METHOD,
                details={"field": "status"},
            )
        return cls(
            request_id=request_id,
            status=int(status),
            headers=_optional_dict(response.get("headers")),
            url=_optional_str(response.get("url")),
            size=_optional_number(response.get("encodedDataLength")),
            category=_optional_str(params.get("type")),
        )


@dataclass(frozen=True)
class LoadingFinished:
    """Network.loadingFinished: the body has been fully received."""

    METHOD = "Network.loadingFinished"

    request_id: str
    size: Optional[float] = None

    @classmethod
    def from_params(cls, params: dict) -> "LoadingFinished":
        request_id = _require(params, "requestId", str, cls.METHOD)
        return cls(
            request_id=request_id,
            size=_optional_number(params.get("encodedDataLength")),
        )


Notification = Union[
    ConsoleAPICalled, ExceptionThrown, RequestWillBeSent, ResponseReceived, LoadingFinished
]

NOTIFICATION_TYPES: Dict[str, Type] = {
    variant.METHOD: variant
    for variant in (
        ConsoleAPICalled,
        ExceptionThrown,
        RequestWillBeSent,
        ResponseReceived,
        LoadingFinished,
    )
}


def parse_notification(method: str, params: Any) -> Union[Notification, dict]:
    """Validate params into the variant registered for method.

    Methods without a variant pass their params through unchanged.

    Raises:
        FormatError: If params is not an object or lacks required fields
    """
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise FormatError(f"{method}: params must be an object", method=method)

    variant = NOTIFICATION_TYPES.get(method)
    if variant is None:
        return params
    return variant.from_params(params)
