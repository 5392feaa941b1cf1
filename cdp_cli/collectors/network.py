"""
Network aggregator for CDP - assembles request entities from network events.

Every request is keyed by its server-assigned requestId and moves through an
explicit lifecycle. Events may arrive in any order: Network.responseReceived
is sometimes observed before Network.requestWillBeSent for the same request.

Transitions (rows: event, columns: current state):

    event     | absent             | STARTED          | RESPONSE_RECEIVED  | COMPLETED
    ----------+--------------------+------------------+--------------------+-----------
    start     | create, STARTED    | overwrite fields | back-fill fields   | back-fill fields
    response  | provisional entity,| set response,    | overwrite response | overwrite response
              | RESPONSE_RECEIVED  | RESPONSE_RECEIVED|                    |
    finish    | ignored            | set size         | set size, COMPLETED| set size

Start fields are url, method, request headers, category and timestamp; the
start event is authoritative for them. Response fields are status, response
headers and size (when given). A response only supplies url and category when
the entity has none. Fields are assigned, never accumulated, so replaying an
event leaves the entity unchanged.
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..notifications import LoadingFinished, RequestWillBeSent, ResponseReceived

logger = logging.getLogger(__name__)

PROVISIONAL_METHOD = "GET"


class LifecycleState(str, enum.Enum):
    STARTED = "started"
    RESPONSE_RECEIVED = "response_received"
    COMPLETED = "completed"


@dataclass
class NetworkEntity:
    """A request assembled from one or more network events.

    Attributes:
        id: CDP requestId
        url: Request URL ("" until known)
        method: HTTP method
        timestamp: Milliseconds; request wall time from the start event, or
            arrival time of a response that came first
        status: HTTP status code
        category: CDP resource type (Document, XHR, Fetch, Script, ...)
        size: Encoded bytes received
        request_headers: Headers sent
        response_headers: Headers received
        state: Lifecycle state
    """

    id: str
    url: str
    method: str
    timestamp: float
    state: LifecycleState
    status: Optional[int] = None
    category: Optional[str] = None
    size: Optional[float] = None
    request_headers: Optional[Dict[str, Any]] = None
    response_headers: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "method": self.method}
        if self.status:
            data["status"] = self.status
        if self.category:
            data["type"] = self.category
        if self.size:
            data["size"] = self.size
        data["timestamp"] = self.timestamp
        return data


class NetworkAggregator:
    """
    Request table for one session. Entities are never evicted.

    Usage:
        network = NetworkAggregator()
        router.subscribe(RequestWillBeSent.METHOD, network.on_request_will_be_sent)
        router.subscribe(ResponseReceived.METHOD, network.on_response_received)
        router.subscribe(LoadingFinished.METHOD, network.on_loading_finished)
        ...
        xhr = network.entities(category="XHR")
    """

    def __init__(self):
        # Insertion order is first-seen order
        self._entities: Dict[str, NetworkEntity] = {}

    def __len__(self) -> int:
        return len(self._entities)

    def get(self, request_id: str) -> Optional[NetworkEntity]:
        return self._entities.get(request_id)

    def entities(self, category: Optional[str] = None) -> List[NetworkEntity]:
        """Current snapshot of the table, optionally for one resource category."""
        if category is None:
            return list(self._entities.values())
        return [e for e in self._entities.values() if e.category == category]

    def clear(self) -> None:
        self._entities.clear()

    def on_request_will_be_sent(self, event: RequestWillBeSent) -> NetworkEntity:
        timestamp = (
            event.timestamp * 1000 if event.timestamp is not None else time.time() * 1000
        )
        entity = self._entities.get(event.request_id)

        if entity is None:
            entity = NetworkEntity(
                id=event.request_id,
                url=event.url,
                method=event.method,
                timestamp=timestamp,
                state=LifecycleState.STARTED,
                category=event.category,
                request_headers=event.headers,
            )
            self._entities[event.request_id] = entity
            return entity

        # Same fields whether overwriting (STARTED) or back-filling a request
        # whose response arrived first; response fields are left alone.
        entity.url = event.url
        entity.method = event.method
        entity.timestamp = timestamp
        entity.request_headers = event.headers
        if event.category is not None:
            entity.category = event.category
        return entity

    def on_response_received(self, event: ResponseReceived) -> NetworkEntity:
        entity = self._entities.get(event.request_id)

        if entity is None:
            logger.debug(f"Response before request for {event.request_id}")
            entity = NetworkEntity(
                id=event.request_id,
                url=event.url or "",
                method=PROVISIONAL_METHOD,
                timestamp=time.time() * 1000,
                state=LifecycleState.RESPONSE_RECEIVED,
                category=event.category,
            )
            self._entities[event.request_id] = entity
        else:
            if not entity.url and event.url:
                entity.url = event.url
            if entity.category is None:
                entity.category = event.category
            if entity.state is LifecycleState.STARTED:
                entity.state = LifecycleState.RESPONSE_RECEIVED

        entity.status = event.status
        entity.response_headers = event.headers
        if event.size is not None:
            entity.size = event.size
        return entity

    def on_loading_finished(self, event: LoadingFinished) -> Optional[NetworkEntity]:
        entity = self._entities.get(event.request_id)
        if entity is None:
            logger.debug(f"Ignored loadingFinished for unknown request {event.request_id}")
            return None

        if event.size is not None:
            entity.size = event.size
        if entity.state is LifecycleState.RESPONSE_RECEIVED:
            entity.state = LifecycleState.COMPLETED
        return entity
